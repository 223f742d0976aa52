"""Mixin that manages engine watches with suppression and auto-cleanup."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable

from anchors.engine import AnchorEngine


class EngineWatcherMixin:
    """Mixin for widgets that redraw when the engine re-parses.

    Subclasses should:
    - Call ``_init_watcher()`` in ``__init__``
    - Use ``self.engine_watch(engine, callback)`` instead of ``engine.watch(...)``
    - Use ``with self.suppressing():`` around changes they redraw themselves
    - Skip writing ``on_unmount`` -- the mixin handles cleanup
    """

    def _init_watcher(self) -> None:
        self._watches: list[Callable[[], None]] = []
        self._suppressing = False

    def engine_watch(self, engine: AnchorEngine, callback: Callable[[AnchorEngine], None]) -> None:
        """Register a watch that is auto-guarded by suppression and auto-cleaned on unmount."""

        def guarded(source: AnchorEngine) -> None:
            if not self._suppressing:
                callback(source)

        self._watches.append(engine.watch(guarded))

    @contextmanager
    def suppressing(self):
        """Context manager that suppresses engine callbacks."""
        self._suppressing = True
        try:
            yield
        finally:
            self._suppressing = False

    def on_unmount(self) -> None:
        for unwatch in self._watches:
            unwatch()
        self._watches.clear()
