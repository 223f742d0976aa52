"""The anchor engine: compiled matcher, per-file cache and its invalidation.

All mutation happens on the event loop thread between awaits. Each parse
takes a token from a global counter and only writes its result if that token
is still the latest one recorded for the file, so an older, slower parse can
never overwrite a newer result, and clearing the cache invalidates parses
already in flight.
"""

from __future__ import annotations

import itertools
import logging
import os
from pathlib import Path
from typing import Callable

from anchors.config import Settings
from anchors.debounce import Debouncer
from anchors.errors import ConfigError
from anchors.index import EMPTY, AnchorIndex
from anchors.matcher import CompiledMatcher, compile_matcher
from anchors.parser import parse_anchors
from anchors.sources import DocumentStore, normalize, same_file
from anchors.tags import TagRegistry

logger = logging.getLogger(__name__)

Report = Callable[[str, str], None]
Watcher = Callable[["AnchorEngine"], None]


def _log_report(level: str, message: str) -> None:
    logger.log(logging.getLevelName(level.upper()), message)


def _identity(path: Path) -> str:
    """Key under which aliases of the same file collide."""
    return os.path.normcase(os.path.realpath(path))


class AnchorEngine:
    """Owns the current matcher and the map of file path to AnchorIndex."""

    def __init__(
        self,
        root: str | Path,
        settings: Settings | None = None,
        store: DocumentStore | None = None,
        report: Report | None = None,
    ):
        self.root = normalize(root)
        self.settings = settings or Settings()
        self.store = store or DocumentStore()
        self.registry = TagRegistry()
        self.matcher: CompiledMatcher | None = None
        self.cache: dict[Path, AnchorIndex] = {}
        self.active: Path | None = None
        self.loaded = False
        self.scanned = False
        self.scanning = False
        self._report = report or _log_report
        self._identities: dict[str, Path] = {}
        self._pending: dict[Path, int] = {}
        self._tokens = itertools.count(1)
        self._watchers: list[Watcher] = []
        self._debouncer = Debouncer(self.settings.parse_delay_seconds, self._idle_refresh)

    # -- notification --

    def watch(self, callback: Watcher) -> Callable[[], None]:
        """Call callback after every re-parse or rebuild. Returns an unwatch callable."""
        self._watchers.append(callback)
        return lambda: callback in self._watchers and self._watchers.remove(callback)

    def notify(self) -> None:
        for callback in list(self._watchers):
            callback(self)

    def report(self, level: str, message: str) -> None:
        self._report(level, message)

    # -- configuration --

    def build_matcher(self) -> bool:
        """Rebuild registry and matcher from settings.

        On a configuration error the previous matcher stays in place.
        """
        tags = self.settings.tags
        registry = TagRegistry.from_settings(tags.legacy, tags.anchors)
        try:
            matcher = compile_matcher(registry, tags.separators, tags.prefixes, tags.end_tag, tags.match_case)
        except ConfigError as exc:
            self.report("error", str(exc))
            return False
        self.registry, self.matcher = registry, matcher
        self._debouncer.delay = self.settings.parse_delay_seconds
        return True

    async def rebuild(self, settings: Settings | None = None) -> bool:
        """Apply settings, then repopulate the cache eagerly or for the active file only."""
        if settings is not None:
            self.settings = settings
        self.scanned = False
        if not self.build_matcher():
            self.notify()
            return False

        workspace = self.settings.workspace
        if workspace.enabled and not workspace.lazy_load:
            await self.scan_workspace()
        else:
            self.loaded = True
            if self.active is not None:
                await self.add_or_replace(self.active)
            self.notify()
        return True

    # -- cache --

    def lookup(self, uri: str | Path) -> AnchorIndex | None:
        """Cached index for uri under any alias, or None."""
        key = self._identities.get(_identity(normalize(uri)))
        return self.cache.get(key) if key is not None else None

    def is_cached(self, uri: str | Path) -> bool:
        return self.lookup(uri) is not None

    def get_current(self) -> AnchorIndex:
        """Index of the active document, or an empty index."""
        index = self.lookup(self.active) if self.active is not None else None
        return EMPTY if index is None else index

    def clear(self) -> None:
        """Drop every entry; parses still in flight will not write back."""
        self.cache.clear()
        self._identities.clear()
        self._pending.clear()

    def _store(self, path: Path, index: AnchorIndex) -> None:
        self.cache[path] = index
        self._identities[_identity(path)] = path

    def remove(self, uri: str | Path) -> None:
        path = normalize(uri)
        key = self._identities.pop(_identity(path), None)
        for stale in {path, key} - {None}:
            self.cache.pop(stale, None)
            self._pending.pop(stale, None)

    async def add_or_replace(self, uri: str | Path) -> bool:
        """Replace the entry for uri with a placeholder, then parse it.

        Any entry naming the same file under another alias is dropped first.
        Returns True if anchors were found.
        """
        path = normalize(uri)
        key = self._identities.pop(_identity(path), None)
        previous = self.cache.pop(key, None) if key is not None else None
        self._store(path, EMPTY)
        return await self._parse(path, fallback=previous)

    async def parse(self, uri: str | Path) -> bool:
        """Re-parse uri in place, keeping the current entry until the result lands."""
        path = normalize(uri)
        key = self._identities.get(_identity(path), path)
        return await self._parse(key, fallback=self.cache.get(key))

    async def _parse(self, path: Path, fallback: AnchorIndex | None) -> bool:
        matcher, registry = self.matcher, self.registry
        if matcher is None:
            return False
        token = next(self._tokens)
        self._pending[path] = token

        try:
            text = await self.store.read(path)
        except OSError as exc:
            logger.warning("cannot read %s: %s", path, exc)
            self.report("warning", f"Could not read {path}: {exc.strerror or exc}")
            self._restore(path, token, fallback)
            return False

        try:
            index, found = parse_anchors(text, matcher, registry, self.settings.tags.display_tag_name)
        except Exception:
            logger.exception("failed to parse %s", path)
            self._restore(path, token, fallback)
            return False

        if self._pending.get(path) != token:
            logger.debug("discarding superseded parse of %s", path)
            return found
        del self._pending[path]
        self._store(path, index)
        if not self.scanning:
            self.notify()
        return found

    def _restore(self, path: Path, token: int, fallback: AnchorIndex | None) -> None:
        if self._pending.get(path) != token:
            return
        del self._pending[path]
        if fallback is not None and path in self.cache:
            self.cache[path] = fallback

    # -- workspace --

    async def scan_workspace(self, progress: Callable[[float], None] | None = None) -> int:
        """Clear the cache and parse the workspace. Returns anchor-bearing file count."""
        from anchors.workspace import scan

        workspace = self.settings.workspace
        self.scanned = True
        self.loaded = False
        self.scanning = True
        self.notify()
        try:
            count = await scan(self, workspace.match_files, workspace.exclude_files, workspace.max_files, progress)
        except Exception as exc:
            logger.exception("workspace scan failed")
            self.report("error", f"Anchors failed to load: {exc}")
            count = 0
        finally:
            self.scanning = False

        if self.active is not None:
            await self.add_or_replace(self.active)
        self.loaded = True
        self.notify()
        return count

    def retains(self, path: Path) -> bool:
        """Whether a closed document stays cached for the workspace view."""
        workspace = self.settings.workspace
        return workspace.enabled and self.scanned and path.is_relative_to(self.root)

    # -- document events --

    async def open_document(self, uri: str | Path, text: str, activate: bool = True) -> None:
        path = self.store.open(uri, text)
        if activate:
            await self.set_active(path)

    def document_changed(self, uri: str | Path, text: str) -> None:
        """Record new buffer text and schedule a debounced re-parse."""
        self.store.update(uri, text)
        self._debouncer.schedule()

    async def _idle_refresh(self) -> None:
        if self.active is not None:
            await self.parse(self.active)

    async def flush(self) -> None:
        """Wait until any scheduled re-parse has run."""
        await self._debouncer.flush()

    def close_document(self, uri: str | Path) -> None:
        path = normalize(uri)
        self.store.close(path)
        if self.active is not None and same_file(self.active, path):
            self.active = None
        if not self.retains(path):
            self.remove(path)
        self.notify()

    def file_deleted(self, uri: str | Path) -> None:
        self.remove(uri)
        self.notify()

    async def set_active(self, uri: str | Path | None) -> None:
        """Switch the active document, parsing it right away if not cached yet."""
        self.active = normalize(uri) if uri is not None else None
        if not self.loaded:
            return
        if self.active is not None and not self.is_cached(self.active):
            await self.add_or_replace(self.active)
        self.notify()
