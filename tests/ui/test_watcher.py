"""Tests for EngineWatcherMixin."""

from anchors.config import Settings
from anchors.engine import AnchorEngine
from anchors.ui.watcher import EngineWatcherMixin


class FakeWidget(EngineWatcherMixin):
    """Minimal stand-in for a Textual widget."""

    def __init__(self):
        self._init_watcher()


def test_watch_fires_callback(tmp_path):
    widget = FakeWidget()
    engine = AnchorEngine(tmp_path, Settings())
    calls = []
    widget.engine_watch(engine, calls.append)

    engine.notify()
    assert calls == [engine]


def test_suppression_skips_callback(tmp_path):
    widget = FakeWidget()
    engine = AnchorEngine(tmp_path, Settings())
    calls = []
    widget.engine_watch(engine, calls.append)

    with widget.suppressing():
        engine.notify()
    assert calls == []

    engine.notify()
    assert calls == [engine]


def test_on_unmount_cleans_up(tmp_path):
    widget = FakeWidget()
    engine = AnchorEngine(tmp_path, Settings())
    calls = []
    widget.engine_watch(engine, calls.append)
    widget.engine_watch(engine, calls.append)

    widget.on_unmount()

    engine.notify()
    assert calls == []
