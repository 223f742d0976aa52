"""Tests for the anchor engine cache and its invalidation."""

import asyncio
import os

import pytest

from anchors.config import Settings
from anchors.engine import AnchorEngine
from anchors.index import EMPTY
from anchors.sources import DocumentStore


class GatedStore(DocumentStore):
    """Snapshots the buffer when a read starts and waits for a gate before returning it."""

    def __init__(self):
        super().__init__()
        self.gates: list[asyncio.Event] = []

    async def read(self, uri):
        text = self.text(uri)
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return text


@pytest.mark.asyncio
async def test_open_document_parses_and_activates(engine, workspace):
    path = workspace / "scratch.py"
    await engine.open_document(path, "# TODO: from the buffer\n")

    assert engine.active == path
    current = engine.get_current()
    assert current is not EMPTY
    assert [a.text for a in current.anchors] == ["from the buffer"]


@pytest.mark.asyncio
async def test_get_current_after_add_or_replace(engine, workspace):
    path = workspace / "src" / "app.py"
    engine.active = path
    found = await engine.add_or_replace(path)

    assert found is True
    assert engine.get_current() is engine.lookup(path)
    assert [a.tag for a in engine.get_current().anchors] == ["TODO", "SECTION"]


def test_get_current_without_active(engine):
    assert engine.get_current() is EMPTY


@pytest.mark.asyncio
async def test_empty_parse_result_is_not_placeholder(engine, workspace):
    path = workspace / "README.md"
    engine.active = path
    assert await engine.add_or_replace(path) is False
    assert engine.is_cached(path)
    assert not engine.get_current()


@pytest.mark.asyncio
async def test_older_parse_never_overwrites_newer(workspace):
    store = GatedStore()
    engine = AnchorEngine(workspace, Settings(), store=store)
    engine.build_matcher()
    path = workspace / "doc.py"

    store.open(path, "# TODO: old\n")
    first = asyncio.create_task(engine.parse(path))
    await asyncio.sleep(0)
    store.update(path, "# TODO: new\n")
    second = asyncio.create_task(engine.parse(path))
    await asyncio.sleep(0)

    store.gates[1].set()
    await second
    store.gates[0].set()
    await first

    assert [a.text for a in engine.lookup(path).anchors] == ["new"]


@pytest.mark.asyncio
async def test_clear_invalidates_parse_in_flight(workspace):
    store = GatedStore()
    engine = AnchorEngine(workspace, Settings(), store=store)
    engine.build_matcher()
    path = workspace / "doc.py"
    store.open(path, "# TODO: stale\n")

    task = asyncio.create_task(engine.parse(path))
    await asyncio.sleep(0)
    engine.clear()
    store.gates[0].set()
    await task

    assert engine.lookup(path) is None


@pytest.mark.asyncio
async def test_read_failure_keeps_last_good_index(engine, workspace):
    path = workspace / "src" / "util.js"
    await engine.add_or_replace(path)
    previous = engine.lookup(path)
    path.unlink()

    assert await engine.add_or_replace(path) is False
    assert engine.lookup(path) is previous


@pytest.mark.asyncio
async def test_parse_error_is_contained(engine, workspace, monkeypatch, caplog):
    path = workspace / "src" / "util.js"
    await engine.add_or_replace(path)
    previous = engine.lookup(path)

    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("anchors.engine.parse_anchors", explode)
    assert await engine.parse(path) is False
    assert engine.lookup(path) is previous
    assert "failed to parse" in caplog.text


@pytest.mark.asyncio
async def test_aliases_share_one_entry(engine, workspace):
    real = workspace / "src" / "util.js"
    link = workspace / "alias.js"
    os.symlink(real, link)

    await engine.add_or_replace(real)
    await engine.add_or_replace(link)

    assert len(engine.cache) == 1
    assert engine.lookup(real) is engine.lookup(link)


@pytest.mark.asyncio
async def test_remove_and_file_deleted(engine, workspace):
    path = workspace / "src" / "util.js"
    await engine.add_or_replace(path)
    engine.file_deleted(path)
    assert not engine.is_cached(path)
    engine.remove(path)


@pytest.mark.asyncio
async def test_close_document_drops_entry_when_not_scanned(engine, workspace):
    path = workspace / "scratch.py"
    await engine.open_document(path, "# TODO: x\n")
    engine.close_document(path)

    assert engine.active is None
    assert not engine.is_cached(path)


@pytest.mark.asyncio
async def test_close_document_keeps_entry_after_scan(engine, workspace):
    await engine.scan_workspace()
    path = workspace / "src" / "app.py"
    await engine.open_document(path, path.read_text())
    engine.close_document(path)

    assert engine.is_cached(path)


@pytest.mark.asyncio
async def test_watchers_notified_and_unwatched(engine, workspace):
    calls = []
    unwatch = engine.watch(calls.append)
    await engine.add_or_replace(workspace / "src" / "app.py")
    assert calls == [engine]

    unwatch()
    await engine.add_or_replace(workspace / "src" / "app.py")
    assert calls == [engine]


def test_bad_config_keeps_previous_matcher(engine):
    reports = []
    engine._report = lambda level, message: reports.append((level, message))
    matcher = engine.matcher

    engine.settings.tags.separators = []
    assert engine.build_matcher() is False
    assert engine.matcher is matcher
    assert reports == [("error", "At least one separator must be defined")]


@pytest.mark.asyncio
async def test_rebuild_eager_scans_workspace(workspace):
    engine = AnchorEngine(workspace, Settings())
    assert await engine.rebuild() is True

    assert engine.loaded and engine.scanned
    names = {p.name for p in engine.cache}
    assert {"app.py", "util.js"} <= names
    assert "dep.js" not in names


@pytest.mark.asyncio
async def test_rebuild_lazy_parses_active_only(workspace):
    settings = Settings()
    settings.workspace.lazy_load = True
    engine = AnchorEngine(workspace, settings)
    engine.active = workspace / "src" / "util.js"

    await engine.rebuild()
    assert engine.loaded
    assert not engine.scanned
    assert list(engine.cache) == [engine.active]


@pytest.mark.asyncio
async def test_rebuild_with_new_end_tag(engine, workspace):
    path = workspace / "doc.py"
    settings = Settings()
    settings.workspace.enabled = False
    settings.tags.end_tag = "END"
    engine.active = path
    engine.store.open(path, "# SECTION: s\n# ENDSECTION\n")

    await engine.rebuild(settings)
    assert engine.get_current().anchors[0].close_line_number == 2


@pytest.mark.asyncio
async def test_debounced_edits_parse_latest_text_once(workspace):
    settings = Settings()
    settings.parse_delay = 10
    engine = AnchorEngine(workspace, settings)
    engine.build_matcher()
    engine.loaded = True
    path = workspace / "doc.py"
    await engine.open_document(path, "# TODO: v0\n")

    seen = []
    original = engine.parse

    async def counting(uri):
        seen.append(engine.store.text(uri))
        return await original(uri)

    engine.parse = counting
    for i in range(1, 6):
        engine.document_changed(path, f"# TODO: v{i}\n")
    await engine.flush()

    assert seen == ["# TODO: v5\n"]
    assert engine.get_current().anchors[0].text == "v5"


@pytest.mark.asyncio
async def test_set_active_before_load_defers_parse(workspace):
    engine = AnchorEngine(workspace, Settings())
    engine.build_matcher()
    await engine.set_active(workspace / "src" / "util.js")
    assert engine.cache == {}
