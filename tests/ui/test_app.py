"""Tests for the anchors TUI."""

import pytest

from anchors.config import Settings
from anchors.ui import AnchorsApp, AnchorTree


def _labels(tree):
    return [node.label.plain for node in tree.root.children]


async def _settle(app, pilot):
    await app.workers.wait_for_complete()
    await pilot.pause()


@pytest.mark.asyncio
async def test_starts_in_workspace_view(workspace):
    app = AnchorsApp(workspace, Settings())

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)
        assert tree.view_name == "workspace"
        labels = _labels(tree)
        assert len(labels) == 2
        assert labels[0].endswith("src/app.py (2 Anchors)")
        assert app.sub_title == "workspace"


@pytest.mark.asyncio
async def test_cycle_view(workspace):
    app = AnchorsApp(workspace, Settings())

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)

        await pilot.press("v")
        assert tree.view_name == "epic"
        assert _labels(tree)[0].endswith("api")

        await pilot.press("v")
        assert tree.view_name == "file"
        assert _labels(tree)[0].endswith("Waiting for open editor...")


@pytest.mark.asyncio
async def test_initial_file(workspace):
    path = workspace / "src" / "app.py"
    app = AnchorsApp(workspace, Settings(), active=path)

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)
        assert tree.view_name == "file"
        assert _labels(tree)[1].endswith("[2 - 6] SECTION: handlers")
        assert app.sub_title == "file: app.py"


@pytest.mark.asyncio
async def test_selecting_file_switches_to_file_view(workspace):
    app = AnchorsApp(workspace, Settings())

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)
        path = workspace / "src" / "util.js"

        tree.post_message(AnchorTree.FileSelected(path, 1))
        await pilot.pause()

        assert app.engine.active == path
        assert tree.view_name == "file"
        assert _labels(tree) == ["⚓ [1] FIXME: off by one"]


@pytest.mark.asyncio
async def test_lazy_scan_on_request(workspace):
    settings = Settings()
    settings.workspace.lazy_load = True
    app = AnchorsApp(workspace, settings)

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)
        assert _labels(tree)[0].endswith("Click to start workspace scan")

        await pilot.press("s")
        await _settle(app, pilot)
        assert len(_labels(tree)) == 2


@pytest.mark.asyncio
async def test_scan_disabled_workspace(workspace):
    settings = Settings()
    settings.workspace.enabled = False
    app = AnchorsApp(workspace, settings)

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        await pilot.press("s")
        await _settle(app, pilot)
        assert not app.engine.scanned


@pytest.mark.asyncio
async def test_selecting_file_redraws_once(workspace):
    app = AnchorsApp(workspace, Settings())

    async with app.run_test() as pilot:
        await _settle(app, pilot)
        tree = app.query_one(AnchorTree)
        calls = []
        redraw = tree.refresh_view

        def counting_refresh():
            calls.append(tree.view_name)
            redraw()

        tree.refresh_view = counting_refresh
        tree.post_message(AnchorTree.FileSelected(workspace / "README.md", None))
        await pilot.pause()
        await pilot.pause()

        assert calls == ["file"]
