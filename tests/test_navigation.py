"""Tests for jump targets and link resolution."""

import pytest

from anchors.navigation import (
    find_anchor,
    locate_id,
    relative_anchor,
    resolve_link,
    resolve_links,
    resolve_location,
    split_link,
)


@pytest.mark.asyncio
async def test_resolve_location(engine, workspace):
    path = workspace / "src" / "app.py"
    assert not (await resolve_location(engine, path, 3)).broken
    out_of_range = await resolve_location(engine, path, 99)
    assert out_of_range.broken
    assert out_of_range.reason == "Line 99 out of range"
    missing = await resolve_location(engine, workspace / "gone.py", 1)
    assert missing.reason == "File not found"
    assert str(missing) == f"{workspace / 'gone.py'}:1"


@pytest.mark.asyncio
async def test_locate_id_prefers_active(engine, workspace):
    await engine.scan_workspace()
    other = workspace / "src" / "dup.js"
    await engine.open_document(other, "// TODO: duplicate [id=offby1]\n")

    location = await locate_id(engine, "offby1")
    assert location.path == other

    assert find_anchor(engine, "offby1", prefer=workspace / "src" / "util.js")[0].name == "util.js"
    assert await locate_id(engine, "nope") is None


def test_split_link():
    assert split_link("./docs/a.md#intro") == ("./", "docs/a.md", "#intro")
    assert split_link("../b.py:12") == ("../", "b.py", ":12")
    assert split_link("src/c.py") == (None, "src/c.py", "")
    assert split_link("") is None


async def _link(engine, source, text):
    await engine.open_document(source, text)
    return engine.get_current().anchors[0]


@pytest.mark.asyncio
async def test_resolve_link_line_and_relative(engine, workspace):
    source = workspace / "src" / "links.py"
    anchor = await _link(engine, source, "# LINK ./app.py:4\n")
    target = await resolve_link(engine, anchor, source)
    assert (target.path, target.line, target.broken) == (workspace / "src" / "app.py", 4, False)
    assert target.location.line == 4


@pytest.mark.asyncio
async def test_resolve_link_root_relative_id_parsed_on_demand(engine, workspace):
    source = workspace / "src" / "links.py"
    anchor = await _link(engine, source, "# LINK src/util.js#offby1\n")
    assert not engine.is_cached(workspace / "src" / "util.js")

    target = await resolve_link(engine, anchor, source)
    assert target.line == 1
    assert target.anchor_id == "offby1"
    assert engine.is_cached(workspace / "src" / "util.js")


@pytest.mark.asyncio
async def test_broken_links(engine, workspace):
    source = workspace / "src" / "links.py"
    await engine.open_document(source, "# LINK missing.py\n# LINK src/app.py#nothing\n")

    results = await resolve_links(engine, source)
    reasons = [target.reason for _anchor, target in results]
    assert reasons == ["File not found", "Anchor nothing not found"]
    assert all(target.broken for _anchor, target in results)


@pytest.mark.asyncio
async def test_resolve_links_uncached_file(engine, workspace):
    assert await resolve_links(engine, workspace / "src" / "app.py") == []


def test_relative_anchor(parse):
    index = parse("# TODO: one\n\n# SECTION: two\n# NOTE: three\n# !SECTION\n")
    assert relative_anchor(index, 3, "up").text == "one"
    assert relative_anchor(index, 3, "down").text == "three"
    assert relative_anchor(index, 1, "up") is None
    assert relative_anchor(index, 4, "down") is None
    with pytest.raises(ValueError):
        relative_anchor(index, 1, "sideways")
