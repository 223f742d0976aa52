"""Tests for tag and epic completion items."""

import pytest

from anchors.completion import epic_completions, tag_completions


def test_tag_completions(engine):
    items = {c.label: c for c in tag_completions(engine)}
    assert items["TODO Anchor"].insert_text == "TODO "
    assert items["!SECTION Anchor"].insert_text == "!SECTION"
    assert "!TODO Anchor" not in items


@pytest.mark.asyncio
async def test_epic_completions_next_seq(engine, workspace):
    await engine.scan_workspace()
    engine.settings.epic.seq_step = 10
    items = epic_completions(engine)

    assert [c.label for c in items] == ["epic=api,seq=12"]
    assert items[0].insert_text == "[epic=api,seq=12]"


def test_epic_completions_empty(engine):
    assert epic_completions(engine) == []
