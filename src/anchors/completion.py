"""Completion suggestions for tag names and epic attribute blocks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from anchors.engine import AnchorEngine


@dataclass(frozen=True)
class Completion:
    label: str
    insert_text: str
    detail: str = ""


def tag_completions(engine: AnchorEngine) -> list[Completion]:
    """One item per tag, plus an end-tag item for every region tag."""
    tags = engine.settings.tags
    separator = tags.separators[0] if tags.separators else " "
    items = []
    for tag in engine.registry:
        items.append(Completion(f"{tag.name} Anchor", tag.name + separator, f"Insert {tag.name} anchor"))
        if tag.is_region:
            end = tags.end_tag + tag.name
            items.append(Completion(f"{end} Anchor", end, f"Insert {end} comment anchor"))
    return items


def epic_completions(engine: AnchorEngine) -> list[Completion]:
    """``epic=<name>,seq=<next>`` for every epic already in use.

    The suggested seq is the highest seq seen for that epic plus the
    configured step.
    """
    step = engine.settings.epic.seq_step
    highest: dict[str, int] = {}
    for index in engine.cache.values():
        for anchor in index.flatten():
            epic = anchor.attributes.epic
            if epic:
                highest[epic] = max(highest.get(epic, anchor.attributes.seq), anchor.attributes.seq)
    return [
        Completion(f"epic={epic},seq={seq + step}", f"[epic={epic},seq={seq + step}]", f"Next anchor in {epic}")
        for epic, seq in sorted(highest.items())
    ]
