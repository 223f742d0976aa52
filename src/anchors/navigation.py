"""Jump targets: file locations, anchor ids and link-behaviour anchors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from anchors.index import AnchorIndex, AnchorNode
from anchors.sources import normalize

if TYPE_CHECKING:
    from anchors.engine import AnchorEngine

# [./ or ../]path[:line or #id]
LINK_REGEX = re.compile(r"^(\.{1,2}[/\\])?(.+?)(:\d+|#[\w-]+)?$")


@dataclass(frozen=True)
class Location:
    """A resolved (or broken) jump target. Lines are 1-based."""

    path: Path
    line: int
    broken: bool = False
    reason: str | None = None

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class LinkTarget:
    """Where a link anchor points."""

    path: Path
    line: int | None = None
    anchor_id: str | None = None
    broken: bool = False
    reason: str | None = None

    @property
    def location(self) -> Location:
        return Location(self.path, self.line or 1, self.broken, self.reason)


async def _line_count(engine: AnchorEngine, path: Path) -> int | None:
    try:
        text = await engine.store.read(path)
    except OSError:
        return None
    return text.count("\n") + 1


async def resolve_location(engine: AnchorEngine, uri: str | Path, line: int) -> Location:
    """Validate a (file, line) pair."""
    path = normalize(uri)
    count = await _line_count(engine, path)
    if count is None:
        return Location(path, line, broken=True, reason="File not found")
    if not 1 <= line <= count:
        return Location(path, line, broken=True, reason=f"Line {line} out of range")
    return Location(path, line)


def find_anchor(engine: AnchorEngine, anchor_id: str, prefer: str | Path | None = None) -> tuple[Path, AnchorNode] | None:
    """Find an anchor by its ``id`` attribute, searching prefer's index first."""
    paths = sorted(engine.cache)
    if prefer is not None:
        preferred = normalize(prefer)
        paths.sort(key=lambda p: p != preferred)
    for path in paths:
        anchor = engine.cache[path].find_id(anchor_id)
        if anchor is not None:
            return path, anchor
    return None


async def locate_id(engine: AnchorEngine, anchor_id: str) -> Location | None:
    found = find_anchor(engine, anchor_id, prefer=engine.active)
    if found is None:
        return None
    path, anchor = found
    return Location(path, anchor.line_number)


def split_link(text: str) -> tuple[str | None, str, str] | None:
    """Split link text into (relative prefix, path, parameter)."""
    match = LINK_REGEX.match(text.strip())
    if match is None:
        return None
    return match.group(1), match.group(2), match.group(3) or ""


async def resolve_link(engine: AnchorEngine, anchor: AnchorNode, source: str | Path) -> LinkTarget:
    """Resolve a link anchor's text to a target.

    ``./`` and ``../`` paths are relative to the source file, other paths to
    the workspace root. An id target in a file not yet cached is parsed on
    demand. Missing files and ids produce a broken target, never an error.
    """
    parts = split_link(anchor.text)
    if parts is None:
        return LinkTarget(normalize(source), broken=True, reason="Empty link")
    relative, file_part, parameter = parts
    base = normalize(source).parent / relative if relative else engine.root
    path = normalize(base / file_part)

    if not path.is_file() and not engine.store.is_open(path):
        return LinkTarget(path, broken=True, reason="File not found")

    if parameter.startswith(":"):
        return LinkTarget(path, line=int(parameter[1:]))

    if parameter.startswith("#"):
        anchor_id = parameter[1:]
        index = engine.lookup(path)
        if index is None:
            await engine.add_or_replace(path)
            index = engine.lookup(path)
        target = index.find_id(anchor_id) if index is not None else None
        if target is None:
            return LinkTarget(path, anchor_id=anchor_id, broken=True, reason=f"Anchor {anchor_id} not found")
        return LinkTarget(path, line=target.line_number, anchor_id=anchor_id)

    return LinkTarget(path, line=1)


async def resolve_links(engine: AnchorEngine, uri: str | Path) -> list[tuple[AnchorNode, LinkTarget]]:
    """Targets for every link-behaviour anchor in uri's cached index."""
    index = engine.lookup(uri)
    if index is None:
        return []
    result = []
    for anchor in index.flatten():
        tag = engine.registry.get(anchor.tag)
        if tag is not None and tag.is_link:
            result.append((anchor, await resolve_link(engine, anchor, uri)))
    return result


def relative_anchor(index: AnchorIndex, line: int, direction: str) -> AnchorNode | None:
    """The nearest anchor above ("up") or below ("down") a 1-based cursor line."""
    anchors = sorted(index.flatten(), key=lambda a: a.start_offset)
    if direction == "up":
        above = [a for a in anchors if a.line_number < line]
        return above[-1] if above else None
    if direction == "down":
        return next((a for a in anchors if a.line_number > line), None)
    raise ValueError(f"invalid direction {direction!r}")
