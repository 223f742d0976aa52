"""Turn document text into an anchor tree.

A single pass over the matcher's hits. Region tags push onto a stack so that
later anchors nest under them until the matching end tag pops them again.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass, field

from anchors.constants import COMMENT_CLOSERS
from anchors.index import UNSET, AnchorIndex, AnchorNode, Attributes, FoldingRange
from anchors.matcher import GROUP_ATTRIBUTES, GROUP_COMMENT, GROUP_TAG, CompiledMatcher
from anchors.tags import TagDefinition, TagRegistry

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_TRAILING_ATTRIBUTES = re.compile(r"\s*\[([^\[\]\r\n]*)\]\s*$")


class LineIndex:
    """Offsets of every line start, for O(log n) offset -> line lookups."""

    def __init__(self, text: str):
        self._starts = [0] + [m.end() for m in _LINE_BREAK.finditer(text)]

    def line_of(self, offset: int) -> int:
        """1-based line number containing offset."""
        return bisect_right(self._starts, offset)


def parse_attributes(raw: str | None, line_number: int) -> Attributes:
    """Parse ``key=value,key=value``; seq defaults to the anchor's line.

    Pairs without ``=`` and unknown keys are ignored.
    """
    values: dict[str, str] = {}
    for pair in (raw or "").split(","):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        values[key.strip().lower()] = value.strip()

    seq = line_number
    if values.get("seq"):
        try:
            seq = int(values["seq"])
        except ValueError:
            pass
    return Attributes(seq=seq, epic=values.get("epic") or None, id=values.get("id") or None)


def strip_closer(comment: str) -> tuple[str, str | None]:
    """Remove a trailing comment closer. Returns (comment, closer or None)."""
    for closer in COMMENT_CLOSERS:
        if comment.endswith(closer):
            return comment[: -len(closer)].rstrip(), closer
    return comment, None


def split_trailing_attributes(comment: str) -> tuple[str, str | None]:
    """Split a trailing ``[k=v]`` block off the comment text.

    Only empty blocks or blocks containing ``=`` count, so bracketed prose
    such as ``[WIP]`` stays part of the comment.
    """
    match = _TRAILING_ATTRIBUTES.search(comment)
    if match is None:
        return comment, None
    inner = match.group(1)
    if inner.strip() and "=" not in inner:
        return comment, None
    return comment[: match.start()].rstrip(), inner


@dataclass
class _Pending:
    """Mutable stand-in for a node while its region is still open."""

    tag: TagDefinition
    text: str
    display_text: str
    start_offset: int
    end_offset: int
    line_number: int
    attributes: Attributes
    children: list = field(default_factory=list)
    close_start_offset: int = UNSET
    close_end_offset: int = UNSET
    close_line_number: int = UNSET
    close_attributes: Attributes | None = None

    def freeze(self) -> AnchorNode:
        return AnchorNode(
            tag=self.tag.name,
            text=self.text,
            display_text=self.display_text,
            start_offset=self.start_offset,
            end_offset=self.end_offset,
            line_number=self.line_number,
            attributes=self.attributes,
            scope=self.tag.scope,
            is_region=self.tag.is_region,
            children=tuple(child.freeze() for child in self.children),
            close_start_offset=self.close_start_offset,
            close_end_offset=self.close_end_offset,
            close_line_number=self.close_line_number,
            close_attributes=self.close_attributes,
        )


def _span(match: re.Match, tag: TagDefinition, text: str, closer: str | None) -> tuple[int, int]:
    """Highlight span of an occurrence according to the tag's style mode.

    In comment mode only the closer itself and the blanks around it are
    retracted.
    """
    if tag.style_mode == "full":
        return match.start(), match.end()
    start = match.start(GROUP_TAG)
    if tag.style_mode == "tag":
        return start, match.end(GROUP_TAG)
    floor = match.end(GROUP_TAG)
    end = _retract_blanks(text, match.end(), floor)
    if closer is not None and text.endswith(closer, floor, end):
        end = _retract_blanks(text, end - len(closer), floor)
    return start, end


def _retract_blanks(text: str, end: int, floor: int) -> int:
    while end > floor and text[end - 1] in " \t":
        end -= 1
    return end


def parse_anchors(
    text: str,
    matcher: CompiledMatcher,
    registry: TagRegistry,
    display_tag_name: bool = True,
) -> tuple[AnchorIndex, bool]:
    """Parse text into an AnchorIndex.

    Returns (index, found) where found is True if any start or end
    occurrence matched. Raises ParseError on a token the registry cannot
    resolve, which only happens when matcher and registry disagree.
    """
    lines = LineIndex(text)
    roots: list[_Pending] = []
    stack: list[_Pending] = []
    folds: list[FoldingRange] = []
    found = False

    for match in matcher.pattern.finditer(text):
        found = True
        tag, is_close = matcher.resolve(match.group(GROUP_TAG), registry)

        if is_close:
            if not stack or stack[-1].tag.key != tag.key:
                continue
            region = stack.pop()
            region.close_start_offset = match.start(GROUP_TAG)
            region.close_end_offset = match.end(GROUP_TAG)
            region.close_line_number = lines.line_of(region.close_start_offset)
            region.close_attributes = parse_attributes(match.group(GROUP_ATTRIBUTES), region.close_line_number)
            folds.append(FoldingRange(region.line_number - 1, region.close_line_number - 1))
            continue

        raw_comment = (match.group(GROUP_COMMENT) or "").strip()
        comment, closer = strip_closer(raw_comment)
        comment, trailing = split_trailing_attributes(comment)
        start, end = _span(match, tag, text, closer)
        line_number = lines.line_of(start)

        raw_attributes = match.group(GROUP_ATTRIBUTES)
        if trailing is not None and not (raw_attributes or "").strip():
            raw_attributes = trailing
        attributes = parse_attributes(raw_attributes, line_number)

        if not comment:
            display = tag.name
        elif display_tag_name:
            display = f"{tag.name}: {comment}"
        else:
            display = comment

        node = _Pending(tag, comment, display, start, end, line_number, attributes)
        if tag.is_region:
            stack.append(node)

        # the enclosing region sits below the node just pushed, if any
        depth = len(stack) - (2 if tag.is_region else 1)
        if depth >= 0:
            stack[depth].children.append(node)
        else:
            roots.append(node)

    index = AnchorIndex(anchors=tuple(node.freeze() for node in roots), folds=tuple(folds))
    return index, found
