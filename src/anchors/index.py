"""Immutable anchor trees and the per-document index built from them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterator

# Close fields of a region that never found its end tag
UNSET = -1


@dataclass(frozen=True)
class Attributes:
    """Values parsed from an anchor's ``[key=value,...]`` block."""

    seq: int
    epic: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class AnchorNode:
    """One parsed anchor occurrence.

    Offsets are character offsets into the document text; line numbers are
    1-based. Region nodes carry the span of their end tag in the close_*
    fields, which stay at UNSET while the region is open-ended.
    """

    tag: str
    text: str
    display_text: str
    start_offset: int
    end_offset: int
    line_number: int
    attributes: Attributes
    scope: str = "workspace"
    is_region: bool = False
    children: tuple[AnchorNode, ...] = ()
    close_start_offset: int = UNSET
    close_end_offset: int = UNSET
    close_line_number: int = UNSET
    close_attributes: Attributes | None = None

    @property
    def is_closed(self) -> bool:
        return self.close_line_number != UNSET

    @property
    def is_hidden(self) -> bool:
        return self.scope == "hidden"

    @property
    def is_visible_in_workspace(self) -> bool:
        return self.scope == "workspace"

    def walk(self) -> Iterator[AnchorNode]:
        """Yield this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class FoldingRange:
    """Zero-based line range spanned by a closed region."""

    start_line: int
    end_line: int


def flatten(anchors: tuple[AnchorNode, ...] | list[AnchorNode]) -> list[AnchorNode]:
    """Depth-first list of every anchor in a forest."""
    result: list[AnchorNode] = []
    for anchor in anchors:
        result.extend(anchor.walk())
    return result


def filter_tree(predicate: Callable[[AnchorNode], bool], node: AnchorNode) -> AnchorNode | None:
    """Return a copy of node keeping only descendants that satisfy predicate.

    A node failing the predicate is dropped together with its subtree.
    """
    if not predicate(node):
        return None
    kept = tuple(c for c in (filter_tree(predicate, child) for child in node.children) if c is not None)
    if kept == node.children:
        return node
    return replace(node, children=kept)


def filter_forest(predicate: Callable[[AnchorNode], bool], anchors) -> list[AnchorNode]:
    return [n for n in (filter_tree(predicate, a) for a in anchors) if n is not None]


def strip_children(node: AnchorNode) -> AnchorNode:
    return replace(node, children=()) if node.children else node


@dataclass(frozen=True)
class AnchorIndex:
    """All anchors found in one document snapshot.

    Built once per parse and never changed afterwards; ``text_index`` maps
    display text to the last anchor carrying it.
    """

    anchors: tuple[AnchorNode, ...] = ()
    folds: tuple[FoldingRange, ...] = ()
    text_index: dict[str, AnchorNode] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        for anchor in flatten(self.anchors):
            self.text_index[anchor.display_text] = anchor

    def __len__(self) -> int:
        return len(self.anchors)

    def __bool__(self) -> bool:
        return bool(self.anchors)

    def flatten(self) -> list[AnchorNode]:
        return flatten(self.anchors)

    def find_id(self, anchor_id: str) -> AnchorNode | None:
        for anchor in self.flatten():
            if anchor.attributes.id == anchor_id:
                return anchor
        return None


EMPTY = AnchorIndex()
