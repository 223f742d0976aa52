"""Comment anchor indexing engine."""

from anchors.engine import AnchorEngine
from anchors.index import AnchorIndex, AnchorNode, Attributes
from anchors.matcher import CompiledMatcher, compile_matcher
from anchors.parser import parse_anchors
from anchors.tags import TagDefinition, TagRegistry

__all__ = [
    "AnchorEngine",
    "AnchorIndex",
    "AnchorNode",
    "Attributes",
    "CompiledMatcher",
    "TagDefinition",
    "TagRegistry",
    "compile_matcher",
    "parse_anchors",
]
