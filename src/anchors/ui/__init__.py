"""Textual UI for anchors."""

from anchors.ui.app import AnchorsApp
from anchors.ui.tree import AnchorTree
from anchors.ui.watcher import EngineWatcherMixin

__all__ = [
    "AnchorTree",
    "AnchorsApp",
    "EngineWatcherMixin",
]
