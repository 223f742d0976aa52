"""Tree widget showing one of the anchor views."""

from __future__ import annotations

from pathlib import Path

from textual.message import Message
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from anchors.engine import AnchorEngine
from anchors.views import (
    AnchorEntry,
    CachedFileEntry,
    DisplayNode,
    RegionEntry,
    ScanPrompt,
    epic_view,
    file_view,
    render,
    workspace_view,
)
from anchors.ui.watcher import EngineWatcherMixin

VIEWS = {
    "file": file_view,
    "workspace": workspace_view,
    "epic": epic_view,
}
VIEW_ORDER = list(VIEWS)


class AnchorTree(EngineWatcherMixin, Tree):
    """Redraws itself from the engine cache after every re-parse."""

    class FileSelected(Message):
        """A file or an anchor inside one was chosen."""

        def __init__(self, path: Path, line: int | None = None) -> None:
            super().__init__()
            self.path = path
            self.line = line

    class ScanRequested(Message):
        """The scan prompt was chosen."""

    def __init__(self, engine: AnchorEngine, view: str = "file", **kwargs) -> None:
        self._init_watcher()
        super().__init__("anchors", **kwargs)
        self.engine = engine
        self.view_name = view
        self.marker_line: int | None = None
        self.show_root = False

    def on_mount(self) -> None:
        self.engine_watch(self.engine, self._on_engine_changed)
        self.refresh_view()

    def _on_engine_changed(self, engine: AnchorEngine) -> None:
        self.call_later(self.refresh_view)

    def entries(self) -> list[DisplayNode]:
        if self.view_name == "file":
            return file_view(self.engine, self.marker_line)
        return VIEWS[self.view_name](self.engine)

    def refresh_view(self) -> None:
        self.clear()
        for entry in self.entries():
            self._add(self.root, entry)
        self.root.expand()

    def _add(self, parent: TreeNode, entry: DisplayNode) -> None:
        if not entry.children:
            parent.add_leaf(render(entry), data=entry)
            return
        expand = entry.expanded if isinstance(entry, RegionEntry) else True
        node = parent.add(render(entry), data=entry, expand=expand)
        for child in entry.children:
            self._add(node, child)

    def cycle_view(self) -> str:
        self.view_name = VIEW_ORDER[(VIEW_ORDER.index(self.view_name) + 1) % len(VIEW_ORDER)]
        self.refresh_view()
        return self.view_name

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        event.stop()
        entry = event.node.data
        if isinstance(entry, ScanPrompt):
            self.post_message(self.ScanRequested())
        elif isinstance(entry, CachedFileEntry):
            self.post_message(self.FileSelected(entry.path))
        elif isinstance(entry, (AnchorEntry, RegionEntry)):
            self.post_message(self.FileSelected(entry.path, entry.anchor.line_number))
