"""Main Textual application for anchors."""

from __future__ import annotations

from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from anchors.config import Settings, load_settings
from anchors.engine import AnchorEngine
from anchors.ui.tree import AnchorTree

SEVERITY = {
    "debug": "information",
    "info": "information",
    "warning": "warning",
    "error": "error",
}


class AnchorsApp(App):
    """Comment anchor browser TUI."""

    TITLE = "anchors"
    BINDINGS = [
        ("v", "cycle_view", "View"),
        ("s", "scan", "Scan"),
        ("r", "reparse", "Re-parse"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, root: Path, settings: Settings | None = None, active: Path | None = None):
        super().__init__()
        self.engine = AnchorEngine(root, settings or load_settings(root), report=self._report_to_user)
        self.initial = active

    def compose(self) -> ComposeResult:
        yield Header()
        yield AnchorTree(self.engine, view="file" if self.initial else "workspace", id="anchors")
        yield Footer()

    def on_mount(self) -> None:
        self._update_subtitle()
        self.run_worker(self._start_engine(), exclusive=True, group="engine")

    async def _start_engine(self) -> None:
        if self.initial is not None:
            self.engine.active = self.initial
        await self.engine.rebuild()
        self._update_subtitle()

    def _report_to_user(self, level: str, message: str) -> None:
        self.notify(message, severity=SEVERITY.get(level, "information"))

    def _scan_progress(self, fraction: float) -> None:
        self.sub_title = f"Scanning {fraction:.0%}"

    def _update_subtitle(self) -> None:
        tree = self.query_one(AnchorTree)
        active = self.engine.active
        self.sub_title = f"{tree.view_name}: {active.name}" if tree.view_name == "file" and active else tree.view_name

    async def _run_scan(self) -> None:
        await self.engine.scan_workspace(self._scan_progress)
        self._update_subtitle()

    def action_cycle_view(self) -> None:
        self.query_one(AnchorTree).cycle_view()
        self._update_subtitle()

    def action_scan(self) -> None:
        if not self.engine.settings.workspace.enabled:
            self.notify("Workspace disabled", severity="warning")
            return
        self.run_worker(self._run_scan(), exclusive=True, group="engine")

    def action_reparse(self) -> None:
        if self.engine.active is not None:
            self.run_worker(self.engine.add_or_replace(self.engine.active), group="parse")

    def on_anchor_tree_scan_requested(self, event: AnchorTree.ScanRequested) -> None:
        self.action_scan()

    async def on_anchor_tree_file_selected(self, event: AnchorTree.FileSelected) -> None:
        tree = self.query_one(AnchorTree)
        tree.marker_line = event.line
        tree.view_name = "file"
        with tree.suppressing():
            await self.engine.set_active(event.path)
        tree.refresh_view()
        self._update_subtitle()
