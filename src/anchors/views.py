"""Display trees built from the engine cache.

Every entry is one of a closed set of frozen dataclasses, and render() is
the only place that turns an entry into text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Union

from rich.text import Text

from anchors.index import AnchorNode, filter_forest, filter_tree, flatten, strip_children

if TYPE_CHECKING:
    from anchors.engine import AnchorEngine

ICON_ANCHOR = "⚓"
ICON_REGION = "▤"
ICON_FILE = "📄"
ICON_EPIC = "◆"
ICON_ERROR = "✖"
ICON_LOADING = "…"
ICON_SCAN = "▶"
ICON_CURSOR = "➤"

WAITING_FOR_EDITOR = "Waiting for open editor..."
NO_ANCHORS = "No comment anchors detected"
NO_WORKSPACE_ANCHORS = "No comment anchors in workspace"
NO_EPICS = "No epics found"
WORKSPACE_DISABLED = "Workspace disabled"


@dataclass(frozen=True)
class AnchorEntry:
    anchor: AnchorNode
    path: Path
    show_line: bool = True
    children: tuple = ()


@dataclass(frozen=True)
class RegionEntry:
    anchor: AnchorNode
    path: Path
    show_line: bool = True
    expanded: bool = True
    children: tuple = ()


@dataclass(frozen=True)
class CachedFileEntry:
    path: Path
    label: str
    visible: int
    hidden: int
    children: tuple = ()


@dataclass(frozen=True)
class EpicEntry:
    epic: str
    children: tuple = ()


@dataclass(frozen=True)
class ErrorEntry:
    message: str
    children: tuple = field(default=(), repr=False)


@dataclass(frozen=True)
class LoadingEntry:
    message: str = "Loading anchors..."
    children: tuple = field(default=(), repr=False)


@dataclass(frozen=True)
class ScanPrompt:
    message: str = "Click to start workspace scan"
    children: tuple = field(default=(), repr=False)


@dataclass(frozen=True)
class CursorMarker:
    line: int
    children: tuple = field(default=(), repr=False)


DisplayNode = Union[
    AnchorEntry, RegionEntry, CachedFileEntry, EpicEntry, ErrorEntry, LoadingEntry, ScanPrompt, CursorMarker
]


def label(node: DisplayNode) -> str:
    """Plain label of a display node."""
    if isinstance(node, RegionEntry):
        anchor = node.anchor
        if not node.show_line:
            return anchor.display_text
        close = anchor.close_line_number if anchor.is_closed else "?"
        return f"[{anchor.line_number} - {close}] {anchor.display_text}"
    if isinstance(node, AnchorEntry):
        if node.show_line:
            return f"[{node.anchor.line_number}] {node.anchor.display_text}"
        return node.anchor.display_text
    if isinstance(node, CachedFileEntry):
        return node.label
    if isinstance(node, EpicEntry):
        return node.epic
    if isinstance(node, CursorMarker):
        return f"Cursor position (line {node.line})"
    if isinstance(node, (ErrorEntry, LoadingEntry, ScanPrompt)):
        return node.message
    raise TypeError(f"not a display node: {node!r}")


def render(node: DisplayNode) -> Text:
    """Styled single-line rendering of a display node."""
    text = label(node)
    if isinstance(node, RegionEntry):
        style = "bold" if node.anchor.is_closed else "bold yellow"
        return Text.assemble((ICON_REGION + " ", "magenta"), (text, style))
    if isinstance(node, AnchorEntry):
        return Text.assemble((ICON_ANCHOR + " ", "cyan"), text)
    if isinstance(node, CachedFileEntry):
        return Text.assemble(ICON_FILE + " ", (text, "bold"))
    if isinstance(node, EpicEntry):
        return Text.assemble((ICON_EPIC + " ", "green"), (text, "bold"))
    if isinstance(node, ErrorEntry):
        return Text.assemble((ICON_ERROR + " ", "red"), (text, "dim"))
    if isinstance(node, LoadingEntry):
        return Text(f"{ICON_LOADING} {text}", style="dim italic")
    if isinstance(node, ScanPrompt):
        return Text.assemble((ICON_SCAN + " ", "green"), (text, "underline"))
    return Text(f"{ICON_CURSOR} {text}", style="reverse")


def _entry(anchor: AnchorNode, path: Path, show_line: bool, expanded: bool = True) -> DisplayNode:
    children = tuple(_entry(child, path, show_line, expanded) for child in anchor.children)
    if anchor.is_region:
        return RegionEntry(anchor, path, show_line, expanded, children)
    return AnchorEntry(anchor, path, show_line, children)


def sort_anchors(anchors: list[AnchorNode], method: str) -> list[AnchorNode]:
    if method == "type":
        return sorted(anchors, key=lambda a: (a.tag, a.start_offset))
    return sorted(anchors, key=lambda a: a.start_offset)


def insert_cursor(entries: list[DisplayNode], cursor_line: int) -> list[DisplayNode]:
    """Place a cursor marker before the first anchor below the cursor line."""
    result: list[DisplayNode] = []
    placed = False
    for entry in entries:
        if not placed and isinstance(entry, (AnchorEntry, RegionEntry)) and entry.anchor.line_number > cursor_line:
            result.append(CursorMarker(cursor_line))
            placed = True
        result.append(entry)
    return result


def file_view(engine: AnchorEngine, cursor_line: int | None = None) -> list[DisplayNode]:
    """Anchors of the active document, hidden-scope anchors removed."""
    if not engine.loaded:
        return [LoadingEntry()]
    if engine.active is None:
        return [ErrorEntry(WAITING_FOR_EDITOR)]
    settings = engine.settings
    anchors = filter_forest(lambda a: not a.is_hidden, engine.get_current().anchors)
    if not anchors:
        return [ErrorEntry(NO_ANCHORS)]
    entries = [
        _entry(a, engine.active, settings.tags.display_line_number, settings.tags.expand_sections)
        for a in sort_anchors(anchors, settings.tags.sort_method)
    ]
    if settings.show_cursor and cursor_line is not None:
        entries = insert_cursor(entries, cursor_line)
    return entries


def format_path(path: Path, root: Path, path_format: str) -> str:
    """Workspace-relative posix path, shortened per path_format."""
    try:
        rel = path.relative_to(root).as_posix()
    except ValueError:
        rel = path.as_posix()
    if path_format == "hidden":
        return rel.rsplit("/", 1)[-1]
    if path_format == "abbreviated":
        segments = rel.split("/")
        return "/".join(s[0] if 0 < i < len(segments) - 1 and s else s for i, s in enumerate(segments))
    return rel


def file_stats(anchors, path: Path, root: Path, path_format: str) -> tuple[str, int, int]:
    """Label for a cached file with its visible and hidden anchor counts."""
    visible = sum(1 for a in anchors if a.is_visible_in_workspace)
    hidden = len(anchors) - visible
    stats = f"{visible} Anchors" + (f", {hidden} Hidden" if hidden else "")
    name = format_path(path, root, path_format)
    if path_format == "hidden":
        return name, visible, hidden
    return f"{name} ({stats})", visible, hidden


def _workspace_state(engine: AnchorEngine) -> list[DisplayNode] | None:
    workspace = engine.settings.workspace
    if not workspace.enabled:
        return [ErrorEntry(WORKSPACE_DISABLED)]
    if workspace.lazy_load and not engine.scanned:
        return [ScanPrompt()]
    if not engine.loaded:
        return [LoadingEntry()]
    return None


def workspace_view(engine: AnchorEngine) -> list[DisplayNode]:
    """One entry per cached file holding workspace-scoped anchors."""
    state = _workspace_state(engine)
    if state is not None:
        return state
    tags = engine.settings.tags
    workspace = engine.settings.workspace
    files: list[CachedFileEntry] = []
    for path, index in engine.cache.items():
        if not index.anchors:
            continue
        if tags.display_hierarchy_in_workspace:
            anchors = filter_forest(lambda a: a.is_visible_in_workspace, index.anchors)
        else:
            anchors = [strip_children(a) for a in flatten(index.anchors) if a.is_visible_in_workspace]
        if not anchors:
            continue
        name, visible, hidden = file_stats(list(index.anchors), path, engine.root, workspace.path_format)
        children = tuple(_entry(a, path, False, tags.expand_sections) for a in sort_anchors(anchors, tags.sort_method))
        files.append(CachedFileEntry(path, name, visible, hidden, children))
    if not files:
        return [ErrorEntry(NO_WORKSPACE_ANCHORS)]
    return sorted(files, key=lambda f: f.label)


def epic_view(engine: AnchorEngine) -> list[DisplayNode]:
    """Anchors grouped by epic attribute and ordered by seq."""
    state = _workspace_state(engine)
    if state is not None:
        return state
    hierarchy = engine.settings.tags.display_hierarchy_in_workspace
    epics: dict[str, list[tuple[AnchorNode, Path]]] = {}
    for path, index in engine.cache.items():
        for anchor in index.flatten():
            if anchor.attributes.epic and anchor.is_visible_in_workspace:
                epics.setdefault(anchor.attributes.epic, []).append((anchor, path))
    if not epics:
        return [ErrorEntry(NO_EPICS)]
    result = []
    for epic in sorted(epics):
        members = sorted(epics[epic], key=lambda pair: pair[0].attributes.seq)
        children = []
        for anchor, path in members:
            if hierarchy:
                anchor = filter_tree(lambda a: a.is_visible_in_workspace, anchor)
            else:
                anchor = strip_children(anchor)
            children.append(_entry(anchor, path, False))
        result.append(EpicEntry(epic, tuple(children)))
    return result
