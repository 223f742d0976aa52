"""Shared helpers for CLI command handlers."""

import asyncio
import json
import logging
import sys
from pathlib import Path

from anchors.config import load_settings
from anchors.engine import AnchorEngine
from anchors.index import AnchorNode


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def _stderr_report(level: str, message: str) -> None:
    print(f"{level}: {message}", file=sys.stderr)


def make_engine(args) -> AnchorEngine:
    """Engine for the workspace named by --root, with its matcher built. Exit 1 on bad config."""
    configure_logging(getattr(args, "verbose", False))
    root = Path(args.root).resolve()
    if not root.is_dir():
        error(f"Workspace '{root}' is not a directory.", args.json)
    settings = load_settings(root, getattr(args, "config", None))
    engine = AnchorEngine(root, settings, report=_stderr_report)
    if not engine.build_matcher():
        error("Invalid anchor configuration.", args.json)
    return engine


def scan_workspace(engine: AnchorEngine) -> int:
    """Run a full workspace scan regardless of the lazy-load setting."""
    engine.settings.workspace.enabled = True
    return asyncio.run(engine.scan_workspace())


def parse_file(engine: AnchorEngine, path: str, json_mode: bool) -> Path:
    """Parse one file into the engine and make it active. Exit 1 if unreadable."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        error(f"File '{path}' not found.", json_mode)

    async def _parse():
        engine.loaded = True
        await engine.set_active(file_path)

    asyncio.run(_parse())
    return file_path


def anchor_to_dict(anchor: AnchorNode) -> dict:
    """JSON-friendly nested form of an anchor."""
    data = {
        "tag": anchor.tag,
        "text": anchor.text,
        "display": anchor.display_text,
        "line": anchor.line_number,
        "seq": anchor.attributes.seq,
        "id": anchor.attributes.id,
        "epic": anchor.attributes.epic,
    }
    if anchor.is_region:
        data["end_line"] = anchor.close_line_number if anchor.is_closed else None
    if anchor.children:
        data["children"] = [anchor_to_dict(child) for child in anchor.children]
    return data


def relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)
