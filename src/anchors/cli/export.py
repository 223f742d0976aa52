"""Handler for 'anchors export' command."""

import sys
from pathlib import Path

from anchors.cli._common import error, make_engine, scan_workspace
from anchors.export import flatten_rows, to_csv, to_json


def export(args) -> int:
    """Scan the workspace and write every anchor as CSV or JSON."""
    fmt = args.format
    if fmt is None and args.output:
        fmt = "csv" if Path(args.output).suffix.lower() == ".csv" else "json"
    fmt = fmt or "json"

    engine = make_engine(args)
    scan_workspace(engine)
    rows = flatten_rows(engine.cache)
    text = to_csv(rows) if fmt == "csv" else to_json(rows)

    if args.output:
        try:
            Path(args.output).write_text(text, encoding="utf-8")
        except OSError as e:
            error(f"Cannot write '{args.output}': {e.strerror}", args.json)
        print(f"Exported {len(rows)} anchors to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    return 0
