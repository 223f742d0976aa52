"""Flatten cached anchor indexes into export rows, CSV or JSON."""

import csv
import io
import json
from pathlib import Path

from anchors.index import AnchorIndex

CSV_COLUMNS = ["Filename", "Line", "Tag", "Text", "Id", "Epic"]


def flatten_rows(cache: dict[Path, AnchorIndex]) -> list[dict]:
    """One row per anchor, files in path order, anchors depth-first."""
    rows = []
    for path in sorted(cache):
        for anchor in cache[path].flatten():
            rows.append(
                {
                    "filePath": str(path),
                    "lineNumber": anchor.line_number,
                    "tag": anchor.tag,
                    "text": anchor.text or anchor.tag,
                    "id": anchor.attributes.id,
                    "epic": anchor.attributes.epic,
                }
            )
    return rows


def to_csv(rows: list[dict]) -> str:
    """Serialize export rows as CSV with a header line."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in rows:
        writer.writerow(
            [
                row["filePath"],
                row["lineNumber"],
                row["tag"],
                row["text"],
                row["id"] or "",
                row["epic"] or "",
            ]
        )
    return buf.getvalue()


def to_json(rows: list[dict]) -> str:
    """Serialize export rows as ``{path: [{tag, text, line, id, epic}, ...]}``."""
    files: dict[str, list[dict]] = {}
    for row in rows:
        files.setdefault(row["filePath"], []).append(
            {
                "tag": row["tag"],
                "text": row["text"],
                "line": row["lineNumber"],
                "id": row["id"],
                "epic": row["epic"],
            }
        )
    return json.dumps(files, indent=2)
