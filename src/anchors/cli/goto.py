"""Handlers for 'anchors goto' and 'anchors links' commands."""

import asyncio
import re

from anchors.cli._common import error, make_engine, output_json, parse_file, relative, scan_workspace
from anchors.navigation import locate_id, resolve_links, resolve_location

_FILE_LINE = re.compile(r"^(.+):(\d+)$")


def goto(args) -> int:
    """Resolve an anchor id or a FILE:LINE pair to a location."""
    engine = make_engine(args)
    match = _FILE_LINE.match(args.target)

    if match:
        location = asyncio.run(resolve_location(engine, engine.root / match.group(1), int(match.group(2))))
        if location.broken:
            error(f"{args.target}: {location.reason}", args.json)
    else:
        scan_workspace(engine)
        location = asyncio.run(locate_id(engine, args.target))
        if location is None:
            error(f"Anchor '{args.target}' not found.", args.json)

    if args.json:
        output_json({"file": str(location.path), "line": location.line})
    else:
        print(location)
    return 0


def links(args) -> int:
    """List link anchors of a file and where they point."""
    engine = make_engine(args)
    path = parse_file(engine, args.file, args.json)
    results = asyncio.run(resolve_links(engine, path))

    items = []
    for anchor, target in results:
        items.append(
            {
                "line": anchor.line_number,
                "link": anchor.text,
                "file": relative(target.path, engine.root),
                "target_line": target.line,
                "broken": target.broken,
                "reason": target.reason,
            }
        )

    if args.json:
        output_json(items)
    else:
        for item in items:
            if item["broken"]:
                print(f"{item['line']:>5}  {item['link']}  -> broken: {item['reason']}")
            else:
                print(f"{item['line']:>5}  {item['link']}  -> {item['file']}:{item['target_line']}")
    return 1 if any(i["broken"] for i in items) else 0
