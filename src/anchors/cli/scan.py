"""Handlers for 'anchors scan' and 'anchors show' commands."""

from anchors.cli._common import anchor_to_dict, make_engine, output_json, parse_file, relative, scan_workspace
from anchors.views import file_view, label, workspace_view


def _print_tree(nodes, indent: str = "  ") -> None:
    for node in nodes:
        print(f"{indent}{label(node)}")
        _print_tree(node.children, indent + "  ")


def scan(args) -> int:
    """Scan the workspace and list every file with anchors."""
    engine = make_engine(args)
    count = scan_workspace(engine)

    if args.json:
        files = {
            relative(path, engine.root): [anchor_to_dict(a) for a in index.anchors]
            for path, index in sorted(engine.cache.items())
            if index.anchors
        }
        output_json({"files": files, "count": count})
        return 0

    entries = workspace_view(engine)
    for entry in entries:
        print(label(entry))
        _print_tree(entry.children)
    noun = "file" if count == 1 else "files"
    print(f"{count} {noun} with anchors")
    return 0


def show(args) -> int:
    """Show the anchor tree of a single file."""
    engine = make_engine(args)
    path = parse_file(engine, args.file, args.json)
    index = engine.get_current()

    if args.json:
        output_json(
            {
                "file": str(path),
                "anchors": [anchor_to_dict(a) for a in index.anchors],
                "folds": [[f.start_line, f.end_line] for f in index.folds],
            }
        )
        return 0

    _print_tree(file_view(engine, cursor_line=args.line), indent="")
    return 0
