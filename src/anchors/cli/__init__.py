"""CLI argument parser and dispatch for anchors."""

import argparse

from anchors.cli.export import export
from anchors.cli.goto import goto, links
from anchors.cli.scan import scan, show
from anchors.cli.tags import tags


def _common_options(suppress: bool = False) -> argparse.ArgumentParser:
    """Options accepted both before and after the noun.

    The noun's copy leaves unset options alone so it cannot overwrite
    values given before the noun.
    """

    def default(value):
        return argparse.SUPPRESS if suppress else value

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", default=default("."), help="Workspace root (default: .)")
    common.add_argument("--config", default=default(None), help="Settings file (default: <root>/.anchors.yml)")
    common.add_argument("--json", action="store_true", default=default(False), help="Machine-readable JSON output")
    common.add_argument(
        "-v", "--verbose", action="store_true", default=default(False), help="Debug logging on stderr"
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = _common_options(suppress=True)

    parser = argparse.ArgumentParser(
        prog="anchors",
        description="Index comment anchors in a source tree",
        parents=[_common_options()],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- scan ---
    scan_p = nouns.add_parser("scan", help="Scan the workspace for anchors", parents=[common])
    scan_p.set_defaults(func=scan)

    # --- show ---
    show_p = nouns.add_parser("show", help="Show anchors in one file", parents=[common])
    show_p.add_argument("file", help="File to parse")
    show_p.add_argument("--line", type=int, help="Cursor line to mark in the listing")
    show_p.set_defaults(func=show)

    # --- export ---
    export_p = nouns.add_parser("export", help="Export workspace anchors", parents=[common])
    export_p.add_argument("--format", choices=["csv", "json"], help="Output format (default: from --output, else json)")
    export_p.add_argument("-o", "--output", help="Write to file instead of stdout")
    export_p.set_defaults(func=export)

    # --- tags ---
    tags_p = nouns.add_parser("tags", help="List registered tags", parents=[common])
    tags_p.set_defaults(func=tags)

    # --- goto ---
    goto_p = nouns.add_parser("goto", help="Resolve an anchor id or FILE:LINE", parents=[common])
    goto_p.add_argument("target", help="Anchor id, or FILE:LINE")
    goto_p.set_defaults(func=goto)

    # --- links ---
    links_p = nouns.add_parser("links", help="Check link anchors in a file", parents=[common])
    links_p.add_argument("file", help="File to check")
    links_p.set_defaults(func=links)

    return parser
