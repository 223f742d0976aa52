"""Entry point for anchors CLI."""

import sys
from pathlib import Path

NOUNS = {"scan", "show", "export", "tags", "goto", "links"}


def main():
    # No subcommand or non-noun argument = TUI mode
    if len(sys.argv) < 2 or (sys.argv[1] not in NOUNS and not sys.argv[1].startswith("-")):
        from anchors.ui import AnchorsApp

        path = Path(sys.argv[1] if len(sys.argv) > 1 else ".").resolve()
        if path.is_file():
            app = AnchorsApp(path.parent, active=path)
        else:
            app = AnchorsApp(path)
        app.run()
        return

    from anchors.cli import build_parser

    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
