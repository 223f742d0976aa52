"""Handler for 'anchors tags' command."""

from dataclasses import asdict

from anchors.cli._common import make_engine, output_json
from anchors.tags import summarize


def tags(args) -> int:
    """List registered tags with their behaviour and scope."""
    engine = make_engine(args)
    rows = summarize(engine.registry, engine.settings.tags.end_tag)

    if args.json:
        output_json([asdict(r) for r in rows])
        return 0

    for r in rows:
        end = f"  (ends with {r.end_token})" if r.end_token else ""
        print(f"{r.name:<12} {r.behavior:<7} {r.scope:<10} {r.style_mode}{end}")
    return 0
