#!/usr/bin/env python3
"""Compose a badge template with overrides and write the SVG."""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.clipping import DEFAULT_RENDER_SCOPE
from badge_svg.compositor import compose
from badge_svg.config import DEFAULT_CONFIG, parse_config_file
from badge_svg.svg_writer import export_svg_document, render_fragment
from badge_svg.template import parse_overrides_file, parse_template_file


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for input errors, 2 for composition errors).
    """
    parser = argparse.ArgumentParser(
        description="Compose a badge template with overrides and write the SVG."
    )
    parser.add_argument("template", type=Path, help="Path to YAML template file")
    parser.add_argument(
        "--overrides", type=Path, help="YAML file of per-layer overrides"
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML engine config")
    parser.add_argument(
        "--scope",
        default=DEFAULT_RENDER_SCOPE,
        help=f"Render scope appended to clip ids (default: {DEFAULT_RENDER_SCOPE})",
    )
    parser.add_argument(
        "--output", "-o", type=Path, help="Output SVG file (default: stdout)"
    )
    parser.add_argument(
        "--fragment",
        action="store_true",
        help="Write only the defs and layer markup, without the svg document",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate input files exist
    for label, path in (
        ("Template", args.template),
        ("Overrides", args.overrides),
        ("Config", args.config),
    ):
        if path is not None and not path.exists():
            print(f"Error: {label} file not found: {path}", file=sys.stderr)
            return 1

    config = DEFAULT_CONFIG
    if args.config:
        try:
            config = parse_config_file(args.config)
        except Exception as e:
            print(f"Error: Failed to parse config file: {e}", file=sys.stderr)
            return 1

    try:
        template = parse_template_file(args.template)
    except Exception as e:
        print(f"Error: Failed to parse template: {e}", file=sys.stderr)
        return 1

    overrides = {}
    if args.overrides:
        try:
            overrides = parse_overrides_file(args.overrides)
        except Exception as e:
            print(f"Error: Failed to parse overrides: {e}", file=sys.stderr)
            return 1

    try:
        composition = compose(template, overrides, scope=args.scope, config=config)
    except Exception as e:
        print(f"Error: Failed to compose template: {e}", file=sys.stderr)
        return 2

    if args.fragment:
        output = render_fragment(composition)
    else:
        output = export_svg_document(composition)

    if args.output:
        try:
            args.output.write_text(output, encoding="utf-8")
            print(f"Output written to: {args.output}")
        except Exception as e:
            print(f"Error: Failed to write output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
