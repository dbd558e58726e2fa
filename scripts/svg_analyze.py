#!/usr/bin/env python3
"""Analyze SVG geometry: shape type, visual centroid and viewBox fit."""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.config import DEFAULT_CONFIG, parse_config_file
from badge_svg.geometry import analyze_svg_content, format_geometry_report
from badge_svg.viewbox import analyze_svg_viewbox_fit, format_fit_report


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error, 2 if the viewBox needs
        adjustment).
    """
    parser = argparse.ArgumentParser(
        description="Analyze SVG geometry: shape type, visual centroid and viewBox fit."
    )
    parser.add_argument("svg_file", type=Path, help="Path to SVG file to analyze")
    parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML engine config")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.svg_file.exists():
        print(f"Error: File not found: {args.svg_file}", file=sys.stderr)
        return 1

    config = DEFAULT_CONFIG
    if args.config:
        if not args.config.exists():
            print(f"Error: Config file not found: {args.config}", file=sys.stderr)
            return 1
        try:
            config = parse_config_file(args.config)
        except Exception as e:
            print(f"Error: Failed to parse config file: {e}", file=sys.stderr)
            return 1

    try:
        svg_content = args.svg_file.read_text(encoding="utf-8")
    except Exception as e:
        print(f"Error: Failed to read SVG: {e}", file=sys.stderr)
        return 1

    geometry = analyze_svg_content(svg_content, config)
    fit = analyze_svg_viewbox_fit(svg_content, config)

    if args.format == "json":
        output = json.dumps(
            {
                "file": str(args.svg_file),
                "geometry": geometry.to_dict(),
                "viewbox_fit": fit.to_dict(),
            },
            indent=2,
            ensure_ascii=False,
        )
    else:
        output = "\n".join(
            [
                f"File: {args.svg_file}",
                "",
                format_geometry_report(geometry),
                "",
                format_fit_report(fit),
            ]
        )

    print(output)

    return 2 if fit.needs_adjustment else 0


if __name__ == "__main__":
    sys.exit(main())
