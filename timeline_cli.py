from __future__ import annotations

import argparse
import logging
from pathlib import Path

from timeline_config import load_config
from timeline_core import DEFAULT_SECTION, TimelineError, section_page_name
from timeline_horizontal import generate_horizontal_timeline
from timeline_sections import generate_section_page
from timeline_site import generate_site


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", required=True, help="First day of the axis (YYYY-MM-DD).")
    parser.add_argument("--end", required=True, help="Last day of the axis (YYYY-MM-DD).")
    parser.add_argument("--config", type=Path, default=None, help="JSON file with geometry overrides.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="day-timeline",
        description="Generate day timeline HTML from a JSON feed, JSON file or spreadsheet.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    horizontal = subparsers.add_parser("horizontal", help="Generate horizontal timeline HTML.")
    horizontal.add_argument("-i", "--input", required=True, help="URL or path of the event source.")
    horizontal.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("timeline.html"),
        help="Path to output HTML file.",
    )
    horizontal.add_argument("--mount-id", default="timeline", help="Id of the timeline container element.")
    _add_range_args(horizontal)

    highlights = subparsers.add_parser("highlights", help="Generate the highlights hub HTML.")
    highlights.add_argument("-i", "--input", required=True, help="URL or path of the event source.")
    highlights.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(section_page_name(DEFAULT_SECTION)),
        help="Path to output HTML file.",
    )

    section = subparsers.add_parser("section", help="Generate the entry list of one section.")
    section.add_argument("-i", "--input", required=True, help="URL or path of the event source.")
    section.add_argument("-s", "--section", required=True, help="Section name.")
    section.add_argument("-o", "--output", type=Path, default=None, help="Path to output HTML file.")

    site = subparsers.add_parser("site", help="Generate the timeline plus highlights and section pages.")
    site.add_argument("-i", "--input", required=True, help="URL or path of the event source.")
    site.add_argument("-o", "--output", type=Path, default=Path("site"), help="Output directory.")
    _add_range_args(site)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "horizontal":
            config = load_config(args.config)
            generate_horizontal_timeline(args.input, args.output, args.start, args.end, config, args.mount_id)
            return 0
        if args.command == "highlights":
            generate_section_page(args.input, args.output, DEFAULT_SECTION)
            return 0
        if args.command == "section":
            output = args.output or Path(section_page_name(args.section))
            generate_section_page(args.input, output, args.section)
            return 0
        if args.command == "site":
            config = load_config(args.config)
            generate_site(args.input, args.output, args.start, args.end, config)
            return 0
    except (TimelineError, ValueError, OSError) as exc:
        parser.error(str(exc))

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
