from __future__ import annotations

import logging
from pathlib import Path

from timeline_axis import DateRange
from timeline_config import TimelineConfig
from timeline_core import DEFAULT_SECTION, TIMELINE_SLUG, section_page_name
from timeline_horizontal import render_timeline_html
from timeline_sections import section_page
from timeline_source import load_events


logger = logging.getLogger(__name__)

TIMELINE_PAGE = f"{TIMELINE_SLUG}.html"


def generate_site(
    source: str | Path,
    output_dir: str | Path,
    start: object,
    end: object,
    config: TimelineConfig | None = None,
) -> list[Path]:
    """Write the timeline and every page its cards link to.

    Events are fetched once and shared by all pages.
    """
    config = config or TimelineConfig()
    date_range = DateRange.parse(start, end)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    events = load_events(source)
    pages = {TIMELINE_PAGE: render_timeline_html(events, date_range, config)}

    # A page lists every section that maps to it, so each name is rendered once.
    others = sorted({event.section for event in events} - {DEFAULT_SECTION})
    for section in [DEFAULT_SECTION] + others:
        name = section_page_name(section)
        if name in pages:
            logger.debug("Section %r shares page %s", section, name)
            continue
        pages[name] = section_page(events, section, config)

    written: list[Path] = []
    for name, html_text in pages.items():
        path = output_dir / name
        path.write_text(html_text, encoding="utf-8")
        written.append(path)
    print(f"Site saved to {output_dir.resolve()} ({len(written)} pages)")
    return written
