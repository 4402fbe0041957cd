from __future__ import annotations

import html
from collections.abc import Iterable, Sequence
from pathlib import Path

from timeline_config import TimelineConfig
from timeline_core import (
    DEFAULT_SECTION,
    Event,
    day_anchor,
    entry_anchor,
    render_byline_html,
    section_page_name,
    sorted_events,
)
from timeline_grouping import group_by_date
from timeline_horizontal import page_html
from timeline_source import load_events


EMPTY_LIST_HTML = "<div class='list'><div class='item'><p>No entries yet.</p></div></div>"


def events_on_page(events: Iterable[Event], section: str) -> list[Event]:
    """Events of every section that shares ``section``'s page."""
    page = section_page_name(section)
    return [e for e in events if section_page_name(e.section) == page]


def render_section_list_html(events: Iterable[Event], section: str) -> str:
    items = sorted_events(events_on_page(events, section))
    if not items:
        return EMPTY_LIST_HTML

    parts = ["<div class='list'>"]
    for event in items:
        parts.append(
            f"<article class='item' id='{html.escape(entry_anchor(event), quote=True)}'>"
            f"<h3>{event.day.isoformat()} &mdash; {html.escape(event.title)}</h3>"
            f"<p>{html.escape(event.text)}</p>"
            "</article>"
        )
    parts.append("</div>")
    return "\n".join(parts)


def _entry_html(event: Event) -> str:
    return (
        f"<div class='entry-item' id='{html.escape(entry_anchor(event), quote=True)}'>"
        f"<h4>{event.day.isoformat()} &mdash; {html.escape(event.title)}</h4>"
        f"{render_byline_html(event.author)}"
        f"<p>{html.escape(event.text)}</p>"
        f"<div class='meta'><span class='pill'>{html.escape(event.labels or event.section)}</span></div>"
        "</div>"
    )


def render_highlights_hub_html(events: Iterable[Event], section: str = DEFAULT_SECTION) -> str:
    """One block per day, newest day first, anchored for deep links from the timeline."""
    groups, days = group_by_date(events_on_page(events, section))
    if not days:
        return EMPTY_LIST_HTML

    parts = ["<div class='list'>"]
    for day in reversed(days):
        entries = groups[day]
        noun = "entry" if len(entries) == 1 else "entries"
        parts.append(f"<article class='entry' id='{day_anchor(day)}'>")
        parts.append(f"<h3>{day.isoformat()} &mdash; {len(entries)} {noun}</h3>")
        parts.extend(_entry_html(event) for event in entries)
        parts.append("</article>")
    parts.append("</div>")
    return "\n".join(parts)


def section_page(events: Sequence[Event], section: str, config: TimelineConfig | None = None) -> str:
    config = config or TimelineConfig()
    if section_page_name(section) == section_page_name(DEFAULT_SECTION):
        return page_html("Highlights", render_highlights_hub_html(events, section), config)
    return page_html(section.title(), render_section_list_html(events, section), config)


def generate_section_page(source: str | Path, output_path: str | Path, section: str = DEFAULT_SECTION) -> None:
    events = load_events(source)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(section_page(events, section), encoding="utf-8")
    print(f"Saved: {output_path.resolve()}")
