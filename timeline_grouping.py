from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from timeline_axis import DateRange
from timeline_core import DEFAULT_SECTION, Event, sorted_events


logger = logging.getLogger(__name__)


def filter_to_range(events: Iterable[Event], date_range: DateRange) -> list[Event]:
    return sorted_events(e for e in events if e.day in date_range)


def _collapse_duplicate_ids(day: date, members: list[Event]) -> list[Event]:
    # Members arrive sorted by every field; keep the first of each id.
    kept: list[Event] = []
    for event in members:
        if kept and kept[-1].event_id == event.event_id:
            logger.warning("Duplicate event id %r on %s; keeping one entry", event.event_id, day.isoformat())
            continue
        kept.append(event)
    return kept


def _order_key(event: Event) -> tuple:
    author = event.author
    return (
        event.day,
        event.event_id,
        event.title,
        event.text,
        event.section,
        event.labels or "",
        event.video or "",
        event.images,
        author.name if author else "",
        (author.author_id or "") if author else "",
    )


def group_by_date(events: Iterable[Event]) -> tuple[dict[date, list[Event]], list[date]]:
    """Group events into one list per calendar day.

    Lists are ordered by ``(day, event_id)`` regardless of input order, so
    grouping the same set twice yields identical groups. Returns the mapping
    together with the ascending list of days present.
    """
    by_date: dict[date, list[Event]] = {}
    for event in events:
        by_date.setdefault(event.day, []).append(event)

    groups: dict[date, list[Event]] = {}
    for day in sorted(by_date):
        members = sorted(by_date[day], key=_order_key)
        groups[day] = _collapse_duplicate_ids(day, members)
    return groups, list(groups)


def select_primary(group: Sequence[Event]) -> Event:
    if not group:
        raise ValueError("Cannot select a primary event from an empty day group")
    for event in group:
        if event.section == DEFAULT_SECTION:
            return event
    return group[0]
