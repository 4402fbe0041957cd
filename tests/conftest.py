from __future__ import annotations

from datetime import date

from timeline_core import Author, Event


def make_event(
    event_id: str,
    day: str,
    title: str = "",
    section: str = "highlights",
    text: str = "",
    labels: str | None = None,
    author: Author | None = None,
) -> Event:
    """Factory for test events."""
    return Event(
        event_id=event_id,
        day=date.fromisoformat(day),
        title=title or f"Event {event_id}",
        text=text,
        section=section,
        labels=labels,
        author=author,
    )
