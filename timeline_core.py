from __future__ import annotations

import html
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from urllib.parse import quote

import pandas as pd


logger = logging.getLogger(__name__)

DEFAULT_SECTION = "highlights"
TIMELINE_SLUG = "timeline"

RECORD_COLUMNS = ("id", "date", "title", "text", "section", "images", "video", "author", "labels")


class TimelineError(Exception):
    """Base class for timeline layout errors."""


class InvalidRangeError(TimelineError, ValueError):
    pass


class PlacementOrderError(TimelineError, ValueError):
    pass


class GeometryError(TimelineError):
    pass


class MeasurementNotReadyError(GeometryError):
    pass


@dataclass(frozen=True)
class Author:
    name: str
    author_id: str | None = None


@dataclass(frozen=True)
class Event:
    event_id: str
    day: date
    title: str = ""
    text: str = ""
    section: str = DEFAULT_SECTION
    images: tuple[str, ...] = ()
    video: str | None = None
    author: Author | None = None
    labels: str | None = None


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def parse_iso_day(value: object) -> date | None:
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(str(value).strip(), format="%Y-%m-%d", errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def normalize_text(value: object) -> str:
    if is_missing(value):
        return ""
    return str(value)


def normalize_author(value: object) -> Author | None:
    if is_missing(value) or value == "":
        return None
    if isinstance(value, str):
        return Author(name=value)
    if isinstance(value, Mapping):
        name = value.get("name")
        if not name:
            return None
        raw_id = value.get("id")
        return Author(name=str(name), author_id=None if is_missing(raw_id) or raw_id == "" else str(raw_id))
    return None


def normalize_labels(value: object) -> str | None:
    if is_missing(value):
        return None
    if isinstance(value, (list, tuple)):
        parts = [str(item).strip() for item in value if not is_missing(item) and str(item).strip()]
        return ", ".join(parts) or None
    text = str(value).strip()
    return text or None


def normalize_images(value: object) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if not is_missing(item))
    if isinstance(value, str) and value.strip():
        # Tabular sources carry several images as a "|" separated cell.
        return tuple(item.strip() for item in value.split("|") if item.strip())
    return ()


def event_from_record(record: Mapping[str, object]) -> Event | None:
    raw_id = record.get("id")
    if is_missing(raw_id) or str(raw_id).strip() == "":
        logger.warning("Skipping record without id: %r", record)
        return None
    day = parse_iso_day(record.get("date"))
    if day is None:
        logger.warning("Skipping record %s with unparsable date %r", raw_id, record.get("date"))
        return None

    section = normalize_text(record.get("section")).strip() or DEFAULT_SECTION
    video = normalize_text(record.get("video")).strip() or None
    return Event(
        event_id=str(raw_id).strip(),
        day=day,
        title=normalize_text(record.get("title")),
        text=normalize_text(record.get("text")),
        section=section,
        images=normalize_images(record.get("images")),
        video=video,
        author=normalize_author(record.get("author")),
        labels=normalize_labels(record.get("labels")),
    )


def events_from_records(records: Iterable[object]) -> list[Event]:
    events: list[Event] = []
    seen: set[str] = set()
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-object record: %r", record)
            continue
        event = event_from_record(record)
        if event is None:
            continue
        if event.event_id in seen:
            logger.warning("Duplicate event id %r; entry anchors will collide", event.event_id)
        seen.add(event.event_id)
        events.append(event)
    return events


def read_events_from_table(table_path: str | Path) -> list[Event]:
    table_path = Path(table_path)
    if table_path.suffix.lower() == ".csv":
        df = pd.read_csv(table_path, dtype={"id": str})
    else:
        df = pd.read_excel(table_path, dtype={"id": str})
    missing = {"id", "date"}.difference(df.columns)
    if missing:
        raise ValueError(f"Missing columns in table: {', '.join(sorted(missing))}")

    columns = [c for c in RECORD_COLUMNS if c in df.columns]
    records = []
    for _, row in df.iterrows():
        record = {column: row[column] for column in columns}
        if "author" in record and "author_id" in df.columns and not is_missing(record["author"]):
            record["author"] = {"name": record["author"], "id": row["author_id"]}
        records.append(record)
    return events_from_records(records)


def sorted_events(events: Iterable[Event]) -> list[Event]:
    return sorted(events, key=lambda event: (event.day, event.event_id))


def day_anchor(day: date) -> str:
    return f"d-{day.isoformat()}"


def entry_anchor(event: Event) -> str:
    return f"e-{event.event_id}"


def section_page_name(section: str) -> str:
    """File name of the page listing ``section``.

    Several sections may share one page (``Clubs`` and ``clubs``); that page
    lists all of them. ``timeline.html`` is reserved for the timeline itself.
    """
    slug = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in section.strip().lower())
    slug = slug.strip("-") or DEFAULT_SECTION
    if slug == TIMELINE_SLUG:
        slug = f"{TIMELINE_SLUG}-entries"
    return f"{slug}.html"


def truncate(text: str, n: int = 120) -> str:
    text = text.strip()
    return text if len(text) <= n else text[: n - 1] + "..."


def render_byline_html(author: Author | None) -> str:
    if author is None or not author.name:
        return ""
    name = html.escape(author.name)
    if author.author_id:
        href = html.escape(f"./roster.html#{quote(author.author_id, safe='')}", quote=True)
        return f"<a class='byline-link' href='{href}'>By {name}</a>"
    return f"<span class='byline'>By {name}</span>"
