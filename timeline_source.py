from __future__ import annotations

import json
import logging
from pathlib import Path

import requests

from timeline_core import Event, events_from_records, read_events_from_table


logger = logging.getLogger(__name__)

FETCH_TIMEOUT_S = 10
TABLE_SUFFIXES = {".xlsx", ".xls", ".csv"}


def is_url(source: str | Path) -> bool:
    lower = str(source).strip().lower()
    return lower.startswith("http://") or lower.startswith("https://")


def _fetch_payload(url: str) -> object:
    headers = {"Accept": "application/json", "User-Agent": "day-timeline/0.1"}
    response = requests.get(url, headers=headers, timeout=FETCH_TIMEOUT_S)
    response.raise_for_status()
    return response.json()


def _read_payload(path: Path) -> object:
    return json.loads(path.read_text(encoding="utf-8"))


def load_events(source: str | Path) -> list[Event]:
    """Load events from a URL, a JSON file or a spreadsheet.

    Failures never propagate: fetch, parse and shape errors are logged and
    produce an empty list so the caller renders its empty state.
    """
    try:
        if is_url(source):
            payload = _fetch_payload(str(source).strip())
        else:
            path = Path(source)
            if path.suffix.lower() in TABLE_SUFFIXES:
                return read_events_from_table(path)
            payload = _read_payload(path)
    except (requests.RequestException, OSError, ValueError):
        logger.exception("Failed to load events from %s", source)
        return []

    if not isinstance(payload, list):
        logger.warning("Event source %s did not return a list (got %s)", source, type(payload).__name__)
        return []
    return events_from_records(payload)
