from __future__ import annotations

import html
import logging
import math
import threading
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from timeline_axis import DateRange
from timeline_config import TimelineConfig
from timeline_core import Event, GeometryError, MeasurementNotReadyError, truncate
from timeline_placement import DayCard, PlacementPlan, build_placement_plan
from timeline_source import load_events
from timeline_stems import CardGeometry, StemLength, reconcile_stems


logger = logging.getLogger(__name__)

# Card box model used when committing layout; the same height is written into
# the card style so the page lays cards out exactly as measured here. The date
# and the pill share the header row; the title gets whatever lines fit in one
# slot step.
CARD_PADDING_Y = 6
CARD_BORDER = 2
HEADER_HEIGHT = 18
LINE_HEIGHT = 15
CHAR_WIDTH = 7
MAX_TITLE_LINES = 3
SLOT_GAP = 6
CARD_CHROME = CARD_PADDING_Y * 2 + CARD_BORDER * 2 + HEADER_HEIGHT
TRACK_MARGIN = 24
LABEL_SPACE = 40


def title_chars_per_line(config: TimelineConfig) -> int:
    return max(8, int((config.card_width - 24) / CHAR_WIDTH))


def title_line_budget(config: TimelineConfig) -> int:
    """Title lines that keep a card inside one slot step, 0 if none fit."""
    room = config.slot_step - SLOT_GAP - CARD_CHROME
    return max(0, min(MAX_TITLE_LINES, int(room // LINE_HEIGHT)))


def card_title(card: DayCard, config: TimelineConfig) -> str:
    limit = title_chars_per_line(config) * max(1, title_line_budget(config))
    if card.badge:
        limit -= len(card.badge) + 1
    return truncate(card.primary.title, max(1, limit))


def estimate_card_height(card: DayCard, config: TimelineConfig) -> float:
    text = card_title(card, config)
    if card.badge:
        text = f"{text} {card.badge}"
    lines = min(max(1, title_line_budget(config)), max(1, math.ceil(len(text) / title_chars_per_line(config))))
    return CARD_CHROME + lines * LINE_HEIGHT


class HorizontalTrackRenderer:
    """Materialises a placement plan as an absolutely positioned HTML track.

    Rendering is two-stage: ``render`` stages the plan, ``commit`` fixes the
    layout and makes geometry readable through ``measure``. Stem lengths are
    written back with ``apply_stems`` before ``to_html``.
    """

    def __init__(self, config: TimelineConfig | None = None, mount_id: str = "timeline") -> None:
        self.config = config or TimelineConfig()
        self.mount_id = mount_id
        self._plan: PlacementPlan | None = None
        self._heights: dict[str, float] = {}
        self._offset_y: float | None = None
        self._stems: dict[str, int] = {}

    def render(self, plan: PlacementPlan) -> None:
        # Re-rendering replaces whatever was staged before.
        self._plan = plan
        self._heights = {card.record.anchor: estimate_card_height(card, self.config) for card in plan.cards}
        self._offset_y = None
        self._stems = {}

    @property
    def committed(self) -> bool:
        return self._offset_y is not None

    def commit(self) -> None:
        if self._plan is None:
            raise MeasurementNotReadyError("Nothing has been rendered yet")
        # Stacked slots only stay apart when every card fits inside one step.
        room = self.config.slot_step - SLOT_GAP
        tallest = max(self._heights.values(), default=0.0)
        if tallest > room:
            raise GeometryError(
                f"Cards are {tallest:.0f}px tall but slot_step {self.config.slot_step:.0f}px leaves {room:.0f}px"
            )
        min_top = min((card.record.y for card in self._plan.cards), default=TRACK_MARGIN)
        self._offset_y = max(0.0, TRACK_MARGIN - min_top)

    def _require_commit(self) -> tuple[PlacementPlan, float]:
        if self._plan is None or self._offset_y is None:
            raise MeasurementNotReadyError("Track layout has not been committed")
        return self._plan, self._offset_y

    @property
    def axis_y(self) -> float:
        _, offset = self._require_commit()
        return self.config.line_y + offset

    @property
    def track_height(self) -> float:
        plan, offset = self._require_commit()
        bottoms = [card.record.y + self._heights[card.record.anchor] for card in plan.cards]
        lowest = max(bottoms + [self.config.line_y + LABEL_SPACE])
        return lowest + offset + TRACK_MARGIN

    def measure(self) -> list[CardGeometry]:
        plan, offset = self._require_commit()
        geometries = []
        for card in plan.cards:
            top = card.record.y + offset
            geometries.append(
                CardGeometry(
                    record_id=card.record.anchor,
                    lane=card.record.lane,
                    top=top,
                    bottom=top + self._heights[card.record.anchor],
                )
            )
        return geometries

    def apply_stems(self, stems: Iterable[StemLength]) -> None:
        self._require_commit()
        for stem in stems:
            if stem.record_id not in self._heights:
                raise GeometryError(f"No rendered card for stem {stem.record_id}")
            self._stems[stem.record_id] = stem.length_px

    def _card_html(self, card: DayCard, offset: float) -> str:
        record = card.record
        stem = self._stems.get(record.anchor, self.config.min_stem)
        badge = f" <span class='badge'>{html.escape(card.badge)}</span>" if card.badge else ""
        return (
            f"<article id='{html.escape(record.anchor, quote=True)}' class='event {record.lane.value}' "
            f"data-slot='{record.slot}' "
            f"style='left: {record.x:.2f}px; --y: {record.y + offset:.2f}px; "
            f"height: {self._heights[record.anchor]:.0f}px; --stem: {stem}px;'>"
            "<div class='card-head'>"
            f"<h4>{html.escape(record.day.isoformat())}</h4>"
            f"<a class='pill-link' href='{html.escape(card.href, quote=True)}'>{html.escape(card.pill_label)}</a>"
            "</div>"
            f"<p>{html.escape(card_title(card, self.config))}{badge}</p>"
            "</article>"
        )

    def to_html(self) -> str:
        plan, offset = self._require_commit()
        config = self.config
        axis_y = self.axis_y

        parts = [
            f"<div id='{html.escape(self.mount_id, quote=True)}' class='timeline-mount'>",
            "<div class='scroller'>",
            f"<div class='track' style='min-width: {plan.axis.track_width:.0f}px; height: {self.track_height:.0f}px;'>",
            f"<div class='axis-line' style='top: {axis_y:.2f}px;'></div>",
        ]
        for tick in plan.ticks:
            parts.append(f"<div class='month-tick' style='left: {tick.x:.2f}px; top: {axis_y - 8:.2f}px;'></div>")
            parts.append(
                f"<div class='month-label' style='left: {tick.x:.2f}px; top: {axis_y + 14:.2f}px;'>"
                f"{html.escape(tick.label)}</div>"
            )
        for card in plan.cards:
            parts.append(
                f"<a class='dot' href='#{html.escape(card.record.anchor, quote=True)}' "
                f"style='left: {card.record.x:.2f}px; top: {axis_y:.2f}px; "
                f"width: {config.dot_size:.0f}px; height: {config.dot_size:.0f}px;'></a>"
            )
            parts.append(self._card_html(card, offset))
        if not plan.cards:
            parts.append(f"<div class='empty' style='left: {plan.axis.padding:.0f}px;'>No entries yet.</div>")
        parts.extend(["</div>", "</div>", "</div>"])
        return "\n".join(parts)


def render_track(plan: PlacementPlan, config: TimelineConfig, mount_id: str = "timeline") -> str:
    renderer = HorizontalTrackRenderer(config, mount_id)
    renderer.render(plan)
    renderer.commit()
    stems = reconcile_stems(renderer.measure(), renderer.axis_y, config.min_stem)
    renderer.apply_stems(stems)
    return renderer.to_html()


def page_html(title: str, body: str, config: TimelineConfig) -> str:
    return "\n".join(
        [
            "<!DOCTYPE html>",
            "<html lang='en'>",
            "<head>",
            "<meta charset='utf-8' />",
            "<meta name='viewport' content='width=device-width, initial-scale=1' />",
            f"<title>{html.escape(title)}</title>",
            "<style>",
            "  body { font-family: 'Segoe UI', sans-serif; margin: 20px; color: #2f3e46; }",
            "  .scroller { overflow-x: auto; overflow-y: hidden; position: relative; padding-bottom: 10px; }",
            "  .track { position: relative; }",
            "  .axis-line { position: absolute; left: 0; right: 0; height: 2px; margin-top: -1px; background: #2f3e46; }",
            "  .month-tick { position: absolute; width: 1px; height: 16px; background: rgba(47,62,70,0.55); }",
            "  .month-label { position: absolute; transform: translateX(-50%); font-size: 11px; white-space: nowrap; color: rgba(47,62,70,0.75); }",
            "  .dot { position: absolute; border-radius: 50%; background: #2f3e46; transform: translate(-50%, -50%); z-index: 2; }",
            f"  .event {{ position: absolute; top: var(--y); width: {config.card_width:.0f}px; transform: translateX(-50%);",
            f"    box-sizing: border-box; padding: {CARD_PADDING_Y}px 12px; border: {CARD_BORDER}px solid #2f3e46; border-radius: 10px;",
            "    background: #f9fbfb; }",
            "  .event::after { content: ''; position: absolute; left: 50%; width: 2px; margin-left: -1px; height: var(--stem); background: #2f3e46; }",
            "  .event.top::after { top: 100%; }",
            "  .event.bottom::after { bottom: 100%; }",
            f"  .event .card-head {{ display: flex; justify-content: space-between; align-items: center; gap: 6px; height: {HEADER_HEIGHT}px; }}",
            f"  .event h4 {{ margin: 0; font-size: 12px; line-height: {HEADER_HEIGHT}px; }}",
            f"  .event p {{ margin: 0; font-size: 12px; line-height: {LINE_HEIGHT}px; max-height: {LINE_HEIGHT * MAX_TITLE_LINES}px; overflow: hidden; }}",
            "  .event .badge { font-weight: 700; color: rgba(47,62,70,0.75); }",
            "  .event .pill-link { line-height: 14px; padding: 0 8px; white-space: nowrap; overflow: hidden; text-overflow: ellipsis; max-width: 60%; }",
            "  .pill-link, .pill { font-size: 11px; padding: 2px 8px; border: 1px solid rgba(47,62,70,0.35); border-radius: 999px; text-decoration: none; color: inherit; }",
            "  .empty, .item, .entry { padding: 10px 12px; }",
            "  .empty { position: absolute; top: 10px; }",
            "  .list { display: flex; flex-direction: column; gap: 12px; max-width: 760px; }",
            "  .item, .entry { border: 2px solid #2f3e46; border-radius: 10px; background: #f9fbfb; }",
            "  .entry-item { border-top: 1px solid rgba(47,62,70,0.2); padding-top: 8px; margin-top: 8px; }",
            "  .byline, .byline-link { font-size: 12px; color: rgba(47,62,70,0.75); }",
            "</style>",
            "</head>",
            "<body>",
            body,
            "</body>",
            "</html>",
        ]
    )


def render_timeline_html(
    events: Sequence[Event],
    date_range: DateRange,
    config: TimelineConfig | None = None,
    mount_id: str = "timeline",
    title: str = "Timeline",
) -> str:
    config = config or TimelineConfig()
    plan = build_placement_plan(events, date_range, config)
    return page_html(title, render_track(plan, config, mount_id), config)


class TimelineRenderer:
    """Serialises render passes for one output target; the latest pass wins.

    The event fetch runs outside the lock. A pass that finishes fetching after
    a newer pass has started is discarded and ``render`` returns ``None``.
    """

    def __init__(
        self,
        config: TimelineConfig | None = None,
        mount_id: str = "timeline",
        loader: Callable[[str | Path], list[Event]] = load_events,
    ) -> None:
        self.config = config or TimelineConfig()
        self.mount_id = mount_id
        self._loader = loader
        self._lock = threading.Lock()
        self._generation = 0
        self.last_html: str | None = None

    def render(self, source: str | Path, start: object, end: object) -> str | None:
        date_range = DateRange.parse(start, end)
        with self._lock:
            self._generation += 1
            generation = self._generation

        events = self._loader(source)

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale render pass %d (latest is %d)", generation, self._generation)
                return None
            self.last_html = render_timeline_html(events, date_range, self.config, self.mount_id)
            return self.last_html


def generate_horizontal_timeline(
    source: str | Path,
    output_path: str | Path,
    start: object,
    end: object,
    config: TimelineConfig | None = None,
    mount_id: str = "timeline",
) -> None:
    html_text = TimelineRenderer(config, mount_id).render(source, start, end)
    if html_text is None:
        return
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_text, encoding="utf-8")
    print(f"Timeline saved to {output_path.resolve()}")
