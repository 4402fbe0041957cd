from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from timeline_axis import AxisModel, DateRange, MonthTick, build_axis, month_ticks
from timeline_config import TimelineConfig
from timeline_core import DEFAULT_SECTION, Event, day_anchor, entry_anchor, section_page_name
from timeline_grouping import filter_to_range, group_by_date, select_primary
from timeline_lanes import LaneAllocator, LaneSide


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementRecord:
    day: date
    x: float
    lane: LaneSide
    slot: int
    y: float

    @property
    def anchor(self) -> str:
        return day_anchor(self.day)


@dataclass(frozen=True)
class DayCard:
    record: PlacementRecord
    primary: Event
    events: tuple[Event, ...]

    @property
    def extra_count(self) -> int:
        return len(self.events) - 1

    @property
    def badge(self) -> str:
        return f"+{self.extra_count}" if self.extra_count > 0 else ""

    @property
    def href(self) -> str:
        if self.primary.section == DEFAULT_SECTION:
            return f"./{section_page_name(DEFAULT_SECTION)}#{day_anchor(self.record.day)}"
        return f"./{section_page_name(self.primary.section)}#{entry_anchor(self.primary)}"

    @property
    def pill_label(self) -> str:
        return self.primary.labels or self.primary.section


@dataclass(frozen=True)
class PlacementPlan:
    axis: AxisModel
    ticks: tuple[MonthTick, ...]
    cards: tuple[DayCard, ...]

    @property
    def records(self) -> tuple[PlacementRecord, ...]:
        return tuple(card.record for card in self.cards)


def slot_y(lane: LaneSide, slot: int, config: TimelineConfig) -> float:
    # Top cards stack upward, bottom cards downward.
    if lane is LaneSide.TOP:
        return config.top_base_offset - slot * config.slot_step
    return config.bottom_base_offset + slot * config.slot_step


def build_placement_plan(
    events: Iterable[Event],
    date_range: DateRange,
    config: TimelineConfig | None = None,
) -> PlacementPlan:
    config = config or TimelineConfig()
    axis = build_axis(date_range, config)
    ticks = tuple(month_ticks(axis, date_range))

    groups, days = group_by_date(filter_to_range(events, date_range))

    allocator = LaneAllocator(config.min_gap)
    lane_top = False
    cards: list[DayCard] = []
    for day in days:
        day_events = groups[day]
        x = axis.day_to_x(day)
        lane = LaneSide.TOP if lane_top else LaneSide.BOTTOM
        slot = allocator.allocate(x, lane)
        record = PlacementRecord(day=day, x=x, lane=lane, slot=slot, y=slot_y(lane, slot, config))
        cards.append(DayCard(record=record, primary=select_primary(day_events), events=tuple(day_events)))
        lane_top = not lane_top

    logger.debug(
        "Placed %d day cards over %d days (top slots=%d, bottom slots=%d)",
        len(cards),
        axis.total_days,
        allocator.slot_count(LaneSide.TOP),
        allocator.slot_count(LaneSide.BOTTOM),
    )
    return PlacementPlan(axis=axis, ticks=ticks, cards=tuple(cards))
