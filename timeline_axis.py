from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date

from timeline_config import TimelineConfig
from timeline_core import InvalidRangeError, parse_iso_day


def days_between(a: date, b: date) -> int:
    return (b - a).days


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidRangeError(f"Range start {self.start} is after end {self.end}")

    @classmethod
    def parse(cls, start: object, end: object) -> DateRange:
        start_day = parse_iso_day(start)
        end_day = parse_iso_day(end)
        if start_day is None or end_day is None:
            raise InvalidRangeError(f"Unparsable date range: {start!r}..{end!r}")
        return cls(start_day, end_day)

    @property
    def total_days(self) -> int:
        # A single-day range still spans one day of axis.
        return max(1, days_between(self.start, self.end))

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


@dataclass(frozen=True)
class AxisModel:
    start: date
    total_days: int
    px_per_day: float
    inner_width: float
    padding: float

    @property
    def track_width(self) -> float:
        return self.inner_width + self.padding * 2

    def day_to_x(self, day: date) -> float:
        return self.padding + (days_between(self.start, day) / self.total_days) * self.inner_width


@dataclass(frozen=True)
class MonthTick:
    year: int
    month: int
    x: float

    @property
    def day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        return self.day.strftime("%b %Y")


def build_axis(date_range: DateRange, config: TimelineConfig) -> AxisModel:
    total_days = date_range.total_days
    return AxisModel(
        start=date_range.start,
        total_days=total_days,
        px_per_day=config.px_per_day,
        inner_width=max(config.min_inner_width, total_days * config.px_per_day),
        padding=config.padding,
    )


def month_range(start: date, end: date) -> Iterator[tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month == 13:
            month = 1
            year += 1


def month_ticks(axis: AxisModel, date_range: DateRange) -> list[MonthTick]:
    return [
        MonthTick(year=year, month=month, x=axis.day_to_x(date(year, month, 1)))
        for year, month in month_range(date_range.start, date_range.end)
    ]
