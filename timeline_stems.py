from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from timeline_core import GeometryError, MeasurementNotReadyError
from timeline_lanes import LaneSide


MIN_STEM_PX = 12


@dataclass(frozen=True)
class CardGeometry:
    record_id: str
    lane: LaneSide
    top: float | None
    bottom: float | None


@dataclass(frozen=True)
class StemLength:
    record_id: str
    length_px: int


def _is_defined(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def compute_stem_length(geometry: CardGeometry, axis_y: float, min_stem: int = MIN_STEM_PX) -> int:
    """Length of the connector between a card's inward edge and the axis line.

    Top-lane cards connect from their bottom edge, bottom-lane cards from
    their top edge. The result is rounded half-up and never below ``min_stem``.
    """
    if not (_is_defined(geometry.top) and _is_defined(geometry.bottom) and _is_defined(axis_y)):
        raise MeasurementNotReadyError(f"Card {geometry.record_id} has no committed geometry")

    if geometry.lane is LaneSide.TOP:
        distance = axis_y - geometry.bottom
    else:
        distance = geometry.top - axis_y
    if distance < 0:
        raise GeometryError(
            f"Card {geometry.record_id} crosses the axis ({geometry.lane.value} lane, distance {distance:.1f}px)"
        )
    return max(min_stem, math.floor(distance + 0.5))


def reconcile_stems(
    geometries: Iterable[CardGeometry],
    axis_y: float,
    min_stem: int = MIN_STEM_PX,
) -> list[StemLength]:
    return [
        StemLength(record_id=g.record_id, length_px=compute_stem_length(g, axis_y, min_stem))
        for g in geometries
    ]
