from __future__ import annotations

from enum import Enum

from timeline_core import PlacementOrderError


class LaneSide(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


def pick_slot(watermarks: list[float], x: float, min_gap: float) -> int:
    """Claim the lowest slot that is free at ``x`` and reserve it until ``x + min_gap``.

    ``watermarks[i]`` is the x before which slot ``i`` is still occupied. A new
    slot is appended when every existing one is still busy.
    """
    for i, watermark in enumerate(watermarks):
        if x >= watermark:
            watermarks[i] = x + min_gap
            return i
    watermarks.append(x + min_gap)
    return len(watermarks) - 1


class LaneAllocator:
    """Greedy slot packing for the two lanes of one render pass.

    Requests for a lane must arrive in non-decreasing x; the packing is only
    minimal and overlap-free under that ordering.
    """

    def __init__(self, min_gap: float) -> None:
        if min_gap <= 0:
            raise ValueError(f"min_gap must be > 0, got {min_gap!r}")
        self.min_gap = min_gap
        self._watermarks: dict[LaneSide, list[float]] = {LaneSide.TOP: [], LaneSide.BOTTOM: []}
        self._last_x: dict[LaneSide, float | None] = {LaneSide.TOP: None, LaneSide.BOTTOM: None}

    def allocate(self, x: float, lane: LaneSide) -> int:
        last_x = self._last_x[lane]
        if last_x is not None and x < last_x:
            raise PlacementOrderError(
                f"{lane.value} lane request at x={x} arrived after x={last_x}; requests must be ascending"
            )
        self._last_x[lane] = x
        return pick_slot(self._watermarks[lane], x, self.min_gap)

    def slot_count(self, lane: LaneSide) -> int:
        return len(self._watermarks[lane])
