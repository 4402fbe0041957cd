import random

import pytest

from timeline_core import PlacementOrderError
from timeline_lanes import LaneAllocator, LaneSide, pick_slot


MIN_GAP = 258.0


def test_pick_slot_reuses_freed_slot():
    watermarks: list[float] = []
    assert pick_slot(watermarks, 0, 100) == 0
    assert pick_slot(watermarks, 50, 100) == 1
    assert pick_slot(watermarks, 100, 100) == 0
    assert watermarks == [200, 150]


def test_pick_slot_prefers_lowest_free_slot():
    watermarks = [10.0, 5.0, 0.0]
    assert pick_slot(watermarks, 20, 100) == 0


def test_clustered_requests_open_new_slots():
    allocator = LaneAllocator(MIN_GAP)
    slots = [allocator.allocate(500.0 + n * 0.5, LaneSide.BOTTOM) for n in range(5)]

    assert slots == [0, 1, 2, 3, 4]
    assert allocator.slot_count(LaneSide.BOTTOM) == 5


def test_lanes_are_packed_independently():
    allocator = LaneAllocator(MIN_GAP)
    assert allocator.allocate(100, LaneSide.TOP) == 0
    assert allocator.allocate(100, LaneSide.BOTTOM) == 0
    assert allocator.allocate(120, LaneSide.TOP) == 1
    assert allocator.slot_count(LaneSide.BOTTOM) == 1


def test_decreasing_request_fails_loudly():
    allocator = LaneAllocator(MIN_GAP)
    allocator.allocate(300, LaneSide.TOP)
    allocator.allocate(50, LaneSide.BOTTOM)
    with pytest.raises(PlacementOrderError):
        allocator.allocate(299, LaneSide.TOP)


def test_min_gap_must_be_positive():
    with pytest.raises(ValueError):
        LaneAllocator(0)


@pytest.mark.parametrize("seed", range(10))
def test_same_slot_requests_never_closer_than_min_gap(seed):
    rng = random.Random(seed)
    xs = sorted(rng.uniform(0, 4000) for _ in range(200))
    allocator = LaneAllocator(MIN_GAP)

    by_slot: dict[int, list[float]] = {}
    for x in xs:
        by_slot.setdefault(allocator.allocate(x, LaneSide.TOP), []).append(x)

    for placed in by_slot.values():
        assert all(b - a >= MIN_GAP for a, b in zip(placed, placed[1:]))


def test_slot_count_is_peak_overlap():
    # Four requests inside one min_gap window need exactly four slots.
    allocator = LaneAllocator(100)
    for x in (0, 10, 20, 30, 100, 110, 120, 130):
        allocator.allocate(x, LaneSide.BOTTOM)
    assert allocator.slot_count(LaneSide.BOTTOM) == 4
