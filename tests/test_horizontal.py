import json
import re

import pytest

from conftest import make_event
from timeline_axis import DateRange
from timeline_config import TimelineConfig
from timeline_core import GeometryError, MeasurementNotReadyError
from timeline_horizontal import (
    HorizontalTrackRenderer,
    TimelineRenderer,
    estimate_card_height,
    generate_horizontal_timeline,
    render_timeline_html,
    render_track,
)
from timeline_lanes import LaneSide
from timeline_placement import build_placement_plan
from timeline_stems import StemLength, reconcile_stems


SHORT_RANGE = DateRange.parse("2026-01-01", "2026-01-03")


def _plan(events, date_range=SHORT_RANGE, config=None):
    return build_placement_plan(events, date_range, config or TimelineConfig())


def test_measure_before_commit_fails():
    renderer = HorizontalTrackRenderer()
    renderer.render(_plan([make_event("a", "2026-01-02")]))
    with pytest.raises(MeasurementNotReadyError):
        renderer.measure()
    with pytest.raises(MeasurementNotReadyError):
        renderer.to_html()


def test_commit_without_render_fails():
    with pytest.raises(MeasurementNotReadyError):
        HorizontalTrackRenderer().commit()


def test_committed_geometry_drives_stem_lengths():
    config = TimelineConfig()
    plan = _plan([make_event("a", "2026-01-01", title="Hi"), make_event("b", "2026-01-02", title="Yo")], config=config)
    renderer = HorizontalTrackRenderer(config)
    renderer.render(plan)
    renderer.commit()

    geometries = renderer.measure()
    assert [g.lane for g in geometries] == [LaneSide.BOTTOM, LaneSide.TOP]
    height = estimate_card_height(plan.cards[1], config)
    assert geometries[1].bottom - geometries[1].top == height

    stems = reconcile_stems(geometries, renderer.axis_y, config.min_stem)
    assert stems[0] == StemLength("d-2026-01-01", 70)
    assert stems[1] == StemLength("d-2026-01-02", round(250 - (70 + height)))


def test_stacked_top_cards_shift_track_down_uniformly():
    config = TimelineConfig()
    events = [make_event(f"e{n}", f"2026-01-{1 + n:02d}") for n in range(6)]
    plan = _plan(events, DateRange.parse("2026-01-01", "2026-12-31"), config)
    renderer = HorizontalTrackRenderer(config)
    renderer.render(plan)
    renderer.commit()

    tops = [g.top for g in renderer.measure()]
    assert min(tops) == pytest.approx(24)
    assert renderer.axis_y - 250 == pytest.approx(24 - min(r.y for r in plan.records))


def test_apply_stems_rejects_unknown_card():
    renderer = HorizontalTrackRenderer()
    renderer.render(_plan([make_event("a", "2026-01-02")]))
    renderer.commit()
    with pytest.raises(GeometryError):
        renderer.apply_stems([StemLength("d-1999-01-01", 20)])


def test_track_has_one_card_and_dot_per_day():
    events = [make_event("b", "2026-01-02"), make_event("a", "2026-01-02"), make_event("c", "2026-01-03")]
    html_text = render_track(_plan(events), TimelineConfig(), mount_id="class-timeline")

    assert "id='class-timeline'" in html_text
    assert html_text.count("<article ") == 2
    assert html_text.count("class='dot'") == 2
    assert "id='d-2026-01-02'" in html_text
    assert "<span class='badge'>+1</span>" in html_text
    assert html_text.count("class='month-tick'") == 1
    assert "Jan 2026" in html_text
    stems = [int(v) for v in re.findall(r"--stem: (\d+)px", html_text)]
    assert len(stems) == 2 and min(stems) >= 12


def test_titles_are_escaped():
    html_text = render_track(_plan([make_event("a", "2026-01-02", title="<b>x</b>")]), TimelineConfig())
    assert "&lt;b&gt;x&lt;/b&gt;" in html_text
    assert "<b>x</b>" not in html_text


def test_re_render_replaces_previous_output():
    config = TimelineConfig()
    renderer = HorizontalTrackRenderer(config)
    plan = _plan([make_event("a", "2026-01-02")])
    outputs = []
    for _ in range(2):
        renderer.render(plan)
        renderer.commit()
        renderer.apply_stems(reconcile_stems(renderer.measure(), renderer.axis_y))
        outputs.append(renderer.to_html())
    assert outputs[0] == outputs[1]
    assert outputs[1].count("<article ") == 1


def test_empty_event_set_renders_empty_state():
    html_text = render_timeline_html([], SHORT_RANGE)
    assert "No entries yet." in html_text
    assert "<article " not in html_text


def test_latest_render_pass_wins():
    calls = []

    def loader(source):
        calls.append(source)
        if source == "first":
            # A newer pass starts while the first is still fetching.
            assert renderer.render("second", "2026-01-01", "2026-01-03") is not None
            return [make_event("old", "2026-01-02")]
        return [make_event("new", "2026-01-03")]

    renderer = TimelineRenderer(loader=loader)
    assert renderer.render("first", "2026-01-01", "2026-01-03") is None
    assert calls == ["first", "second"]
    assert "d-2026-01-03" in renderer.last_html
    assert "d-2026-01-02" not in renderer.last_html


def test_invalid_range_fails_before_fetch():
    def loader(source):
        raise AssertionError("should not fetch")

    with pytest.raises(ValueError):
        TimelineRenderer(loader=loader).render("events.json", "2026-02-01", "2026-01-01")


def test_generate_horizontal_timeline_writes_file(tmp_path):
    source = tmp_path / "events.json"
    source.write_text(
        json.dumps([{"id": "1", "date": "2026-01-02", "title": "Kickoff"}, {"id": "2", "date": "2026-01-02"}]),
        encoding="utf-8",
    )
    output = tmp_path / "out" / "timeline.html"

    generate_horizontal_timeline(source, output, "2026-01-01", "2026-01-31")

    html_text = output.read_text(encoding="utf-8")
    assert html_text.startswith("<!DOCTYPE html>")
    assert "Kickoff" in html_text
    assert "./highlights.html#d-2026-01-02" in html_text


def test_stacked_cards_do_not_overlap():
    config = TimelineConfig()
    long_title = "Spring concert rehearsal with the full orchestra and choir " * 2
    events = [make_event(f"e{n}", f"2026-03-{1 + n:02d}", title=long_title) for n in range(6)]
    events.append(make_event("dup", "2026-03-02", title=long_title))
    plan = _plan(events, DateRange.parse("2026-01-01", "2026-12-31"), config)
    renderer = HorizontalTrackRenderer(config)
    renderer.render(plan)
    renderer.commit()

    placed = list(zip(plan.records, renderer.measure()))
    assert len({record.slot for record, _ in placed}) > 2
    for geometry in renderer.measure():
        assert geometry.bottom - geometry.top <= config.slot_step - 6
    for i, (first, a) in enumerate(placed):
        for second, b in placed[i + 1:]:
            if first.lane is second.lane and abs(first.x - second.x) < config.card_width:
                assert a.bottom <= b.top or b.bottom <= a.top


def test_slot_step_too_small_for_cards_is_rejected():
    config = TimelineConfig(slot_step=30)
    renderer = HorizontalTrackRenderer(config)
    renderer.render(_plan([make_event("a", "2026-01-02")], config=config))
    with pytest.raises(GeometryError, match="slot_step"):
        renderer.commit()
