import json

import pytest

from timeline_config import TimelineConfig, load_config


def test_defaults():
    config = TimelineConfig()
    assert config.px_per_day == 3
    assert config.min_stem == 12
    assert config.min_gap == 220 + 18 + 20


def test_from_mapping_accepts_both_spellings():
    config = TimelineConfig.from_mapping({"pxPerDay": 5, "card_width": "200", "slotStep": None})
    assert config.px_per_day == 5
    assert config.card_width == 200
    assert config.slot_step == 56


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError, match="Unknown timeline config key"):
        TimelineConfig.from_mapping({"cardHeight": 80})


@pytest.mark.parametrize(
    "mapping",
    [
        {"cardWidth": 0},
        {"pxPerDay": -1},
        {"slotStep": "wide"},
        {"cardGap": -2},
        {"cardWidth": float("nan")},
        {"pxPerDay": float("inf")},
        {"minStem": float("inf")},
        {"padding": "-inf"},
    ],
)
def test_invalid_values_are_rejected(mapping):
    with pytest.raises(ValueError):
        TimelineConfig.from_mapping(mapping)


def test_load_config(tmp_path):
    path = tmp_path / "timeline.json"
    path.write_text(json.dumps({"minInnerWidth": 900, "minStem": 8}), encoding="utf-8")

    config = load_config(path)

    assert config.min_inner_width == 900
    assert config.min_stem == 8
    assert load_config(None) == TimelineConfig()


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "timeline.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_non_finite_values_are_rejected_directly():
    with pytest.raises(ValueError, match="finite"):
        TimelineConfig(card_width=float("nan"))


def test_load_config_rejects_bare_nan(tmp_path):
    path = tmp_path / "timeline.json"
    path.write_text('{"cardWidth": NaN}', encoding="utf-8")
    with pytest.raises(ValueError, match="finite"):
        load_config(path)
