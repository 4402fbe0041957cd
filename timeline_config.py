from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path


# Accepted aliases, matching the names used by page-level overrides.
CAMEL_CASE_KEYS = {
    "pxPerDay": "px_per_day",
    "cardWidth": "card_width",
    "cardGap": "card_gap",
    "slotStep": "slot_step",
    "topBaseOffset": "top_base_offset",
    "bottomBaseOffset": "bottom_base_offset",
    "minInnerWidth": "min_inner_width",
    "collisionMargin": "collision_margin",
    "lineY": "line_y",
    "dotSize": "dot_size",
    "minStem": "min_stem",
}


@dataclass(frozen=True)
class TimelineConfig:
    """Geometry knobs for one horizontal timeline render.

    All values are pixels except ``px_per_day``. ``y`` offsets are measured
    from the top of the track before it is shifted to fit stacked top cards.
    """

    px_per_day: float = 3.0
    card_width: float = 220.0
    card_gap: float = 18.0
    slot_step: float = 56.0
    top_base_offset: float = 70.0
    bottom_base_offset: float = 320.0
    min_inner_width: float = 1400.0
    padding: float = 90.0
    collision_margin: float = 20.0
    line_y: float = 250.0
    dot_size: float = 10.0
    min_stem: int = 12

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{field.name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{field.name} must be finite, got {value!r}")
            if field.name in ("top_base_offset", "padding", "collision_margin", "card_gap"):
                if value < 0:
                    raise ValueError(f"{field.name} must be >= 0, got {value!r}")
            elif value <= 0:
                raise ValueError(f"{field.name} must be > 0, got {value!r}")

    @property
    def min_gap(self) -> float:
        return self.card_width + self.card_gap + self.collision_margin

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object] | None) -> TimelineConfig:
        return cls().updated(mapping)

    def updated(self, mapping: Mapping[str, object] | None) -> TimelineConfig:
        if not mapping:
            return self
        known = {field.name: field for field in fields(self)}
        changes: dict[str, object] = {}
        for key, value in mapping.items():
            name = CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown timeline config key: {key}")
            if value is None:
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be a number, got {value!r}") from None
            if not math.isfinite(number):
                raise ValueError(f"{key} must be finite, got {value!r}")
            changes[name] = int(round(number)) if name == "min_stem" else number
        return replace(self, **changes)


def load_config(config_path: str | Path | None) -> TimelineConfig:
    if config_path is None:
        return TimelineConfig()
    data = json.loads(Path(config_path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")
    return TimelineConfig.from_mapping(data)
