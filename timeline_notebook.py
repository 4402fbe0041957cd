#%%
from __future__ import annotations

from pathlib import Path

from timeline_config import TimelineConfig
from timeline_horizontal import generate_horizontal_timeline
from timeline_sections import generate_section_page
from timeline_site import generate_site


#%%
# User config
mode = "site"  # "horizontal" | "highlights" | "site"
source = "events.json"  # URL, .json, .xlsx or .csv
start, end = "2026-01-01", "2026-06-30"
output_path = Path("site")
config = TimelineConfig(px_per_day=4)


#%%
def generate_timeline(mode: str, source: str, output_path: Path) -> None:
    selected = mode.strip().lower()
    if selected == "horizontal":
        generate_horizontal_timeline(source, output_path, start, end, config)
        return
    if selected == "highlights":
        generate_section_page(source, output_path)
        return
    if selected == "site":
        generate_site(source, output_path, start, end, config)
        return
    raise ValueError("mode must be one of: horizontal, highlights, site")


#%%
# Run cell
if __name__ == "__main__":
    generate_timeline(mode, source, output_path)


# %%
