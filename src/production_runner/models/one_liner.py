"""One-Liner schedule entities - a condensed schedule with one line per scene, grouped by shoot day."""

import datetime as dt
from typing import Optional
import uuid

from pydantic import ConfigDict, Field

from production_runner.models.base import RunnerModel, utc_now
from production_runner.models.scene import Scene
from production_runner.utils.page_length import format_eighths, format_pages_label
from production_runner.utils.scene_heading import parse_heading, parse_time_of_day

UNTITLED_SCENE = "Untitled Scene"


class OneLinerItem(RunnerModel):
    """A single scene line in the one-liner schedule.

    Snapshots are never mutated; the schedule is rebuilt instead.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    scene_number: str
    int_ext: str = Field(default="", description="INT, EXT, I/E or empty")
    set_description: str
    day_night: str = Field(default="", description="DAY, NIGHT, DAWN, DUSK")
    pages: str = Field(default="0", description="Formatted page count, e.g. '1 2/8'")
    page_eighths: int = Field(default=0, ge=0)
    cast: str = Field(default="", description="Comma-separated cast IDs")
    location: str = ""
    notes: Optional[str] = None

    @classmethod
    def from_scene(cls, scene: Scene) -> Optional["OneLinerItem"]:
        """Create an item from a scene, or None if the scene has no number."""
        if not scene.number:
            return None

        int_ext, set_description = parse_heading(scene.heading)
        time_of_day = scene.time_of_day or parse_time_of_day(scene.heading)

        return cls(
            scene_number=scene.number,
            int_ext=int_ext,
            set_description=set_description or scene.location or UNTITLED_SCENE,
            day_night=time_of_day.upper(),
            pages=format_eighths(scene.page_eighths),
            page_eighths=scene.page_eighths,
            cast=scene.cast_ids,
            location=scene.location,
            notes=scene.notes,
        )


class OneLinerDay(RunnerModel):
    """A shoot day with its scenes."""

    day_number: int = Field(..., ge=1)
    date: dt.date
    items: list[OneLinerItem] = Field(default_factory=list)

    @property
    def total_page_eighths(self) -> int:
        """Total page eighths for this day."""
        return sum(item.page_eighths for item in self.items)

    @property
    def total_pages_label(self) -> str:
        """Formatted total, e.g. '2 3/8 pgs'."""
        return format_pages_label(self.total_page_eighths)

    @property
    def scene_count(self) -> int:
        return len(self.items)

    @property
    def cast_ids(self) -> list[str]:
        """Unique cast IDs working this day, in first-appearance order."""
        seen: dict[str, None] = {}
        for item in self.items:
            for cast_id in item.cast.split(","):
                cast_id = cast_id.strip()
                if cast_id:
                    seen.setdefault(cast_id, None)
        return list(seen)


class OneLinerSchedule(RunnerModel):
    """Complete one-liner schedule for a production."""

    production_name: str
    days: list[OneLinerDay] = Field(default_factory=list)
    generated_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def total_scenes(self) -> int:
        return sum(day.scene_count for day in self.days)

    @property
    def total_page_eighths(self) -> int:
        return sum(day.total_page_eighths for day in self.days)

    @property
    def total_pages(self) -> str:
        """Formatted total page count across all days."""
        return format_eighths(self.total_page_eighths)
