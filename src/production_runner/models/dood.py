"""Day Out of Days (DOOD) entities - cast status per shoot day."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from production_runner.models.base import RunnerModel, utc_now


class DOODStatus(str, Enum):
    """Industry-standard Day Out of Days status codes."""
    START = "SW"          # Start Work
    WORK = "W"
    FINISH = "WF"         # Work Finish
    START_FINISH = "SWF"  # Single working day
    HOLD = "H"            # On call but not working
    TRAVEL = "T"
    REHEARSAL = "R"
    FITTING = "F"         # Wardrobe fitting
    HOLIDAY = "HOL"
    DROP = "D"            # Dropped from schedule
    PICKUP = "P"          # Picked up after a drop
    NONE = ""             # Not scheduled

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def color(self) -> Optional[str]:
        """Background color as hex, or None for unscheduled cells."""
        return _COLORS[self]

    @property
    def text_color(self) -> Optional[str]:
        """Text color readable on the status background."""
        if self is DOODStatus.NONE:
            return None
        if self in (DOODStatus.HOLD, DOODStatus.HOLIDAY):
            return "#000000"
        return "#FFFFFF"

    @property
    def pdf_color(self) -> tuple[float, float, float, float]:
        """RGBA fill used only when rendering printable reports."""
        return _PDF_COLORS[self]


_DISPLAY_NAMES: dict[DOODStatus, str] = {
    DOODStatus.START: "Start Work",
    DOODStatus.WORK: "Work",
    DOODStatus.FINISH: "Work Finish",
    DOODStatus.START_FINISH: "Start/Finish",
    DOODStatus.HOLD: "Hold",
    DOODStatus.TRAVEL: "Travel",
    DOODStatus.REHEARSAL: "Rehearsal",
    DOODStatus.FITTING: "Fitting",
    DOODStatus.HOLIDAY: "Holiday",
    DOODStatus.DROP: "Drop",
    DOODStatus.PICKUP: "Pickup",
    DOODStatus.NONE: "",
}

_COLORS: dict[DOODStatus, Optional[str]] = {
    DOODStatus.START: "#34C759",
    DOODStatus.START_FINISH: "#34C759",
    DOODStatus.WORK: "#007AFF",
    DOODStatus.FINISH: "#FF9500",
    DOODStatus.HOLD: "#FFCC00",
    DOODStatus.TRAVEL: "#AF52DE",
    DOODStatus.REHEARSAL: "#32ADE6",
    DOODStatus.FITTING: "#FF2D55",
    DOODStatus.HOLIDAY: "#8E8E93",
    DOODStatus.DROP: "#FF3B3080",
    DOODStatus.PICKUP: "#30B0C7",
    DOODStatus.NONE: None,
}

_PDF_COLORS: dict[DOODStatus, tuple[float, float, float, float]] = {
    DOODStatus.START: (0.20, 0.78, 0.35, 1.0),
    DOODStatus.START_FINISH: (0.20, 0.78, 0.35, 1.0),
    DOODStatus.WORK: (0.0, 0.48, 1.0, 1.0),
    DOODStatus.FINISH: (1.0, 0.58, 0.0, 1.0),
    DOODStatus.HOLD: (1.0, 0.80, 0.0, 1.0),
    DOODStatus.TRAVEL: (0.69, 0.32, 0.87, 1.0),
    DOODStatus.REHEARSAL: (0.20, 0.68, 0.90, 1.0),
    DOODStatus.FITTING: (1.0, 0.18, 0.33, 1.0),
    DOODStatus.HOLIDAY: (0.56, 0.56, 0.58, 1.0),
    DOODStatus.DROP: (1.0, 0.23, 0.19, 0.5),
    DOODStatus.PICKUP: (0.19, 0.69, 0.78, 1.0),
    DOODStatus.NONE: (0.0, 0.0, 0.0, 0.0),
}


class DOODCastMember(RunnerModel):
    """A cast member row in the DOOD report."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: str = ""


class DOODShootDay(RunnerModel):
    """A shoot day column in the DOOD report."""

    model_config = ConfigDict(frozen=True)

    day_number: int = Field(..., ge=1)
    date: dt.date


class DOODCastStats(RunnerModel):
    """Day counts for one cast member across all shoot days."""

    total: int = 0
    start_days: int = 0
    work_days: int = 0
    hold_days: int = 0


class DOODReportData(RunnerModel):
    """Complete data for a DOOD report.

    ``status_grid`` is indexed ``[cast_index][day_index]``.
    """

    model_config = ConfigDict(use_enum_values=False)

    production_name: str
    cast_members: list[DOODCastMember] = Field(default_factory=list)
    shoot_days: list[DOODShootDay] = Field(default_factory=list)
    status_grid: list[list[DOODStatus]] = Field(default_factory=list)
    stats: list[DOODCastStats] = Field(default_factory=list)
    generated_at: dt.datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def validate_grid_dimensions(self) -> "DOODReportData":
        """Ensure one grid row and one stats entry per cast member, one column per day."""
        if len(self.status_grid) != len(self.cast_members):
            raise ValueError(
                f"status_grid has {len(self.status_grid)} rows for "
                f"{len(self.cast_members)} cast members"
            )
        for index, row in enumerate(self.status_grid):
            if len(row) != len(self.shoot_days):
                raise ValueError(
                    f"status_grid row {index} has {len(row)} columns for "
                    f"{len(self.shoot_days)} shoot days"
                )
        if len(self.stats) != len(self.cast_members):
            raise ValueError(
                f"stats has {len(self.stats)} entries for {len(self.cast_members)} cast members"
            )
        return self

    @property
    def total_work_days(self) -> int:
        """Total counted days across all cast members."""
        return sum(s.total for s in self.stats)

    def status_for(self, cast_id: str, day_number: int) -> DOODStatus:
        """Look up a single cell by cast ID and day number."""
        for cast_index, member in enumerate(self.cast_members):
            if member.id != cast_id:
                continue
            for day_index, day in enumerate(self.shoot_days):
                if day.day_number == day_number:
                    return self.status_grid[cast_index][day_index]
        return DOODStatus.NONE
