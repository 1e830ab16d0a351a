"""Scene entity - one strip on the stripboard, read-only input to the schedule builders."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import Field

from production_runner.models.base import RunnerModel


# Priority-ordered source keys for each field. Productions exported from
# different tools name the same column differently; the first key present wins.
SCENE_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "number": ("number", "sceneNumber", "scene_number"),
    "heading": ("sceneSlug", "sceneHeading", "heading", "scene_heading"),
    "time_of_day": ("timeOfDay", "time_of_day"),
    "page_eighths": ("pageEighths", "page_eighths"),
    "cast_ids": ("castIDs", "cast", "cast_ids"),
    "location": ("scriptLocation", "location"),
    "notes": ("notes", "breakdown.notes"),
    "is_day_break": ("isDayBreak", "is_day_break"),
    "is_off_day": ("isOffDay", "is_off_day"),
    "position": ("position", "displayOrder", "sortIndex"),
}


class Scene(RunnerModel):
    """A scene on the stripboard.

    Day-break and off-day markers are scene-level flags: a strip with
    ``is_day_break`` ends a shoot day and a strip with ``is_off_day`` stands
    for a calendar day with no shooting.
    """

    number: Optional[str] = Field(None, description="Scene number, e.g. '12A'")
    heading: str = Field(default="", description="Free-text scene heading")
    time_of_day: str = Field(default="", description="DAY, NIGHT, DAWN, DUSK...")
    page_eighths: int = Field(default=0, ge=0, description="Length in eighths of a page")
    cast_ids: str = Field(default="", description="Comma-separated cast IDs")
    location: str = Field(default="", description="Script location")
    notes: Optional[str] = None
    position: int = Field(default=0, description="Order on the stripboard")
    is_day_break: bool = False
    is_off_day: bool = False

    @property
    def cast_list(self) -> list[str]:
        """Cast IDs as a list with blanks removed."""
        return [c.strip() for c in self.cast_ids.split(",") if c.strip()]

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Scene":
        """Build a Scene from a loosely-keyed record.

        Each field is resolved once against SCENE_FIELD_ALIASES. Dotted
        aliases look inside nested mappings.
        """
        values: dict[str, Any] = {}
        for field_name, aliases in SCENE_FIELD_ALIASES.items():
            value = _first_present(record, aliases)
            if value is not None:
                values[field_name] = value

        if "number" in values:
            values["number"] = str(values["number"])
        if "cast_ids" in values and isinstance(values["cast_ids"], list):
            values["cast_ids"] = ", ".join(str(c) for c in values["cast_ids"])

        return cls.model_validate(values)


def load_scenes(file_path: str | Path) -> list[Scene]:
    """Load scenes from a JSON list of records, in file order."""
    data = json.loads(Path(file_path).read_text())
    if isinstance(data, dict):
        data = data.get("scenes", [])
    return [Scene.from_record(record) for record in data]


def _first_present(record: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    for alias in aliases:
        value: Any = record
        for part in alias.split("."):
            if not isinstance(value, dict) or part not in value:
                value = None
                break
            value = value[part]
        if value is not None:
            return value
    return None
