"""One-Liner Builder - groups an ordered stripboard into shoot days.

Responsible for:
- Walking scenes in stripboard order in a single forward pass
- Splitting shoot days at day-break strips
- Advancing the calendar over day breaks and off days
- Converting scenes into one-liner items
"""

import datetime as dt
import logging
from typing import Callable, Iterable, Optional

from production_runner.models import OneLinerDay, OneLinerItem, OneLinerSchedule, Scene

logger = logging.getLogger(__name__)

ScenePredicate = Callable[[Scene], bool]


def _is_day_break(scene: Scene) -> bool:
    return scene.is_day_break


def _is_off_day(scene: Scene) -> bool:
    return scene.is_off_day


class OneLinerBuilder:
    """Builds a OneLinerSchedule from scenes that are already in shoot order.

    The builder never sorts. Days are numbered consecutively over the days
    actually emitted, so runs of day breaks do not leave gaps or empty days.
    """

    def __init__(
        self,
        is_day_break: Optional[ScenePredicate] = None,
        is_off_day: Optional[ScenePredicate] = None,
    ):
        """Initialize the builder.

        Args:
            is_day_break: Predicate marking a strip that ends a shoot day.
                Defaults to the scene's ``is_day_break`` flag.
            is_off_day: Predicate marking a strip that stands for a non-shooting
                calendar day. Defaults to the scene's ``is_off_day`` flag.
        """
        self.is_day_break = is_day_break or _is_day_break
        self.is_off_day = is_off_day or _is_off_day

    def build(
        self,
        scenes: Iterable[Scene],
        start_date: dt.date,
        production_name: str,
        is_day_break: Optional[ScenePredicate] = None,
        is_off_day: Optional[ScenePredicate] = None,
    ) -> OneLinerSchedule:
        """Build the schedule.

        Args:
            scenes: Scenes in stripboard order
            start_date: Calendar date of the first shoot day
            production_name: Name shown on the schedule
            is_day_break: Per-call override of the day-break predicate
            is_off_day: Per-call override of the off-day predicate

        Returns:
            OneLinerSchedule containing only non-empty days
        """
        day_break = is_day_break or self.is_day_break
        off_day = is_off_day or self.is_off_day

        days: list[OneLinerDay] = []
        current_items: list[OneLinerItem] = []
        current_date = start_date

        def flush() -> None:
            if not current_items:
                return
            days.append(
                OneLinerDay(
                    day_number=len(days) + 1,
                    date=current_date,
                    items=list(current_items),
                )
            )
            current_items.clear()

        for scene in scenes:
            if day_break(scene):
                flush()
                current_date += dt.timedelta(days=1)
                continue

            if off_day(scene):
                current_date += dt.timedelta(days=1)
                continue

            item = OneLinerItem.from_scene(scene)
            if item is None:
                logger.debug("Skipping strip without a scene number: %r", scene.heading)
                continue
            current_items.append(item)

        flush()

        schedule = OneLinerSchedule(production_name=production_name, days=days)
        logger.debug(
            "Built one-liner for %s: %d days, %d scenes",
            production_name,
            len(schedule.days),
            schedule.total_scenes,
        )
        return schedule


def build_one_liner(
    scenes: Iterable[Scene],
    start_date: dt.date,
    production_name: str,
) -> OneLinerSchedule:
    """Build a one-liner using the scenes' own day-break and off-day flags."""
    return OneLinerBuilder().build(scenes, start_date, production_name)
