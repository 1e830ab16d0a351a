"""DOOD Report Builder - derives the Day Out of Days grid from a one-liner.

Responsible for:
- Collecting the cast working across a schedule
- Assigning a status code per cast member per shoot day
- Tallying per-cast statistics
- Exporting the grid as CSV
"""

import csv
import io
import logging
from pathlib import Path
from typing import Mapping, Optional

from production_runner.models import (
    DOODCastMember,
    DOODCastStats,
    DOODReportData,
    DOODShootDay,
    DOODStatus,
    OneLinerSchedule,
)

logger = logging.getLogger(__name__)

# Cast directory entries are either a display name or a (name, role) pair.
CastDirectory = Mapping[str, str | tuple[str, str]]


def cast_sort_key(cast_id: str) -> tuple[int, int, str]:
    """Numeric IDs first in numeric order, then the rest lexicographically."""
    if cast_id.isdigit():
        return (0, int(cast_id), cast_id)
    return (1, 0, cast_id)


def status_for_day(day_number: int, working_days: list[int]) -> DOODStatus:
    """Status of one cast member on one day given all days they work."""
    if day_number not in working_days:
        return DOODStatus.NONE

    is_first = day_number == working_days[0]
    is_last = day_number == working_days[-1]

    if is_first and is_last:
        return DOODStatus.START_FINISH
    if is_first:
        return DOODStatus.START
    if is_last:
        return DOODStatus.FINISH
    return DOODStatus.WORK


def tally_stats(row: list[DOODStatus]) -> DOODCastStats:
    """Count start, work and hold days for one grid row."""
    stats = DOODCastStats()
    for status in row:
        if status in (DOODStatus.START, DOODStatus.START_FINISH):
            stats.start_days += 1
        elif status in (DOODStatus.WORK, DOODStatus.FINISH):
            stats.work_days += 1
        elif status == DOODStatus.HOLD:
            stats.hold_days += 1
        else:
            continue
        stats.total += 1
    return stats


class DOODReportBuilder:
    """Builds DOODReportData from a one-liner schedule."""

    def __init__(self, cast_directory: Optional[CastDirectory] = None):
        """Initialize the builder.

        Args:
            cast_directory: Optional mapping of cast ID to a display name or a
                (name, role) pair. IDs missing from it are shown as-is.
        """
        self.cast_directory = dict(cast_directory or {})

    def build(
        self,
        schedule: OneLinerSchedule,
        cast_directory: Optional[CastDirectory] = None,
    ) -> DOODReportData:
        """Build the report.

        Args:
            schedule: One-liner whose days become the report's shoot days
            cast_directory: Per-call override of the cast directory

        Returns:
            DOODReportData with one row per cast member and one column per day
        """
        directory = dict(cast_directory) if cast_directory is not None else self.cast_directory

        shoot_days = [
            DOODShootDay(day_number=day.day_number, date=day.date) for day in schedule.days
        ]

        working: dict[str, list[int]] = {}
        for day in schedule.days:
            for cast_id in day.cast_ids:
                working.setdefault(cast_id, []).append(day.day_number)

        cast_ids = sorted(working, key=cast_sort_key)
        cast_members = [self._member(cast_id, directory) for cast_id in cast_ids]

        status_grid: list[list[DOODStatus]] = []
        stats: list[DOODCastStats] = []
        for cast_id in cast_ids:
            working_days = sorted(working[cast_id])
            row = [status_for_day(day.day_number, working_days) for day in shoot_days]
            status_grid.append(row)
            stats.append(tally_stats(row))

        report = DOODReportData(
            production_name=schedule.production_name,
            cast_members=cast_members,
            shoot_days=shoot_days,
            status_grid=status_grid,
            stats=stats,
        )
        logger.debug(
            "Built DOOD for %s: %d cast x %d days",
            schedule.production_name,
            len(cast_members),
            len(shoot_days),
        )
        return report

    @staticmethod
    def _member(cast_id: str, directory: dict) -> DOODCastMember:
        entry = directory.get(cast_id)
        if entry is None:
            return DOODCastMember(id=cast_id, name=cast_id)
        if isinstance(entry, tuple):
            name, role = entry
            return DOODCastMember(id=cast_id, name=name, role=role)
        return DOODCastMember(id=cast_id, name=str(entry))


def export_dood_csv(report: DOODReportData, output_path: Optional[str | Path] = None) -> str:
    """Render the report as CSV.

    Columns are ``Cast #,Cast Member,Role``, one ``D{n} (M/D)`` column per
    shoot day, then ``Total,SW,W,H``.

    Args:
        report: Report to export
        output_path: If given, the CSV is also written to this file

    Returns:
        The CSV text
    """
    header = ["Cast #", "Cast Member", "Role"]
    for index, day in enumerate(report.shoot_days):
        header.append(f"D{index + 1} ({day.date.month}/{day.date.day})")
    header.extend(["Total", "SW", "W", "H"])

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for index, member in enumerate(report.cast_members):
        stats = report.stats[index]
        writer.writerow([
            index + 1,
            member.name,
            member.role,
            *(DOODStatus(status).value for status in report.status_grid[index]),
            stats.total,
            stats.start_days,
            stats.work_days,
            stats.hold_days,
        ])

    csv_text = buffer.getvalue()

    if output_path is not None:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(csv_text, encoding="utf-8")
        logger.info("Wrote DOOD CSV to %s", path)

    return csv_text
