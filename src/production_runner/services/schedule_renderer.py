"""Schedule Renderer - produces one-liner and DOOD documents in various formats.

Responsible for:
- Rendering the one-liner to Markdown, HTML, CSV, and PDF
- Rendering the DOOD grid to HTML, CSV, and PDF
- Using templates for consistent formatting
"""

import csv
import html
import io
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from production_runner.models import DOODReportData, DOODStatus, OneLinerSchedule, enum_value
from production_runner.services.dood_builder import export_dood_csv

logger = logging.getLogger(__name__)


class ScheduleFormat(str, Enum):
    """Supported output formats."""
    MARKDOWN = "md"
    HTML = "html"
    CSV = "csv"
    PDF = "pdf"


ONE_LINER_CSV_HEADER = ["Day", "Date", "Scene", "I/E", "Set", "D/N", "Pages", "Cast", "Location"]


def _format_date(value) -> str:
    """'Fri Oct 17, 2026' style date used in schedule headers."""
    return f"{value:%a %b} {value.day}, {value.year}"


def _rgba(status) -> str:
    red, green, blue, alpha = DOODStatus(status).pdf_color
    return f"rgba({round(red * 255)}, {round(green * 255)}, {round(blue * 255)}, {alpha})"


class ScheduleRenderer:
    """Renders schedules in various formats."""

    def __init__(self, template_dir: Optional[str] = None):
        """Initialize the renderer.

        Args:
            template_dir: Optional directory containing schedule templates.
                         If None, uses package templates.
        """
        if template_dir:
            self.template_dir = Path(template_dir)
        else:
            self.template_dir = Path(__file__).parent.parent / "templates"

        if self.template_dir.exists():
            self.jinja_env = Environment(
                loader=FileSystemLoader(str(self.template_dir)),
                autoescape=select_autoescape(['html', 'xml', 'html.j2']),
            )
            self.jinja_env.filters['format_date'] = _format_date
            self.jinja_env.filters['enum_value'] = enum_value
            self.jinja_env.filters['status_rgba'] = _rgba
        else:
            self.jinja_env = None

    # One-liner

    def render_one_liner(
        self,
        schedule: OneLinerSchedule,
        format: Union[str, ScheduleFormat] = ScheduleFormat.MARKDOWN,
        output_path: Optional[Union[str, Path]] = None,
    ) -> Union[str, bytes]:
        """Render a one-liner and optionally write it to disk.

        Args:
            schedule: The schedule to render
            format: md, html, csv or pdf
            output_path: Optional file to write

        Returns:
            Rendered text, or PDF bytes
        """
        fmt = ScheduleFormat(format)
        if fmt == ScheduleFormat.MARKDOWN:
            content: Union[str, bytes] = self.one_liner_markdown(schedule)
        elif fmt == ScheduleFormat.HTML:
            content = self.one_liner_html(schedule)
        elif fmt == ScheduleFormat.CSV:
            content = self.one_liner_csv(schedule)
        else:
            content = self._render_pdf(self.one_liner_html(schedule))

        if output_path is not None:
            _write(output_path, content)
        return content

    def one_liner_markdown(self, schedule: OneLinerSchedule) -> str:
        if self.jinja_env and self._template_exists('one_liner.md.j2'):
            template = self.jinja_env.get_template('one_liner.md.j2')
            return template.render(schedule=schedule)
        return self._one_liner_markdown_inline(schedule)

    def _one_liner_markdown_inline(self, schedule: OneLinerSchedule) -> str:
        """Render markdown without template (fallback)."""
        md = f"# {schedule.production_name} - One-Liner Schedule\n\n"
        md += f"**Total:** {schedule.total_scenes} scenes, {schedule.total_pages} pages\n\n"
        for day in schedule.days:
            md += f"## Day {day.day_number} - {_format_date(day.date)}\n\n"
            md += "| Sc. | I/E | Set | D/N | Pages | Cast |\n"
            md += "|-----|-----|-----|-----|-------|------|\n"
            for item in day.items:
                md += (
                    f"| {item.scene_number} | {item.int_ext} | {item.set_description} "
                    f"| {item.day_night} | {item.pages} | {item.cast} |\n"
                )
            md += f"\n*End of Day {day.day_number}: {day.total_pages_label}*\n\n"
        return md

    def one_liner_html(self, schedule: OneLinerSchedule) -> str:
        if self.jinja_env and self._template_exists('one_liner.html.j2'):
            template = self.jinja_env.get_template('one_liner.html.j2')
            return template.render(schedule=schedule)
        return self._one_liner_html_inline(schedule)

    def _one_liner_html_inline(self, schedule: OneLinerSchedule) -> str:
        """Render HTML without template (fallback)."""
        e = html.escape
        body = ""
        for day in schedule.days:
            rows = "".join(
                f"<tr><td>{e(i.scene_number)}</td><td>{e(i.int_ext)}</td>"
                f"<td>{e(i.set_description)}</td><td>{e(i.day_night)}</td>"
                f"<td>{e(i.pages)}</td><td>{e(i.cast)}</td></tr>\n"
                for i in day.items
            )
            body += (
                f"<h2>Day {day.day_number} - {_format_date(day.date)}</h2>\n"
                f"<table>\n{rows}</table>\n"
                f"<p>End of Day {day.day_number}: {e(day.total_pages_label)}</p>\n"
            )
        return (
            f"<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\">"
            f"<title>{e(schedule.production_name)}</title></head>\n"
            f"<body><h1>{e(schedule.production_name)} - One-Liner Schedule</h1>\n"
            f"{body}</body></html>"
        )

    def one_liner_csv(self, schedule: OneLinerSchedule) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(ONE_LINER_CSV_HEADER)
        for day in schedule.days:
            for item in day.items:
                writer.writerow([
                    day.day_number,
                    day.date.isoformat(),
                    item.scene_number,
                    item.int_ext,
                    item.set_description,
                    item.day_night,
                    item.pages,
                    item.cast,
                    item.location,
                ])
        return buffer.getvalue()

    # DOOD

    def render_dood(
        self,
        report: DOODReportData,
        format: Union[str, ScheduleFormat] = ScheduleFormat.CSV,
        output_path: Optional[Union[str, Path]] = None,
    ) -> Union[str, bytes]:
        """Render a DOOD report as csv, html or pdf."""
        fmt = ScheduleFormat(format)
        if fmt == ScheduleFormat.CSV:
            content: Union[str, bytes] = export_dood_csv(report)
        elif fmt == ScheduleFormat.HTML:
            content = self.dood_html(report)
        elif fmt == ScheduleFormat.PDF:
            content = self._render_pdf(self.dood_html(report))
        else:
            raise ValueError(f"Unsupported DOOD format: {fmt.value}")

        if output_path is not None:
            _write(output_path, content)
        return content

    def dood_html(self, report: DOODReportData) -> str:
        if self.jinja_env and self._template_exists('dood.html.j2'):
            template = self.jinja_env.get_template('dood.html.j2')
            return template.render(report=report, statuses=list(DOODStatus))
        raise RuntimeError(f"DOOD template not found in {self.template_dir}")

    # Helpers

    def _render_pdf(self, html_text: str) -> bytes:
        try:
            from weasyprint import HTML

            return HTML(string=html_text).write_pdf()

        except ImportError:
            raise RuntimeError(
                "weasyprint is required for PDF generation. "
                "Install with: pip install production-runner[pdf]"
            )

    def _template_exists(self, template_name: str) -> bool:
        """Check if a template file exists."""
        if not self.template_dir or not self.template_dir.exists():
            return False
        return (self.template_dir / template_name).exists()


def _write(output_path: Union[str, Path], content: Union[str, bytes]) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    logger.info("Wrote %s", path)
