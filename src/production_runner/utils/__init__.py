"""Utility functions for Production Runner."""

from production_runner.utils.page_length import (
    format_eighths,
    format_pages_label,
    parse_eighths,
)
from production_runner.utils.scene_heading import parse_heading, parse_time_of_day

__all__ = [
    "format_eighths",
    "format_pages_label",
    "parse_eighths",
    "parse_heading",
    "parse_time_of_day",
]
