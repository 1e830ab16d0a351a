"""Shared fixtures for the Production Runner test suite."""

import datetime as dt

import pytest

from production_runner import config
from production_runner.models import CallSheet, Scene

SETTINGS_ENV_VARS = (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_FROM_NUMBER",
    "PR_SMS_MAX_RETRIES",
    "PR_SMTP_HOST",
    "PR_SMTP_PORT",
    "PR_SMTP_USERNAME",
    "PR_SMTP_PASSWORD",
    "PR_SMTP_FROM",
    "PR_SMTP_USE_TLS",
    "PR_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary data directory with no credentials."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PR_DATA_DIR", str(tmp_path / "production"))
    monkeypatch.chdir(tmp_path)
    settings = config.reload_settings()
    yield settings
    config._settings = None


@pytest.fixture
def start_date():
    return dt.date(2026, 11, 2)


def make_scene(number, heading="INT. KITCHEN - DAY", eighths=8, cast="", **kwargs):
    """Build a scene with sensible defaults."""
    return Scene(
        number=number,
        heading=heading,
        page_eighths=eighths,
        cast_ids=cast,
        **kwargs,
    )


def day_break():
    return Scene(is_day_break=True)


def off_day():
    return Scene(is_off_day=True)


@pytest.fixture
def call_sheet():
    return CallSheet(
        id="cs-1",
        title="Night Shift",
        shoot_date=dt.date(2026, 11, 2),
        day_number=3,
        total_days=12,
        crew_call=dt.time(7, 0),
        shooting_location="Griffith Park",
    )
