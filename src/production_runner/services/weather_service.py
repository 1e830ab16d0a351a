"""Weather Service - shoot-day forecasts from the Open-Meteo APIs.

Open-Meteo needs no API key. Failures never raise: every lookup returns a
result object carrying either data or a short error message.
"""

import datetime as dt
import logging
from typing import Any, Optional

import httpx

from production_runner.config import get_settings
from production_runner.models import Coordinate, GeocodeLookup, WeatherLookup, WeatherResult

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

# Hourly values are read at local noon when available.
NOON_INDEX = 12

WEATHER_CODES: dict[int, str] = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Drizzle",
    53: "Drizzle",
    55: "Drizzle",
    56: "Freezing Drizzle",
    57: "Freezing Drizzle",
    61: "Rain",
    63: "Rain",
    65: "Rain",
    66: "Freezing Rain",
    67: "Freezing Rain",
    71: "Snow",
    73: "Snow",
    75: "Snow",
    77: "Snow Grains",
    80: "Rain Showers",
    81: "Rain Showers",
    82: "Rain Showers",
    85: "Snow Showers",
    86: "Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Hail",
    99: "Thunderstorm with Hail",
}


def weather_code_to_condition(code: int) -> str:
    return WEATHER_CODES.get(code, "Unknown")


def format_clock_time(value: str) -> str:
    """Turn an Open-Meteo local time ('2026-10-17T07:12') into '7:12 AM'."""
    try:
        parsed = dt.datetime.strptime(value, "%Y-%m-%dT%H:%M")
    except (TypeError, ValueError):
        return ""
    return parsed.strftime("%I:%M %p").lstrip("0")


def _first(values: Any, default: Any) -> Any:
    if isinstance(values, list) and values and values[0] is not None:
        return values[0]
    return default


def _noon(values: Any, default: Any) -> Any:
    if not isinstance(values, list) or not values:
        return default
    value = values[NOON_INDEX] if len(values) > NOON_INDEX else values[0]
    return default if value is None else value


def parse_forecast(payload: dict[str, Any]) -> Optional[WeatherResult]:
    """Build a WeatherResult from a forecast response.

    Returns None if the ``daily`` or ``hourly`` blocks are missing. Individual
    malformed values fall back to zero or empty strings.
    """
    daily = payload.get("daily")
    hourly = payload.get("hourly")
    if not isinstance(daily, dict) or not isinstance(hourly, dict):
        return None

    try:
        high = float(_first(daily.get("temperature_2m_max"), 0))
        low = float(_first(daily.get("temperature_2m_min"), 0))
        code = int(_first(daily.get("weathercode"), 0))
        humidity = int(round(float(_noon(hourly.get("relativehumidity_2m"), 0))))
        wind = float(_noon(hourly.get("windspeed_10m"), 0))
    except (TypeError, ValueError):
        logger.warning("Malformed values in forecast response")
        high = low = wind = 0.0
        code = humidity = 0

    return WeatherResult(
        high=f"{round(high)}°F",
        low=f"{round(low)}°F",
        conditions=weather_code_to_condition(code),
        humidity=f"{humidity}%",
        wind_speed=f"{round(wind)} mph",
        sunrise=format_clock_time(_first(daily.get("sunrise"), "")),
        sunset=format_clock_time(_first(daily.get("sunset"), "")),
    )


class OpenMeteoWeatherService:
    """Looks up coordinates and daily forecasts."""

    def __init__(self, client: Optional[httpx.Client] = None):
        """Initialize the service.

        Args:
            client: HTTP client to use; one is created with the configured
                timeout if omitted
        """
        settings = get_settings()
        self._client = client or httpx.Client(timeout=settings.http_timeout)

    def geocode(self, address: str) -> GeocodeLookup:
        """Resolve a free-text address to a coordinate.

        An empty address is rejected without making a request.
        """
        if not address or not address.strip():
            return GeocodeLookup(error="No address provided")

        try:
            response = self._client.get(
                GEOCODING_URL,
                params={"name": address.strip(), "count": 1, "format": "json"},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", address, e)
            return GeocodeLookup(error=f"Could not geocode address: {e}")

        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            return GeocodeLookup(error="Could not find location for address")

        first = results[0]
        try:
            coordinate = Coordinate(latitude=first["latitude"], longitude=first["longitude"])
        except (KeyError, TypeError, ValueError):
            return GeocodeLookup(error="Could not find location for address")

        return GeocodeLookup(coordinate=coordinate, place_name=first.get("name", ""))

    def fetch_weather(self, latitude: float, longitude: float, date: dt.date) -> WeatherLookup:
        """Fetch the forecast for one day at a coordinate."""
        day = date.isoformat()
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "daily": "temperature_2m_max,temperature_2m_min,weathercode,sunrise,sunset",
            "hourly": "relativehumidity_2m,windspeed_10m",
            "temperature_unit": "fahrenheit",
            "windspeed_unit": "mph",
            "timezone": "auto",
            "start_date": day,
            "end_date": day,
        }
        coordinate = Coordinate(latitude=latitude, longitude=longitude)

        try:
            response = self._client.get(FORECAST_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning("Weather request failed: %s", e)
            return WeatherLookup(error=str(e), coordinate=coordinate)
        except ValueError as e:
            return WeatherLookup(error=f"JSON parsing error: {e}", coordinate=coordinate)

        result = parse_forecast(payload) if isinstance(payload, dict) else None
        if result is None:
            return WeatherLookup(error="Could not parse weather data", coordinate=coordinate)

        logger.debug("Weather for %s on %s: %s", coordinate, day, result.conditions)
        return WeatherLookup(result=result, coordinate=coordinate)

    def fetch_weather_for_address(self, address: str, date: dt.date) -> WeatherLookup:
        """Geocode an address, then fetch its forecast."""
        location = self.geocode(address)
        if not location.ok:
            return WeatherLookup(error=location.error)
        return self.fetch_weather(
            location.coordinate.latitude, location.coordinate.longitude, date
        )

    def close(self) -> None:
        self._client.close()
