"""Weather entities returned by the forecast and geocoding lookups."""

from typing import Optional

from pydantic import Field

from production_runner.models.base import RunnerModel


class Coordinate(RunnerModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WeatherResult(RunnerModel):
    """Display-ready forecast for one shoot day."""

    high: str = ""
    low: str = ""
    conditions: str = ""
    humidity: str = ""
    wind_speed: str = ""
    sunrise: str = ""
    sunset: str = ""


class WeatherLookup(RunnerModel):
    """Outcome of a weather lookup: either a result or an error message."""

    result: Optional[WeatherResult] = None
    error: Optional[str] = None
    coordinate: Optional[Coordinate] = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error is None


class GeocodeLookup(RunnerModel):
    """Outcome of resolving an address: a coordinate or an error message."""

    coordinate: Optional[Coordinate] = None
    place_name: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.coordinate is not None and self.error is None
