"""Data models for Production Runner.

All entities use Pydantic for validation and serialization.
Identifiers are UUID strings; dates are calendar dates, timestamps are UTC.
"""

from production_runner.models.base import RunnerModel, enum_value, utc_now
from production_runner.models.scene import SCENE_FIELD_ALIASES, Scene, load_scenes
from production_runner.models.one_liner import OneLinerDay, OneLinerItem, OneLinerSchedule
from production_runner.models.dood import (
    DOODCastMember,
    DOODCastStats,
    DOODReportData,
    DOODShootDay,
    DOODStatus,
)
from production_runner.models.budget import (
    BudgetDocument,
    BudgetLineItem,
    BudgetVariance,
    CategorySummary,
    ContactType,
    CustomBudgetCategory,
    VarianceStatus,
)
from production_runner.models.delivery import (
    CallSheet,
    CallSheetDelivery,
    Contact,
    DeliveryMethod,
    DeliveryRecipient,
    DeliveryStatus,
)
from production_runner.models.weather import (
    Coordinate,
    GeocodeLookup,
    WeatherLookup,
    WeatherResult,
)

__all__ = [
    # Base
    "RunnerModel",
    "enum_value",
    "utc_now",
    # Scene
    "SCENE_FIELD_ALIASES",
    "Scene",
    "load_scenes",
    # One-liner
    "OneLinerDay",
    "OneLinerItem",
    "OneLinerSchedule",
    # DOOD
    "DOODCastMember",
    "DOODCastStats",
    "DOODReportData",
    "DOODShootDay",
    "DOODStatus",
    # Budget
    "BudgetDocument",
    "BudgetLineItem",
    "BudgetVariance",
    "CategorySummary",
    "ContactType",
    "CustomBudgetCategory",
    "VarianceStatus",
    # Delivery
    "CallSheet",
    "CallSheetDelivery",
    "Contact",
    "DeliveryMethod",
    "DeliveryRecipient",
    "DeliveryStatus",
    # Weather
    "Coordinate",
    "GeocodeLookup",
    "WeatherLookup",
    "WeatherResult",
]
