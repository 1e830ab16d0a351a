"""Services for Production Runner.

Components:
- OneLinerBuilder: Group ordered scenes into shoot days
- DOODReportBuilder: Cast status per shoot day
- budget_calculator: Line-item totals, subtotals, and variance
- BudgetLedger: Persisted line-item collection
- TwilioSMSTransport / SMTPEmailTransport: Delivery channels
- OpenMeteoWeatherService: Forecasts and geocoding
- CallSheetDeliveryService: Sequential call sheet delivery
- ScheduleRenderer: Markdown, HTML, CSV, and PDF output
"""

from production_runner.services import budget_calculator
from production_runner.services.one_liner_builder import OneLinerBuilder
from production_runner.services.dood_builder import DOODReportBuilder, export_dood_csv
from production_runner.services.budget_ledger import BudgetLedger, LineItemNotFoundError
from production_runner.services.sms_transport import (
    SMSError,
    TwilioSMSTransport,
    normalize_phone_number,
)
from production_runner.services.email_transport import EmailError, SMTPEmailTransport
from production_runner.services.weather_service import OpenMeteoWeatherService
from production_runner.services.delivery_service import (
    CallSheetDeliveryService,
    DeliveryError,
    build_recipients,
    load_delivery_history,
    save_delivery_history,
)
from production_runner.services.schedule_renderer import ScheduleFormat, ScheduleRenderer

__all__ = [
    "budget_calculator",
    "OneLinerBuilder",
    "DOODReportBuilder",
    "export_dood_csv",
    "BudgetLedger",
    "LineItemNotFoundError",
    "SMSError",
    "TwilioSMSTransport",
    "normalize_phone_number",
    "EmailError",
    "SMTPEmailTransport",
    "OpenMeteoWeatherService",
    "CallSheetDeliveryService",
    "DeliveryError",
    "build_recipients",
    "load_delivery_history",
    "save_delivery_history",
    "ScheduleFormat",
    "ScheduleRenderer",
]
