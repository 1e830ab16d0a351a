"""Call sheet delivery entities - recipients, call sheets, and delivery batches."""

import datetime as dt
from enum import Enum
from typing import Optional
import uuid

from pydantic import Field

from production_runner.models.base import RunnerModel, utc_now


class DeliveryMethod(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class DeliveryStatus(str, Enum):
    """Lifecycle of a single recipient's delivery."""
    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    VIEWED = "viewed"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (DeliveryStatus.CONFIRMED, DeliveryStatus.FAILED)

    @property
    def is_success(self) -> bool:
        return self in (
            DeliveryStatus.SENT,
            DeliveryStatus.DELIVERED,
            DeliveryStatus.VIEWED,
            DeliveryStatus.CONFIRMED,
        )


class DeliveryRecipient(RunnerModel):
    """One person a call sheet is delivered to."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    method: DeliveryMethod = DeliveryMethod.EMAIL
    status: DeliveryStatus = DeliveryStatus.PENDING

    provider_message_id: Optional[str] = Field(
        None, description="Message ID assigned by the SMS provider"
    )
    sent_at: Optional[dt.datetime] = None
    delivered_at: Optional[dt.datetime] = None
    viewed_at: Optional[dt.datetime] = None
    confirmed_at: Optional[dt.datetime] = None
    failure_reason: Optional[str] = None

    @property
    def can_deliver(self) -> bool:
        """Whether the contact field required by the method is present."""
        if self.method == DeliveryMethod.SMS:
            return bool(self.phone)
        return bool(self.email)

    @property
    def contact_info(self) -> str:
        if self.method == DeliveryMethod.SMS:
            return self.phone or "No phone"
        return self.email or "No email"


class CallSheet(RunnerModel):
    """The call sheet fields needed to compose delivery messages."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    shoot_date: dt.date
    day_number: int = Field(default=1, ge=1)
    total_days: int = Field(default=1, ge=1)
    crew_call: Optional[dt.time] = None
    shooting_location: str = ""

    @property
    def formatted_date(self) -> str:
        """Medium date, e.g. 'Oct 17, 2026'."""
        d = self.shoot_date
        return f"{d:%b} {d.day}, {d.year}"

    @property
    def formatted_crew_call(self) -> Optional[str]:
        """Crew call as '7:00 AM', or None if unset."""
        if self.crew_call is None:
            return None
        return self.crew_call.strftime("%I:%M %p").lstrip("0")


class CallSheetDelivery(RunnerModel):
    """One batch send of a call sheet to a list of recipients."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    call_sheet_id: str
    recipients: list[DeliveryRecipient] = Field(default_factory=list)
    sent_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.recipients if DeliveryStatus(r.status).is_success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.recipients if r.status == DeliveryStatus.FAILED)

    @property
    def pending_count(self) -> int:
        return sum(
            1 for r in self.recipients
            if r.status in (DeliveryStatus.PENDING, DeliveryStatus.SENDING)
        )

    @property
    def confirmation_count(self) -> int:
        return sum(1 for r in self.recipients if r.status == DeliveryStatus.CONFIRMED)

    @property
    def status_summary(self) -> str:
        """Short human-readable summary, e.g. '3/5 sent, 2 failed'."""
        total = len(self.recipients)
        if self.failure_count > 0:
            return f"{self.success_count}/{total} sent, {self.failure_count} failed"
        if self.pending_count > 0:
            return f"{self.success_count}/{total} sent"
        return f"All {total} sent"


class Contact(RunnerModel):
    """A cast or crew contact that can be turned into a delivery recipient."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    role: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
