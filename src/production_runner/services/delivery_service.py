"""Call Sheet Delivery Service - sends a call sheet to cast and crew.

Responsible for:
- Sending one document to a list of recipients over SMS or email
- Tracking per-recipient status through a delivery batch
- Retrying only the recipients that failed
- Polling the SMS provider for delivery receipts
- Persisting delivery history as JSON files

Recipients are processed strictly one after another so that progress is a
monotonic sent/total fraction with a single "currently sending" name.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol

from production_runner.models import (
    CallSheet,
    CallSheetDelivery,
    Contact,
    DeliveryMethod,
    DeliveryRecipient,
    DeliveryStatus,
    utc_now,
)

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Error that prevents a delivery, or a single recipient's send."""

    NO_RECIPIENTS = "No recipients selected for delivery."
    NO_FAILED_RECIPIENTS = "No failed deliveries to retry."
    MISSING_PHONE = "Recipient has no phone number for SMS delivery."
    MISSING_EMAIL = "Recipient has no email address for email delivery."


class SMSTransport(Protocol):
    """What the delivery service needs from an SMS provider."""

    def send_sms(self, to: str, body: str, media_url: Optional[str] = None) -> str:
        ...

    def check_status(self, message_sid: str) -> DeliveryStatus:
        ...


class EmailTransport(Protocol):
    """What the delivery service needs from an email sender."""

    def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
        filename: str = "call_sheet.pdf",
    ) -> None:
        ...


class DeliveryCallbacks(Protocol):
    """Protocol for delivery progress callbacks."""

    def on_recipient_start(self, recipient: DeliveryRecipient) -> None:
        """Called before a recipient is sent to."""
        ...

    def on_recipient_complete(self, recipient: DeliveryRecipient, progress: float) -> None:
        """Called after a recipient is sent to or has failed."""
        ...

    def on_delivery_complete(self, delivery: CallSheetDelivery) -> None:
        """Called once the whole batch has been processed."""
        ...


@dataclass
class DefaultDeliveryCallbacks:
    """Default no-op delivery callbacks."""

    def on_recipient_start(self, recipient: DeliveryRecipient) -> None:
        pass

    def on_recipient_complete(self, recipient: DeliveryRecipient, progress: float) -> None:
        pass

    def on_delivery_complete(self, delivery: CallSheetDelivery) -> None:
        pass


def compose_sms_body(call_sheet: CallSheet) -> str:
    """Short text message announcing the call sheet."""
    body = f"📋 CALL SHEET - {call_sheet.title}\n"
    body += f"📅 {call_sheet.formatted_date}\n"
    body += f"Day {call_sheet.day_number} of {call_sheet.total_days}\n\n"
    if call_sheet.crew_call is not None:
        body += f"⏰ Crew Call: {call_sheet.formatted_crew_call}\n"
    if call_sheet.shooting_location:
        body += f"📍 {call_sheet.shooting_location}\n"
    body += "\n- Production Runner"
    return body


def compose_email_subject(call_sheet: CallSheet) -> str:
    return f"Call Sheet - {call_sheet.title} - {call_sheet.formatted_date}"


def compose_email_body(call_sheet: CallSheet) -> str:
    body = f"Please find attached the call sheet for {call_sheet.title}.\n\n"
    body += f"Shoot Date: {call_sheet.formatted_date}\n"
    body += f"Day {call_sheet.day_number} of {call_sheet.total_days}\n\n"
    if call_sheet.crew_call is not None:
        body += f"Crew Call: {call_sheet.formatted_crew_call}\n"
    if call_sheet.shooting_location:
        body += f"Location: {call_sheet.shooting_location}\n"
    body += "\n---\nSent via Production Runner"
    return body


def build_recipients(
    cast: Iterable[Contact],
    crew: Optional[Iterable[Contact]] = None,
    default_method: DeliveryMethod | str = DeliveryMethod.EMAIL,
) -> list[DeliveryRecipient]:
    """Turn cast and crew contacts into pending recipients, cast first."""
    contacts = list(cast) + list(crew or [])
    return [
        DeliveryRecipient(
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            method=default_method,
            status=DeliveryStatus.PENDING,
        )
        for contact in contacts
    ]


class CallSheetDeliveryService:
    """Sends call sheets through injected SMS and email transports.

    The attributes ``current_delivery``, ``is_sending``, ``progress``,
    ``current_recipient_name`` and ``last_error`` reflect the batch in flight
    and are updated after every recipient.
    """

    def __init__(
        self,
        sms_transport: Optional[SMSTransport] = None,
        email_transport: Optional[EmailTransport] = None,
        callbacks: Optional[DeliveryCallbacks] = None,
    ):
        """Initialize the service.

        Args:
            sms_transport: Transport for SMS recipients
            email_transport: Transport for email recipients
            callbacks: Progress callbacks; defaults to no-ops
        """
        self.sms_transport = sms_transport
        self.email_transport = email_transport
        self.callbacks = callbacks or DefaultDeliveryCallbacks()

        self.current_delivery: Optional[CallSheetDelivery] = None
        self.is_sending = False
        self.progress = 0.0
        self.current_recipient_name: Optional[str] = None
        self.last_error: Optional[str] = None

    def send_call_sheet(
        self,
        call_sheet: CallSheet,
        document: bytes,
        recipients: list[DeliveryRecipient],
        media_url: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> CallSheetDelivery:
        """Send a call sheet to every recipient.

        Args:
            call_sheet: Call sheet the messages describe
            document: Document bytes attached to emails
            recipients: Recipients in send order; their status is reset
            media_url: Public URL of the document for SMS messages
            filename: Attachment name for emails

        Returns:
            The delivery, with each recipient sent or failed

        Raises:
            DeliveryError: If ``recipients`` is empty
        """
        if not recipients:
            raise DeliveryError(DeliveryError.NO_RECIPIENTS)

        delivery = CallSheetDelivery(
            call_sheet_id=call_sheet.id,
            recipients=[
                r.model_copy(
                    update={
                        "status": DeliveryStatus.PENDING,
                        "sent_at": None,
                        "delivered_at": None,
                        "viewed_at": None,
                        "confirmed_at": None,
                        "failure_reason": None,
                    }
                )
                for r in recipients
            ],
        )
        self.last_error = None

        indices = list(range(len(delivery.recipients)))
        self._process(delivery, indices, call_sheet, document, media_url, filename)

        logger.info("Delivery %s: %s", delivery.id, delivery.status_summary)
        return delivery

    def resend_failed(
        self,
        delivery: CallSheetDelivery,
        call_sheet: CallSheet,
        document: bytes,
        media_url: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> CallSheetDelivery:
        """Retry only the failed recipients of a delivery.

        The given delivery is not modified; an updated copy is returned in
        which recipients that did not fail keep their status.

        Raises:
            DeliveryError: If no recipient failed
        """
        indices = [
            i for i, r in enumerate(delivery.recipients) if r.status == DeliveryStatus.FAILED
        ]
        if not indices:
            raise DeliveryError(DeliveryError.NO_FAILED_RECIPIENTS)

        retry = delivery.model_copy(deep=True)
        self._process(retry, indices, call_sheet, document, media_url, filename)

        logger.info("Retry of delivery %s: %s", retry.id, retry.status_summary)
        return retry

    def _process(
        self,
        delivery: CallSheetDelivery,
        indices: list[int],
        call_sheet: CallSheet,
        document: bytes,
        media_url: Optional[str],
        filename: Optional[str],
    ) -> None:
        self.current_delivery = delivery
        self.is_sending = True
        self.progress = 0.0
        total = len(indices)

        try:
            for processed, index in enumerate(indices, start=1):
                recipient = delivery.recipients[index]
                self.current_recipient_name = recipient.name
                self.callbacks.on_recipient_start(recipient)

                recipient.status = DeliveryStatus.SENDING
                try:
                    provider_id = self._dispatch(
                        recipient, call_sheet, document, media_url, filename
                    )
                except Exception as e:
                    recipient.status = DeliveryStatus.FAILED
                    recipient.failure_reason = str(e)
                    self.last_error = str(e)
                    logger.warning("Failed to send to %s: %s", recipient.name, e)
                else:
                    recipient.status = DeliveryStatus.SENT
                    recipient.sent_at = utc_now()
                    recipient.failure_reason = None
                    if provider_id:
                        recipient.provider_message_id = provider_id
                    logger.debug("Sent call sheet to %s", recipient.name)

                self.progress = processed / total
                self.current_delivery = delivery
                self.callbacks.on_recipient_complete(recipient, self.progress)
        finally:
            self.is_sending = False
            self.current_recipient_name = None

        self.callbacks.on_delivery_complete(delivery)

    def _dispatch(
        self,
        recipient: DeliveryRecipient,
        call_sheet: CallSheet,
        document: bytes,
        media_url: Optional[str],
        filename: Optional[str],
    ) -> Optional[str]:
        """Send to one recipient; returns the provider message id for SMS."""
        if recipient.method == DeliveryMethod.SMS:
            if not recipient.phone:
                raise DeliveryError(DeliveryError.MISSING_PHONE)
            if self.sms_transport is None:
                raise DeliveryError("SMS delivery is not configured.")
            return self.sms_transport.send_sms(
                recipient.phone, compose_sms_body(call_sheet), media_url
            )

        if not recipient.email:
            raise DeliveryError(DeliveryError.MISSING_EMAIL)
        if self.email_transport is None:
            raise DeliveryError("Email delivery is not configured.")
        self.email_transport.send_email(
            recipient.email,
            compose_email_subject(call_sheet),
            compose_email_body(call_sheet),
            document,
            filename or f"CallSheet_{call_sheet.id}.pdf",
        )
        return None

    def refresh_delivery_status(self, delivery: CallSheetDelivery) -> CallSheetDelivery:
        """Poll the SMS provider for recipients still in flight.

        Only SMS recipients in ``sent`` or ``sending`` with a provider message
        id are polled. Poll errors are logged and the recipient is left as is.

        Returns:
            An updated copy of the delivery
        """
        updated = delivery.model_copy(deep=True)
        if self.sms_transport is None:
            logger.debug("No SMS transport; skipping status refresh")
            return updated

        for recipient in updated.recipients:
            if (
                recipient.method != DeliveryMethod.SMS
                or not recipient.provider_message_id
                or recipient.status not in (DeliveryStatus.SENT, DeliveryStatus.SENDING)
            ):
                continue

            try:
                status = self.sms_transport.check_status(recipient.provider_message_id)
            except Exception as e:
                logger.warning("Failed to check status for %s: %s", recipient.name, e)
                continue

            recipient.status = status
            if status == DeliveryStatus.DELIVERED and recipient.delivered_at is None:
                recipient.delivered_at = utc_now()
            elif status == DeliveryStatus.VIEWED and recipient.viewed_at is None:
                recipient.viewed_at = utc_now()

        self.current_delivery = updated
        return updated


def _history_path(directory: Path, delivery_id: str) -> Path:
    return directory / f"{delivery_id}.json"


def save_delivery_history(delivery: CallSheetDelivery, directory: str | Path) -> Path:
    """Write a delivery to ``{directory}/{delivery.id}.json``."""
    path = _history_path(Path(directory), delivery.id)
    delivery.save_to_file(path)
    logger.debug("Saved delivery history to %s", path)
    return path


def load_delivery_history(delivery_id: str, directory: str | Path) -> Optional[CallSheetDelivery]:
    """Load a saved delivery, or None if it does not exist."""
    path = _history_path(Path(directory), delivery_id)
    if not path.exists():
        return None
    return CallSheetDelivery.load_from_file(path)


def list_delivery_history(
    directory: str | Path,
    call_sheet_id: Optional[str] = None,
) -> list[CallSheetDelivery]:
    """All saved deliveries, newest first, optionally for one call sheet."""
    directory = Path(directory)
    if not directory.exists():
        return []

    deliveries = [CallSheetDelivery.load_from_file(p) for p in directory.glob("*.json")]
    if call_sheet_id is not None:
        deliveries = [d for d in deliveries if d.call_sheet_id == call_sheet_id]
    deliveries.sort(key=lambda d: d.sent_at, reverse=True)
    return deliveries
