"""Tests for call sheet delivery - sequencing, failures, retries, and history."""

import datetime as dt
from unittest.mock import MagicMock

import pytest

from production_runner.models import (
    CallSheetDelivery,
    Contact,
    DeliveryMethod,
    DeliveryRecipient,
    DeliveryStatus,
)
from production_runner.services.delivery_service import (
    CallSheetDeliveryService,
    DeliveryError,
    build_recipients,
    compose_email_body,
    compose_email_subject,
    compose_sms_body,
    list_delivery_history,
    load_delivery_history,
    save_delivery_history,
)
from production_runner.services.email_transport import EmailError
from production_runner.services.sms_transport import SMSError

DOCUMENT = b"%PDF-1.7 call sheet"


class RecordingCallbacks:
    """Collects callback invocations in order."""

    def __init__(self):
        self.events = []
        self.progress = []

    def on_recipient_start(self, recipient):
        self.events.append(("start", recipient.name))

    def on_recipient_complete(self, recipient, progress):
        self.events.append(("complete", recipient.name, recipient.status))
        self.progress.append(progress)

    def on_delivery_complete(self, delivery):
        self.events.append(("done", delivery.id))


@pytest.fixture
def sms():
    transport = MagicMock()
    transport.send_sms.return_value = "SM100"
    return transport


@pytest.fixture
def email():
    return MagicMock()


@pytest.fixture
def callbacks():
    return RecordingCallbacks()


@pytest.fixture
def service(sms, email, callbacks):
    return CallSheetDeliveryService(sms, email, callbacks)


@pytest.fixture
def recipients():
    return [
        DeliveryRecipient(name="Ada", email="ada@example.com"),
        DeliveryRecipient(name="Bo", phone="555-123-4567", method=DeliveryMethod.SMS),
        DeliveryRecipient(name="Cy", method=DeliveryMethod.SMS),
    ]


class TestMessageComposition:
    """Tests for SMS and email text."""

    def test_sms_body(self, call_sheet):
        assert compose_sms_body(call_sheet) == (
            "📋 CALL SHEET - Night Shift\n"
            "📅 Nov 2, 2026\n"
            "Day 3 of 12\n\n"
            "⏰ Crew Call: 7:00 AM\n"
            "📍 Griffith Park\n"
            "\n- Production Runner"
        )

    def test_sms_body_without_optional_lines(self, call_sheet):
        call_sheet.crew_call = None
        call_sheet.shooting_location = ""

        body = compose_sms_body(call_sheet)

        assert "Crew Call" not in body
        assert "📍" not in body

    def test_email_subject(self, call_sheet):
        assert compose_email_subject(call_sheet) == "Call Sheet - Night Shift - Nov 2, 2026"

    def test_email_body(self, call_sheet):
        body = compose_email_body(call_sheet)

        assert body.startswith("Please find attached the call sheet for Night Shift.")
        assert "Shoot Date: Nov 2, 2026" in body
        assert "Crew Call: 7:00 AM" in body
        assert "Location: Griffith Park" in body
        assert body.endswith("Sent via Production Runner")


class TestBuildRecipients:
    """Tests for turning contacts into recipients."""

    def test_cast_before_crew(self):
        cast = [Contact(name="Ada", email="ada@example.com")]
        crew = [Contact(name="Gus", phone="5551234567")]

        recipients = build_recipients(cast, crew, DeliveryMethod.SMS)

        assert [r.name for r in recipients] == ["Ada", "Gus"]
        assert all(r.method == DeliveryMethod.SMS for r in recipients)
        assert all(r.status == DeliveryStatus.PENDING for r in recipients)


class TestSendCallSheet:
    """Tests for a full delivery batch."""

    def test_mixed_results(self, service, sms, email, call_sheet, recipients):
        delivery = service.send_call_sheet(
            call_sheet, DOCUMENT, recipients, media_url="https://cdn/cs.pdf"
        )

        ada, bo, cy = delivery.recipients
        assert ada.status == DeliveryStatus.SENT
        assert ada.sent_at is not None
        assert bo.status == DeliveryStatus.SENT
        assert bo.provider_message_id == "SM100"
        assert cy.status == DeliveryStatus.FAILED
        assert cy.failure_reason == DeliveryError.MISSING_PHONE
        assert delivery.status_summary == "2/3 sent, 1 failed"
        assert delivery.call_sheet_id == call_sheet.id

        email.send_email.assert_called_once_with(
            "ada@example.com",
            "Call Sheet - Night Shift - Nov 2, 2026",
            compose_email_body(call_sheet),
            DOCUMENT,
            "CallSheet_cs-1.pdf",
        )
        sms.send_sms.assert_called_once_with(
            "555-123-4567", compose_sms_body(call_sheet), "https://cdn/cs.pdf"
        )

    def test_custom_filename(self, service, email, call_sheet):
        service.send_call_sheet(
            call_sheet,
            DOCUMENT,
            [DeliveryRecipient(name="Ada", email="ada@example.com")],
            filename="day3.pdf",
        )
        assert email.send_email.call_args.args[4] == "day3.pdf"

    def test_no_recipients(self, service, call_sheet):
        with pytest.raises(DeliveryError, match="No recipients selected"):
            service.send_call_sheet(call_sheet, DOCUMENT, [])

    def test_missing_email(self, service, call_sheet):
        delivery = service.send_call_sheet(
            call_sheet, DOCUMENT, [DeliveryRecipient(name="Ada")]
        )
        assert delivery.recipients[0].failure_reason == DeliveryError.MISSING_EMAIL

    def test_transport_errors_mark_failed(self, service, sms, email, call_sheet, recipients):
        email.send_email.side_effect = EmailError("mailbox full")
        sms.send_sms.side_effect = SMSError("Twilio API error: blocked")

        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients[:2])

        assert [r.failure_reason for r in delivery.recipients] == [
            "mailbox full",
            "Twilio API error: blocked",
        ]
        assert service.last_error == "Twilio API error: blocked"
        assert delivery.status_summary == "0/2 sent, 2 failed"

    def test_unconfigured_channels(self, call_sheet, recipients):
        service = CallSheetDeliveryService()

        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients[:2])

        assert [r.failure_reason for r in delivery.recipients] == [
            "Email delivery is not configured.",
            "SMS delivery is not configured.",
        ]

    def test_one_failure_does_not_stop_batch(self, service, email, call_sheet):
        email.send_email.side_effect = [EmailError("bounce"), None]
        recipients = [
            DeliveryRecipient(name="Ada", email="ada@example.com"),
            DeliveryRecipient(name="Bo", email="bo@example.com"),
        ]

        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        assert [r.status for r in delivery.recipients] == ["failed", "sent"]

    def test_unexpected_transport_error_does_not_stop_batch(self, service, email, call_sheet):
        email.send_email.side_effect = [None, ConnectionError("reset"), None]
        recipients = [
            DeliveryRecipient(name="Ada", email="ada@example.com"),
            DeliveryRecipient(name="Bo", email="bo@example.com"),
            DeliveryRecipient(name="Cy", email="cy@example.com"),
        ]

        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        assert [r.status for r in delivery.recipients] == ["sent", "failed", "sent"]
        assert delivery.recipients[1].failure_reason == "reset"
        assert email.send_email.call_count == 3
        assert service.is_sending is False

    def test_recipients_are_reset_and_not_mutated(self, service, call_sheet):
        stale = DeliveryRecipient(
            name="Ada",
            email="ada@example.com",
            status=DeliveryStatus.FAILED,
            failure_reason="old error",
        )

        delivery = service.send_call_sheet(call_sheet, DOCUMENT, [stale])

        assert delivery.recipients[0].status == DeliveryStatus.SENT
        assert delivery.recipients[0].failure_reason is None
        assert stale.status == DeliveryStatus.FAILED


class TestProgress:
    """Recipients are processed one at a time with monotonic progress."""

    def test_callback_order(self, service, callbacks, call_sheet, recipients):
        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        assert callbacks.events == [
            ("start", "Ada"),
            ("complete", "Ada", "sent"),
            ("start", "Bo"),
            ("complete", "Bo", "sent"),
            ("start", "Cy"),
            ("complete", "Cy", "failed"),
            ("done", delivery.id),
        ]

    def test_progress_fractions(self, service, callbacks, call_sheet, recipients):
        service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        assert callbacks.progress == pytest.approx([1 / 3, 2 / 3, 1.0])
        assert callbacks.progress == sorted(callbacks.progress)

    def test_state_while_sending(self, sms, call_sheet):
        seen = []

        class Watcher(RecordingCallbacks):
            def on_recipient_start(self, recipient):
                seen.append((service.is_sending, service.current_recipient_name))

        service = CallSheetDeliveryService(sms, MagicMock(), Watcher())
        service.send_call_sheet(
            call_sheet, DOCUMENT, [DeliveryRecipient(name="Ada", email="ada@example.com")]
        )

        assert seen == [(True, "Ada")]
        assert service.is_sending is False
        assert service.current_recipient_name is None
        assert service.progress == 1.0
        assert service.current_delivery is not None


class TestResendFailed:
    """Tests for retrying failed recipients."""

    def test_only_failed_are_retried(self, service, sms, email, call_sheet, recipients):
        first = service.send_call_sheet(call_sheet, DOCUMENT, recipients)
        first.recipients[2].phone = "5559876543"
        sms.reset_mock()
        email.reset_mock()
        sms.send_sms.return_value = "SM200"

        retry = service.resend_failed(first, call_sheet, DOCUMENT)

        sms.send_sms.assert_called_once()
        email.send_email.assert_not_called()
        assert retry.recipients[2].status == DeliveryStatus.SENT
        assert retry.recipients[2].provider_message_id == "SM200"
        assert retry.recipients[1].provider_message_id == "SM100"
        assert retry.status_summary == "All 3 sent"
        assert retry.id == first.id

    def test_middle_failure_is_the_only_retry(self, service, email, call_sheet):
        email.send_email.side_effect = [None, EmailError("bounce"), None]
        recipients = [
            DeliveryRecipient(name=name, email=f"{name.lower()}@example.com")
            for name in ("Ada", "Bo", "Cy")
        ]

        first = service.send_call_sheet(call_sheet, DOCUMENT, recipients)
        assert [r.status for r in first.recipients] == ["sent", "failed", "sent"]

        email.reset_mock()
        email.send_email.side_effect = None
        retry = service.resend_failed(first, call_sheet, DOCUMENT)

        email.send_email.assert_called_once()
        assert email.send_email.call_args.args[0] == "bo@example.com"
        assert [r.status for r in retry.recipients] == ["sent", "sent", "sent"]

    def test_input_delivery_is_unchanged(self, service, call_sheet, recipients):
        first = service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        service.resend_failed(first, call_sheet, DOCUMENT)

        assert first.recipients[2].status == DeliveryStatus.FAILED

    def test_progress_counts_only_retried(self, service, callbacks, call_sheet, recipients):
        first = service.send_call_sheet(call_sheet, DOCUMENT, recipients)
        callbacks.progress.clear()

        service.resend_failed(first, call_sheet, DOCUMENT)

        assert callbacks.progress == [1.0]

    def test_nothing_to_retry(self, service, call_sheet):
        delivery = service.send_call_sheet(
            call_sheet, DOCUMENT, [DeliveryRecipient(name="Ada", email="ada@example.com")]
        )

        with pytest.raises(DeliveryError, match="No failed deliveries to retry."):
            service.resend_failed(delivery, call_sheet, DOCUMENT)


class TestRefreshStatus:
    """Tests for polling SMS receipts."""

    def _delivery(self):
        return CallSheetDelivery(
            call_sheet_id="cs-1",
            recipients=[
                DeliveryRecipient(
                    name="Bo", phone="+15551234567", method=DeliveryMethod.SMS,
                    status=DeliveryStatus.SENT, provider_message_id="SM1",
                ),
                DeliveryRecipient(
                    name="Di", phone="+15557654321", method=DeliveryMethod.SMS,
                    status=DeliveryStatus.SENDING, provider_message_id="SM2",
                ),
                DeliveryRecipient(
                    name="Ada", email="ada@example.com", status=DeliveryStatus.SENT,
                ),
                DeliveryRecipient(
                    name="Cy", phone="+15550000000", method=DeliveryMethod.SMS,
                    status=DeliveryStatus.FAILED, provider_message_id="SM3",
                ),
            ],
        )

    def test_polls_in_flight_sms_only(self, service, sms):
        sms.check_status.side_effect = [DeliveryStatus.DELIVERED, DeliveryStatus.VIEWED]
        delivery = self._delivery()

        updated = service.refresh_delivery_status(delivery)

        assert [c.args[0] for c in sms.check_status.call_args_list] == ["SM1", "SM2"]
        assert updated.recipients[0].status == DeliveryStatus.DELIVERED
        assert updated.recipients[0].delivered_at is not None
        assert updated.recipients[1].status == DeliveryStatus.VIEWED
        assert updated.recipients[1].viewed_at is not None
        assert updated.recipients[2].status == DeliveryStatus.SENT
        assert delivery.recipients[0].status == DeliveryStatus.SENT

    def test_poll_errors_are_skipped(self, service, sms):
        sms.check_status.side_effect = [SMSError("timeout"), DeliveryStatus.DELIVERED]

        updated = service.refresh_delivery_status(self._delivery())

        assert updated.recipients[0].status == DeliveryStatus.SENT
        assert updated.recipients[1].status == DeliveryStatus.DELIVERED

    def test_unexpected_poll_error_is_skipped(self, service, sms):
        sms.check_status.side_effect = [OSError("network down"), DeliveryStatus.SENT]

        updated = service.refresh_delivery_status(self._delivery())

        assert updated.recipients[0].status == DeliveryStatus.SENT
        assert updated.recipients[1].status == DeliveryStatus.SENT

    def test_without_sms_transport(self):
        service = CallSheetDeliveryService(email_transport=MagicMock())
        delivery = self._delivery()

        updated = service.refresh_delivery_status(delivery)

        assert updated == delivery
        assert updated is not delivery


class TestHistory:
    """Tests for delivery history files."""

    def test_save_and_load(self, service, call_sheet, recipients, tmp_path):
        delivery = service.send_call_sheet(call_sheet, DOCUMENT, recipients)

        path = save_delivery_history(delivery, tmp_path / "deliveries")
        loaded = load_delivery_history(delivery.id, tmp_path / "deliveries")

        assert path.name == f"{delivery.id}.json"
        assert loaded == delivery

    def test_load_missing(self, tmp_path):
        assert load_delivery_history("nope", tmp_path) is None

    def test_list_filters_and_sorts(self, service, call_sheet, recipients, tmp_path):
        older = service.send_call_sheet(call_sheet, DOCUMENT, recipients)
        newer = service.send_call_sheet(call_sheet, DOCUMENT, recipients)
        older.sent_at = newer.sent_at - dt.timedelta(minutes=5)
        other = CallSheetDelivery(call_sheet_id="other", recipients=recipients)
        for delivery in (older, newer, other):
            save_delivery_history(delivery, tmp_path)

        history = list_delivery_history(tmp_path, call_sheet_id=call_sheet.id)

        assert [d.id for d in history] == [newer.id, older.id]
        assert len(list_delivery_history(tmp_path)) == 3

    def test_list_missing_directory(self, tmp_path):
        assert list_delivery_history(tmp_path / "none") == []
