"""SMS Transport - sends call sheet notifications through the Twilio REST API.

Responsible for:
- Normalizing phone numbers to E.164
- Sending messages and returning the provider message SID
- Polling message status and mapping it onto DeliveryStatus
"""

import logging
import time
from typing import Optional

import httpx

from production_runner.config import get_settings
from production_runner.models import DeliveryStatus

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"

TWILIO_STATUS_MAP: dict[str, DeliveryStatus] = {
    "queued": DeliveryStatus.SENDING,
    "accepted": DeliveryStatus.SENDING,
    "sending": DeliveryStatus.SENDING,
    "sent": DeliveryStatus.SENT,
    "delivered": DeliveryStatus.DELIVERED,
    "read": DeliveryStatus.VIEWED,
    "failed": DeliveryStatus.FAILED,
    "undelivered": DeliveryStatus.FAILED,
}

TEST_MESSAGE = (
    "Test message from Production Runner. "
    "Your call sheet delivery is configured correctly!"
)


class SMSError(Exception):
    """Error sending or polling an SMS message."""

    pass


def normalize_phone_number(phone: str) -> str:
    """Normalize a phone number to E.164.

    Numbers already starting with ``+`` are returned unchanged. Ten-digit
    numbers are treated as US numbers; eleven digits starting with 1 only gain
    a ``+``. Anything else is reduced to ``+`` and its digits.
    """
    if phone.startswith("+"):
        return phone

    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


def map_twilio_status(status: str) -> DeliveryStatus:
    """Map a Twilio message status onto DeliveryStatus; unknown values mean sent."""
    return TWILIO_STATUS_MAP.get(status.lower(), DeliveryStatus.SENT)


class TwilioSMSTransport:
    """Sends SMS messages with the Twilio Messages API."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        max_retries: int | None = None,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the transport.

        Args:
            account_sid: Twilio account SID. Defaults to settings.
            auth_token: Twilio auth token. Defaults to settings.
            from_number: Sending number. Defaults to settings.
            max_retries: Retries on HTTP 429 before giving up. Defaults to settings.
            client: HTTP client to use; one is created if omitted
        """
        settings = get_settings()

        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_from_number
        self.max_retries = settings.sms_max_retries if max_retries is None else max_retries

        self._client = client or httpx.Client(timeout=settings.http_timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _require_config(self) -> None:
        if not self.is_configured:
            raise SMSError(
                "Twilio is not configured. Set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER."
            )

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue a request, waiting out HTTP 429 responses up to max_retries."""
        attempt = 0
        while True:
            try:
                response = self._client.request(
                    method, url, auth=(self.account_sid, self.auth_token), **kwargs
                )
            except httpx.HTTPError as e:
                raise SMSError(f"Twilio request failed: {e}") from e

            if response.status_code != 429 or attempt >= self.max_retries:
                return response

            attempt += 1
            retry_after = int(response.headers.get("Retry-After", 1))
            logger.warning(
                "Twilio rate limited, retrying in %ss (%d/%d)",
                retry_after, attempt, self.max_retries,
            )
            time.sleep(retry_after)

    def send_sms(self, to: str, body: str, media_url: Optional[str] = None) -> str:
        """Send a message.

        Args:
            to: Destination phone number, normalized before sending
            body: Message text
            media_url: Optional URL of an attachment, e.g. the call sheet PDF

        Returns:
            The Twilio message SID

        Raises:
            SMSError: If Twilio is not configured or the request fails
        """
        self._require_config()

        data = {
            "To": normalize_phone_number(to),
            "From": self.from_number,
            "Body": body,
        }
        if media_url:
            data["MediaUrl"] = media_url

        url = f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"
        response = self._request("POST", url, data=data)

        if 200 <= response.status_code < 300:
            try:
                sid = response.json()["sid"]
            except (ValueError, KeyError, TypeError) as e:
                raise SMSError("Failed to parse Twilio API response.") from e
            logger.debug("Sent SMS to %s (sid=%s)", data["To"], sid)
            return sid

        message = _error_message(response)
        if message:
            raise SMSError(f"Twilio API error: {message}")
        raise SMSError(f"HTTP error {response.status_code} from Twilio API.")

    def check_status(self, message_sid: str) -> DeliveryStatus:
        """Fetch the current delivery status of a sent message.

        Raises:
            SMSError: If Twilio is not configured or the request fails
        """
        self._require_config()

        url = f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages/{message_sid}.json"
        response = self._request("GET", url)

        if not 200 <= response.status_code < 300:
            raise SMSError(f"Invalid response from Twilio API (HTTP {response.status_code}).")

        try:
            status = response.json()["status"]
        except (ValueError, KeyError, TypeError) as e:
            raise SMSError("Failed to parse Twilio API response.") from e

        return map_twilio_status(status)

    def send_test_sms(self, to: str) -> str:
        """Send a fixed test message to confirm the configuration."""
        return self.send_sms(to, TEST_MESSAGE)

    def close(self) -> None:
        self._client.close()


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return message
    return None
