"""Email Transport - sends call sheets as SMTP attachments.

Email is fire and forget: a successful hand-off to the SMTP server is the
last status this channel can report.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

from production_runner.config import get_settings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Error sending an email."""

    pass


class SMTPEmailTransport:
    """Sends email with an attached document through an SMTP server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        from_address: str | None = None,
        use_tls: bool | None = None,
        timeout: float | None = None,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
    ):
        """Initialize the transport.

        Every argument defaults to the matching PR_SMTP_* setting.
        ``smtp_factory`` builds the SMTP connection and defaults to
        ``smtplib.SMTP``.
        """
        settings = get_settings()

        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username or settings.smtp_username
        self.password = password or settings.smtp_password
        self.from_address = from_address or settings.smtp_from
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.timeout = timeout or settings.http_timeout
        self._smtp_factory = smtp_factory or smtplib.SMTP

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.from_address)

    def build_message(
        self,
        to: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
        filename: str = "call_sheet.pdf",
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        if attachment is not None:
            message.add_attachment(
                attachment,
                maintype="application",
                subtype="pdf" if filename.lower().endswith(".pdf") else "octet-stream",
                filename=filename,
            )
        return message

    def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
        filename: str = "call_sheet.pdf",
    ) -> None:
        """Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body
            attachment: Optional document bytes
            filename: Attachment file name

        Raises:
            EmailError: If SMTP is not configured or the server rejects the message
        """
        if not self.is_configured:
            raise EmailError(
                "Email is not configured. Set PR_SMTP_HOST and PR_SMTP_FROM."
            )

        message = self.build_message(to, subject, body, attachment, filename)

        try:
            with self._smtp_factory(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailError(f"Failed to send email to {to}: {e}") from e

        logger.debug("Sent email to %s: %s", to, subject)
