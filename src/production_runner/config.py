"""Runtime configuration for Production Runner."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Data directory
    data_dir: Path = Field(
        default=Path("./production"),
        validation_alias="PR_DATA_DIR"
    )

    # Twilio SMS
    twilio_account_sid: str | None = Field(
        default=None,
        validation_alias="TWILIO_ACCOUNT_SID"
    )
    twilio_auth_token: str | None = Field(
        default=None,
        validation_alias="TWILIO_AUTH_TOKEN"
    )
    twilio_from_number: str | None = Field(
        default=None,
        validation_alias="TWILIO_FROM_NUMBER"
    )
    sms_max_retries: int = Field(
        default=3,
        validation_alias="PR_SMS_MAX_RETRIES"
    )

    # SMTP email
    smtp_host: str | None = Field(
        default=None,
        validation_alias="PR_SMTP_HOST"
    )
    smtp_port: int = Field(
        default=587,
        validation_alias="PR_SMTP_PORT"
    )
    smtp_username: str | None = Field(
        default=None,
        validation_alias="PR_SMTP_USERNAME"
    )
    smtp_password: str | None = Field(
        default=None,
        validation_alias="PR_SMTP_PASSWORD"
    )
    smtp_from: str | None = Field(
        default=None,
        validation_alias="PR_SMTP_FROM"
    )
    smtp_use_tls: bool = Field(
        default=True,
        validation_alias="PR_SMTP_USE_TLS"
    )

    # HTTP settings shared by the weather and SMS clients
    http_timeout: float = Field(
        default=30.0,
        validation_alias="PR_HTTP_TIMEOUT"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    @property
    def twilio_configured(self) -> bool:
        """Whether all Twilio credentials are present."""
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number)

    @property
    def smtp_configured(self) -> bool:
        """Whether an SMTP host and sender address are present."""
        return bool(self.smtp_host and self.smtp_from)

    def get_ledger_path(self) -> Path:
        """Get the path to the budget ledger file."""
        return self.data_dir / "budget.json"

    def get_delivery_dir(self) -> Path:
        """Get the directory holding call sheet delivery history."""
        return self.data_dir / "deliveries"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
