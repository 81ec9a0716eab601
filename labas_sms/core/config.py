"""
labas_sms/core/config.py

Purpose: Client configuration

- Loads environment variables (and .env)
- Centralizes portal constants (URLs, form field names, success marker)
- Validates configuration before live use
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.
    Portal constants are overridable so a changed page does not need a release.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Credentials
    LABAS_USER: Optional[str] = Field(
        default=None,
        description="Portal login (usually the phone number)"
    )
    LABAS_PASSWORD: Optional[str] = Field(
        default=None,
        description="Portal password"
    )
    LABAS_RECIPIENT: Optional[str] = Field(
        default=None,
        description="Recipient used by scripts and the live test"
    )

    # Portal
    LABAS_BASE_URL: str = Field(
        default="https://mano.labas.lt",
        description="Portal base URL (home page and SMS form endpoint)"
    )
    LABAS_LOGIN_ROUTE: str = Field(
        default="/prisijungimo_patikrinimas",
        description="Path of the credential form endpoint"
    )
    LABAS_TOKEN_FIELD: str = Field(
        default="sms_submit[_token]",
        description="Name attribute of the hidden anti-forgery input"
    )
    LABAS_SESSION_COOKIE: str = Field(
        default="PHPSESSID",
        description="Cookie issued by a successful login"
    )
    LABAS_SUCCESS_MARKER: str = Field(
        default="SMS išsiųsta",
        description="Phrase the portal shows once an SMS is accepted"
    )

    # Sending
    LABAS_SEND_ATTEMPTS: int = Field(
        default=2,
        description="Submissions per send, with a relogin between them"
    )
    LABAS_REQUEST_TIMEOUT: float = Field(
        default=30.0,
        description="Per-request timeout in seconds"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("LABAS_SEND_ATTEMPTS")
    @classmethod
    def validate_attempts(cls, v):
        """At least one submission must be made."""
        if v < 1:
            raise ValueError("LABAS_SEND_ATTEMPTS must be at least 1")
        return v

    @field_validator("LABAS_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates settings needed to talk to the live portal.
    Raises ValueError listing every problem found.
    """
    config = config or settings
    errors = []

    if not config.LABAS_USER:
        errors.append("LABAS_USER is required")
    if not config.LABAS_PASSWORD:
        errors.append("LABAS_PASSWORD is required")

    # Credentials must never travel in clear text outside development
    if config.is_production and not config.LABAS_BASE_URL.startswith("https://"):
        errors.append("LABAS_BASE_URL must use https in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
