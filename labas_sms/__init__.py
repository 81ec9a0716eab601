"""
labas_sms

Send SMS through the Labas self-care portal (mano.labas.lt).

Usage:
    async with LabasClient(username, password) as client:
        await client.send_sms("+37060000000", "Hello")
"""

from labas_sms.core.config import settings, Settings, validate_settings
from labas_sms.core.exceptions import (
    LabasError,
    LoginError,
    SessionCookieNotFoundError,
    TokenNotFoundError,
    TokenValueMissingError,
    TransportError,
    PortalTimeoutError,
    SendFailedError,
)
from labas_sms.services.sms_client import (
    LabasClient,
    PortalSession,
    get_sms_client,
    close_sms_client,
)

__version__ = "0.1.0"

__all__ = [
    "settings",
    "Settings",
    "validate_settings",
    "LabasError",
    "LoginError",
    "SessionCookieNotFoundError",
    "TokenNotFoundError",
    "TokenValueMissingError",
    "TransportError",
    "PortalTimeoutError",
    "SendFailedError",
    "LabasClient",
    "PortalSession",
    "get_sms_client",
    "close_sms_client",
]
