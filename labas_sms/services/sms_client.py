"""
labas_sms/services/sms_client.py

Purpose: Send SMS through the Labas self-care portal

- Logs in with the account credentials (form POST, session cookie)
- Scrapes the anti-forgery token from the portal home page
- Submits the SMS form and checks the page for the confirmation phrase
- Re-logs in and retries when the confirmation is missing
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from labas_sms.core.config import settings
from labas_sms.core.exceptions import (
    PortalTimeoutError,
    SendFailedError,
    SessionCookieNotFoundError,
    TransportError,
)
from labas_sms.core.logging import get_logger, LogContext
from labas_sms.utils.html_utils import extract_token

logger = get_logger(__name__)

# Form field names used by the portal
USERNAME_FIELD = "_username"
PASSWORD_FIELD = "_password"
RECIPIENT_FIELD = "sms_submit[recipientNumber]"
MESSAGE_FIELD = "sms_submit[textMessage]"


@dataclass(frozen=True)
class PortalSession:
    """Cookie and token from one successful login. Never mutated."""
    cookie: str
    token: str


class LabasClient:
    """
    Authenticated client for the portal's SMS form.

    One send runs at a time per instance: login, submit and relogin share
    the session, and parallel logins would invalidate each other's token.

    Args:
        username: Portal login
        password: Portal password
        base_url, login_route, attempts, success_marker, token_field,
        session_cookie: Override the matching LABAS_* setting when not None
        timeout: Per-request timeout of the client built here; cannot be
            combined with http_client, configure that client instead
        http_client: Transport to use instead of a private one. The client
            takes over its cookie jar: every login clears the whole jar, so
            do not share it with other sessions. It is left open by aclose().
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        base_url: Optional[str] = None,
        login_route: Optional[str] = None,
        attempts: Optional[int] = None,
        success_marker: Optional[str] = None,
        token_field: Optional[str] = None,
        session_cookie: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._username = username
        self._password = password

        self.base_url = (settings.LABAS_BASE_URL if base_url is None else base_url).rstrip("/")
        self.login_route = settings.LABAS_LOGIN_ROUTE if login_route is None else login_route
        self.attempts = settings.LABAS_SEND_ATTEMPTS if attempts is None else attempts
        self.success_marker = settings.LABAS_SUCCESS_MARKER if success_marker is None else success_marker
        self.token_field = settings.LABAS_TOKEN_FIELD if token_field is None else token_field
        self.session_cookie = settings.LABAS_SESSION_COOKIE if session_cookie is None else session_cookie

        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        # An empty marker would match every page
        for name in ("success_marker", "token_field", "session_cookie"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")

        if http_client is None:
            self._http = httpx.AsyncClient(
                timeout=settings.LABAS_REQUEST_TIMEOUT if timeout is None else timeout,
                follow_redirects=True,
            )
            self._owns_http = True
        else:
            if timeout is not None:
                raise ValueError("timeout cannot be combined with http_client; set it on the http_client")
            self._http = http_client
            self._owns_http = False

        self._session: Optional[PortalSession] = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Optional[PortalSession]:
        """Current session, None before the first successful login."""
        return self._session

    async def send_sms(self, recipient: str, message: str, *, timeout: Optional[float] = None) -> None:
        """
        Sends `message` to `recipient`.

        Tries up to `attempts` submissions, logging in again after each
        unconfirmed one. Recipient and message are passed through as is.

        Args:
            recipient: Phone number as the portal form expects it
            message: SMS text
            timeout: Deadline in seconds for the whole call, lock wait included

        Raises:
            LoginError: Session could not be established (not retried)
            TransportError: A request failed (not retried)
            PortalTimeoutError: `timeout` elapsed
            SendFailedError: No confirmation after all attempts
        """
        try:
            async with asyncio.timeout(timeout):
                async with self._lock:
                    with LogContext(username=self._username):
                        await self._send_locked(recipient, message)
        except TimeoutError as e:
            raise PortalTimeoutError(
                f"send did not finish within {timeout}s",
                details={"timeout": timeout}
            ) from e

    async def _send_locked(self, recipient: str, message: str) -> None:
        if self._session is None:
            await self._login()

        for attempt in range(1, self.attempts + 1):
            if await self._submit(recipient, message):
                logger.info("SMS confirmed by portal", extra={"attempt": attempt})
                return

            logger.warning(
                "SMS not confirmed by portal",
                extra={"attempt": attempt, "attempts": self.attempts}
            )
            if attempt < self.attempts:
                await self._login()

        raise SendFailedError(
            f"SMS not confirmed after {self.attempts} attempt(s)",
            details={"attempts": self.attempts}
        )

    async def _login(self) -> None:
        """Establishes a fresh session and stores it, replacing the old one."""
        self._session = None
        # Whole jar, including an injected client's
        self._http.cookies.clear()

        logger.debug("Logging in to portal")
        await self._request(
            "POST",
            self.base_url + self.login_route,
            data={USERNAME_FIELD: self._username, PASSWORD_FIELD: self._password},
        )

        cookie = self._http.cookies.get(self.session_cookie)
        if cookie is None:
            raise SessionCookieNotFoundError(
                f"cookie {self.session_cookie}: not set by login",
                details={"cookie": self.session_cookie}
            )

        response = await self._request("GET", self.base_url)
        token = extract_token(response.content, self.token_field)

        self._session = PortalSession(cookie=cookie, token=token)
        logger.info("Logged in to portal")

    async def _submit(self, recipient: str, message: str) -> bool:
        """Posts the SMS form. Returns True if the page confirms sending."""
        response = await self._request(
            "POST",
            self.base_url,
            data={
                RECIPIENT_FIELD: recipient,
                MESSAGE_FIELD: message,
                self.token_field: self._session.token,
            },
        )
        return self.success_marker.encode("utf-8") in response.content

    async def _request(self, method: str, url: str, data: Optional[dict] = None) -> httpx.Response:
        """Issues one request, mapping httpx failures onto TransportError."""
        try:
            return await self._http.request(method, url, data=data)
        except httpx.TimeoutException as e:
            raise PortalTimeoutError(f"{method} {url}: {e}", details={"url": url}) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url}: {e}", details={"url": url}) from e

    async def aclose(self) -> None:
        """Closes the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "LabasClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


# Global client instance
_sms_client: Optional[LabasClient] = None


def get_sms_client() -> LabasClient:
    """Get or create the global client from configured credentials."""
    global _sms_client
    if _sms_client is None:
        if not settings.LABAS_USER or not settings.LABAS_PASSWORD:
            raise ValueError("LABAS_USER and LABAS_PASSWORD must be set")
        _sms_client = LabasClient(settings.LABAS_USER, settings.LABAS_PASSWORD)
    return _sms_client


async def close_sms_client():
    """Close the global client and release its connections."""
    global _sms_client
    if _sms_client:
        await _sms_client.aclose()
        _sms_client = None
