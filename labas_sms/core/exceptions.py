from typing import Optional, Any


class LabasError(Exception):
    """
    Base exception for the Labas SMS client.
    `code` is stable and meant for programmatic matching.
    """
    def __init__(self, message: str, code: str = "LABAS_ERROR", details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)


class LoginError(LabasError):
    """
    Raised when a session could not be established.
    """
    def __init__(self, message: str = "Login failed", code: str = "LOGIN_FAILED", details: Optional[Any] = None):
        super().__init__(message, code=code, details=details)


class SessionCookieNotFoundError(LoginError):
    """
    Raised when the login response did not set the session cookie.
    """
    def __init__(self, message: str = "Session cookie not found", details: Optional[Any] = None):
        super().__init__(message, code="SESSION_COOKIE_NOT_FOUND", details=details)


class TokenNotFoundError(LoginError):
    """
    Raised when the home page has no token input.
    """
    def __init__(self, message: str = "Token input not found", details: Optional[Any] = None):
        super().__init__(message, code="TOKEN_NOT_FOUND", details=details)


class TokenValueMissingError(LoginError):
    """
    Raised when the token input has no value attribute.
    """
    def __init__(self, message: str = "Token input has no value attribute", details: Optional[Any] = None):
        super().__init__(message, code="TOKEN_VALUE_MISSING", details=details)


class TransportError(LabasError):
    """
    Raised when a request to the portal could not be completed.
    """
    def __init__(self, message: str = "Portal request failed", code: str = "TRANSPORT_ERROR", details: Optional[Any] = None):
        super().__init__(message, code=code, details=details)


class PortalTimeoutError(TransportError):
    """
    Raised when a request or the whole send exceeded its deadline.
    """
    def __init__(self, message: str = "Portal request timed out", details: Optional[Any] = None):
        super().__init__(message, code="PORTAL_TIMEOUT", details=details)


class SendFailedError(LabasError):
    """
    Raised when the portal never confirmed the SMS within the attempt budget.
    """
    def __init__(self, message: str = "SMS was not confirmed by the portal", details: Optional[Any] = None):
        super().__init__(message, code="SEND_FAILED", details=details)
