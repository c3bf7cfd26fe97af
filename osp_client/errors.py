"""Error taxonomy for the OSP client.

Every operation converts its transport or parse failure into one of these,
keeping the server's structured error body (when there was one) on
``payload`` and chaining the underlying exception.
"""

from typing import Any, Optional

__all__ = [
    "OSPClientError",
    "ConfigError",
    "ProtocolError",
    "NoTokenError",
    "TokenExchangeError",
    "RefreshError",
    "NoRefreshTokenError",
    "RevokeError",
    "UserInfoError",
    "RegistrationError",
    "DispatchError",
]


class OSPClientError(Exception):
    """Base class for all OSP client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ConfigError(OSPClientError):
    """Missing or invalid configuration (client id, host, endpoint)."""

    pass


class ProtocolError(OSPClientError):
    """Operation called out of sequence, e.g. a callback with no pending request."""

    pass


class NoTokenError(ProtocolError):
    """Operation requires a token record but the session is unauthenticated."""

    pass


class TokenExchangeError(OSPClientError):
    """Authorization code exchange failed."""

    pass


class RefreshError(OSPClientError):
    """Refresh grant failed."""

    pass


class NoRefreshTokenError(RefreshError):
    """The current token record carries no refresh token."""

    pass


class RevokeError(OSPClientError):
    """Token revocation was not confirmed by the server."""

    pass


class UserInfoError(OSPClientError):
    """User info could not be fetched."""

    pass


class RegistrationError(OSPClientError):
    """Device push token could not be registered."""

    pass


class DispatchError(OSPClientError):
    """Notification send was rejected or failed."""

    pass
