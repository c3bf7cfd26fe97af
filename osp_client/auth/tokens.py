"""Token record and the session state that owns it."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..protocols import KeyValueStore

__all__ = [
    "TokenRecord",
    "RefreshTokenPolicy",
    "SessionState",
    "ACCESS_TOKEN_KEY",
    "USER_INFO_KEY",
]

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
USER_INFO_KEY = "userInfo"


def _pick(data: dict, snake: str, camel: str) -> Any:
    # RFC 6749 names first, camelCase as emitted by some servers
    value = data.get(snake)
    if value is None:
        value = data.get(camel)
    return value


@dataclass
class TokenRecord:
    """An access/refresh token pair and its metadata."""

    access_token: str = field(repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    expires_in: Optional[int] = None
    issued_at: int = field(default_factory=lambda: int(time.time()))
    token_type: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("TokenRecord requires a non-empty access token")

    @classmethod
    def from_response(cls, data: dict, issued_at: Optional[int] = None) -> "TokenRecord":
        """Build a record from a token endpoint response body.

        Raises:
            ValueError: If the body has no access token or a bad expires_in
        """
        if not isinstance(data, dict):
            raise ValueError("Token response is not an object")

        expires_in = _pick(data, "expires_in", "expiresIn")
        if expires_in is not None:
            expires_in = int(expires_in)

        return cls(
            access_token=_pick(data, "access_token", "accessToken") or "",
            refresh_token=_pick(data, "refresh_token", "refreshToken") or None,
            expires_in=expires_in,
            issued_at=issued_at if issued_at is not None else int(time.time()),
            token_type=_pick(data, "token_type", "tokenType"),
            scope=data.get("scope"),
            id_token=_pick(data, "id_token", "idToken"),
        )

    def is_fresh(self, buffer_seconds: int = 0) -> bool:
        """Whether the access token is still within its lifetime.

        Records without expires_in are treated as fresh.
        """
        if self.expires_in is None:
            return True
        return time.time() < self.issued_at + self.expires_in - buffer_seconds

    def to_dict(self) -> dict:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresIn": self.expires_in,
            "issuedAt": self.issued_at,
        }


class RefreshTokenPolicy(str, Enum):
    """What to do when a refresh response omits refresh_token."""

    DROP = "drop"  # replace the record wholesale
    RETAIN = "retain"  # carry the previous refresh token forward


class SessionState:
    """The single current token record plus its persisted access token.

    The in-memory record and the ``accessToken`` store entry are updated
    one after the other without a transaction; a failure in between
    leaves them inconsistent.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._record: Optional[TokenRecord] = None

    @property
    def record(self) -> Optional[TokenRecord]:
        return self._record

    @property
    def access_token(self) -> Optional[str]:
        return self._record.access_token if self._record else None

    @property
    def is_authenticated(self) -> bool:
        return self._record is not None

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def replace(self, record: TokenRecord) -> None:
        """Install a new record and persist its access token."""
        self._record = record
        if not self._store.set_item(ACCESS_TOKEN_KEY, record.access_token):
            logger.warning("Access token could not be persisted")

    def clear(self) -> None:
        """Drop the record and the persisted access token."""
        self._record = None
        if not self._store.remove_item(ACCESS_TOKEN_KEY):
            logger.warning("Persisted access token could not be removed")

    def persisted_access_token(self) -> Optional[str]:
        return self._store.get_item(ACCESS_TOKEN_KEY)
