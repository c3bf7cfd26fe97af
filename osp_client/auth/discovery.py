"""Authorization server endpoints derived from a single host."""

from dataclasses import dataclass
from typing import Optional

from ..errors import ConfigError

__all__ = ["DiscoveryDocument"]


@dataclass(frozen=True)
class DiscoveryDocument:
    """Endpoint URLs of the OSP authorization server."""

    authorization_endpoint: str
    token_endpoint: str
    revocation_endpoint: str
    user_info_endpoint: str
    end_session_endpoint: Optional[str] = None

    @classmethod
    def from_host(cls, host: str) -> "DiscoveryDocument":
        """Build the document from a base host, e.g. "http://localhost:3020"."""
        if not host:
            raise ConfigError("Auth host is not configured")
        host = host.rstrip("/")
        return cls(
            authorization_endpoint=f"{host}/auth/authorize",
            token_endpoint=f"{host}/auth/token",
            revocation_endpoint=f"{host}/auth/revoke",
            user_info_endpoint=f"{host}/client/user-info",
            end_session_endpoint=f"{host}/auth/logout",
        )
