"""PKCE (Proof Key for Code Exchange) authorization requests.

RFC 7636: https://www.rfc-editor.org/rfc/rfc7636

PKCE protects public clients (like this one) from authorization code
interception attacks by requiring a dynamically created cryptographically
random key called "code_verifier".

Flow:
1. Client generates code_verifier (secret) and code_challenge (derived)
2. Client sends code_challenge with authorization request
3. Server stores code_challenge with the authorization code
4. Client sends code_verifier with token exchange request
5. Server verifies SHA256(code_verifier) == code_challenge
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass, field
from urllib.parse import urlencode

from ..errors import ConfigError

__all__ = [
    "AuthorizationRequest",
    "build_authorization_request",
    "generate_pkce_pair",
    "compute_code_challenge",
]


def generate_pkce_pair() -> tuple[str, str]:
    """Generate PKCE code_verifier and code_challenge.

    The code_verifier is a cryptographically random string using
    unreserved URI characters (A-Z, a-z, 0-9, -, _).

    Returns:
        Tuple of (code_verifier, code_challenge)

    Example:
        >>> verifier, challenge = generate_pkce_pair()
        >>> len(verifier)  # 43 characters (32 bytes base64url)
        43
    """
    code_verifier = secrets.token_urlsafe(32)
    return code_verifier, compute_code_challenge(code_verifier)


def compute_code_challenge(code_verifier: str) -> str:
    """Compute code_challenge from code_verifier using S256 method.

    code_challenge = BASE64URL(SHA256(code_verifier))

    Args:
        code_verifier: The PKCE code verifier string

    Returns:
        Base64URL-encoded SHA256 hash without padding
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


@dataclass
class AuthorizationRequest:
    """One authorization attempt.

    Lives in memory only. The verifier is needed again at code exchange
    and must never be written to the store.
    """

    client_id: str
    redirect_uri: str
    authorization_endpoint: str
    code_verifier: str = field(repr=False)
    code_challenge: str
    state: str = field(repr=False)
    use_pkce: bool = True

    @property
    def url(self) -> str:
        """Authorization URL to hand to the user-agent."""
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "code_challenge": self.code_challenge,
                "code_challenge_method": "S256",
                "state": self.state,
            }
        )
        return f"{self.authorization_endpoint}?{query}"


def build_authorization_request(
    client_id: str,
    redirect_uri: str,
    authorization_endpoint: str,
) -> AuthorizationRequest:
    """Create a fresh PKCE authorization request.

    Raises:
        ConfigError: If client_id, redirect_uri or the endpoint is empty
    """
    if not client_id:
        raise ConfigError("No client id configured")
    if not redirect_uri:
        raise ConfigError("No redirect URI configured")
    if not authorization_endpoint:
        raise ConfigError("No authorization endpoint configured")

    code_verifier, code_challenge = generate_pkce_pair()
    return AuthorizationRequest(
        client_id=client_id,
        redirect_uri=redirect_uri,
        authorization_endpoint=authorization_endpoint,
        code_verifier=code_verifier,
        code_challenge=code_challenge,
        state=secrets.token_urlsafe(32),
    )
