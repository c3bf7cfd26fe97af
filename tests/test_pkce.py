"""Tests for PKCE authorization request building."""

import base64
import hashlib
from urllib.parse import parse_qs, urlparse

import pytest

from osp_client.auth.discovery import DiscoveryDocument
from osp_client.auth.pkce import (
    build_authorization_request,
    compute_code_challenge,
    generate_pkce_pair,
)
from osp_client.errors import ConfigError

AUTHORIZE = "https://auth.example.com/auth/authorize"


def _s256(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class TestPKCEGeneration:
    """Tests for PKCE code generation."""

    def test_generate_pkce_pair_verifier_length(self):
        """Test verifier is at least 43 chars (RFC 7636 minimum)."""
        verifier, _ = generate_pkce_pair()

        assert len(verifier) >= 43

    def test_generate_pkce_pair_challenge_is_sha256(self):
        """Test challenge is SHA-256 hash of verifier."""
        verifier, challenge = generate_pkce_pair()

        assert challenge == _s256(verifier)

    def test_generate_pkce_pair_is_unique(self):
        """Test each call generates unique values."""
        pair1 = generate_pkce_pair()
        pair2 = generate_pkce_pair()

        assert pair1[0] != pair2[0]
        assert pair1[1] != pair2[1]

    def test_generate_pkce_pair_url_safe(self):
        """Test verifier and challenge are URL-safe."""
        verifier, challenge = generate_pkce_pair()

        for char in ["+", "/", "="]:
            assert char not in verifier
            assert char not in challenge

    def test_compute_code_challenge_rfc_vector(self):
        """Test the RFC 7636 appendix B example."""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        assert compute_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


class TestBuildAuthorizationRequest:
    """Tests for build_authorization_request()."""

    def test_request_fields(self):
        """Test the request carries client, redirect and a valid PKCE pair."""
        request = build_authorization_request("abc", "myapp://", AUTHORIZE)

        assert request.client_id == "abc"
        assert request.redirect_uri == "myapp://"
        assert request.use_pkce is True
        assert len(request.code_verifier) >= 43
        assert request.code_challenge == _s256(request.code_verifier)

    def test_url_parameters(self):
        """Test the authorization URL embeds the required parameters."""
        request = build_authorization_request("abc", "http://127.0.0.1:8765/callback", AUTHORIZE)

        parsed = urlparse(request.url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == AUTHORIZE
        assert params["client_id"] == "abc"
        assert params["redirect_uri"] == "http://127.0.0.1:8765/callback"
        assert params["response_type"] == "code"
        assert params["code_challenge"] == request.code_challenge
        assert params["code_challenge_method"] == "S256"
        assert params["state"] == request.state

    def test_url_does_not_leak_verifier(self):
        """Test the verifier never appears in the URL or repr."""
        request = build_authorization_request("abc", "myapp://", AUTHORIZE)

        assert request.code_verifier not in request.url
        assert request.code_verifier not in repr(request)

    def test_each_request_is_fresh(self):
        """Test two requests get different verifiers and states."""
        first = build_authorization_request("abc", "myapp://", AUTHORIZE)
        second = build_authorization_request("abc", "myapp://", AUTHORIZE)

        assert first.code_verifier != second.code_verifier
        assert first.state != second.state

    @pytest.mark.parametrize(
        "client_id,redirect_uri,endpoint",
        [("", "myapp://", AUTHORIZE), ("abc", "", AUTHORIZE), ("abc", "myapp://", "")],
    )
    def test_missing_values_raise_config_error(self, client_id, redirect_uri, endpoint):
        """Test missing client id, redirect URI or endpoint is a ConfigError."""
        with pytest.raises(ConfigError):
            build_authorization_request(client_id, redirect_uri, endpoint)


class TestDiscoveryDocument:
    """Tests for DiscoveryDocument."""

    def test_from_host(self):
        """Test endpoints are derived from the host."""
        doc = DiscoveryDocument.from_host("http://localhost:3020/")

        assert doc.authorization_endpoint == "http://localhost:3020/auth/authorize"
        assert doc.token_endpoint == "http://localhost:3020/auth/token"
        assert doc.revocation_endpoint == "http://localhost:3020/auth/revoke"
        assert doc.user_info_endpoint == "http://localhost:3020/client/user-info"
        assert doc.end_session_endpoint == "http://localhost:3020/auth/logout"

    def test_empty_host(self):
        """Test an empty host is a ConfigError."""
        with pytest.raises(ConfigError):
            DiscoveryDocument.from_host("")

    def test_immutable(self):
        """Test the document cannot be modified."""
        doc = DiscoveryDocument.from_host("http://localhost:3020")

        with pytest.raises(AttributeError):
            doc.token_endpoint = "http://evil.example.com/token"
