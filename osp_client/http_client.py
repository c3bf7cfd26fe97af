"""Base HTTP client for the OSP auth and notification services."""

import logging
from typing import Any, Optional

import requests

from . import __version__

__all__ = ["BaseApiClient", "ApiError"]

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Internal: a request that did not produce a usable response.

    Components catch this and raise their own error type from it.
    """

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


def _error_payload(response: requests.Response) -> Any:
    """Extract the server's error body: parsed JSON if possible, else text."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _error_detail(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("error_description", "message", "error"):
            if payload.get(key):
                return str(payload[key])
        return ""
    if isinstance(payload, str):
        return payload[:200]
    return ""


class BaseApiClient:
    """Base HTTP client.

    Handles:
    - Session management
    - Bearer authentication headers
    - Error classification (transport, HTTP status, malformed body)

    Network calls are made once; nothing is retried. ``timeout`` defaults
    to ``None`` so a hung server blocks the caller.
    """

    USER_AGENT = f"OSP-Client/{__version__}"

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize base API client.

        Args:
            base_url: Service base URL, e.g. "http://localhost:3020"
            timeout: Request timeout in seconds (None waits indefinitely)
            session: Optional requests session (for dependency injection/testing)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None

    def _get_headers(self, access_token: Optional[str] = None) -> dict:
        """Get request headers, with bearer auth when a token is given."""
        headers = {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[dict] = None,
        form: Optional[dict] = None,
        access_token: Optional[str] = None,
        auth: Optional[tuple[str, str]] = None,
        expect_json: bool = True,
    ) -> Any:
        """Make a single request.

        Args:
            method: HTTP method
            endpoint: Absolute URL or path relative to base_url
            json: JSON body
            form: Form-encoded body (OAuth endpoints)
            access_token: Bearer token for the Authorization header
            auth: (username, password) for HTTP Basic auth
            expect_json: Parse the body as JSON (an empty body yields {})

        Returns:
            Parsed JSON body, or the raw text when expect_json is False

        Raises:
            ApiError: On connection failure, timeout, non-2xx status or
                a body that is not valid JSON
        """
        url = self._url(endpoint)
        kwargs: dict = {
            "headers": self._get_headers(access_token),
            "timeout": self.timeout,
        }
        if json is not None:
            kwargs["json"] = json
        if form is not None:
            kwargs["data"] = form
        if auth is not None:
            kwargs["auth"] = auth

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.ConnectionError as e:
            raise ApiError(f"Cannot connect to {self.base_url}") from e
        except requests.exceptions.Timeout as e:
            raise ApiError("Request timed out") from e
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e

        if not response.ok:
            payload = _error_payload(response)
            detail = _error_detail(payload)
            raise ApiError(
                f"API error ({response.status_code}): {detail or response.reason}",
                status_code=response.status_code,
                payload=payload,
            )

        if not expect_json:
            return response.text
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Malformed response body",
                status_code=response.status_code,
                payload=response.text,
            ) from e

    def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "BaseApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
