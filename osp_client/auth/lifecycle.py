"""Refresh, revoke and logout against the current token record."""

import logging
import time
from typing import Optional
from urllib.parse import quote

from ..errors import (
    ConfigError,
    NoRefreshTokenError,
    NoTokenError,
    RefreshError,
    RevokeError,
)
from ..http_client import ApiError
from ..protocols import UserAgent
from .discovery import DiscoveryDocument
from .oauth_client import OAuthClient
from .tokens import RefreshTokenPolicy, SessionState, TokenRecord

__all__ = ["TokenLifecycleManager"]

logger = logging.getLogger(__name__)


class TokenLifecycleManager:
    """Owns the session state and mutates it.

    Refresh and revoke failures leave the record as it was. Logout clears
    it locally whatever happens in the browser.

    There is no mutual exclusion between operations; callers that run them
    concurrently must serialize them.
    """

    def __init__(
        self,
        discovery: DiscoveryDocument,
        oauth: OAuthClient,
        session: SessionState,
        user_agent: Optional[UserAgent] = None,
        refresh_token_policy: RefreshTokenPolicy = RefreshTokenPolicy.DROP,
    ):
        self.discovery = discovery
        self.oauth = oauth
        self.session = session
        self.user_agent = user_agent
        self.refresh_token_policy = RefreshTokenPolicy(refresh_token_policy)

    def _require_record(self) -> TokenRecord:
        record = self.session.record
        if record is None:
            raise NoTokenError("No tokens: not authenticated")
        return record

    def refresh(self, client_id: str, client_secret: Optional[str] = None) -> TokenRecord:
        """Exchange the refresh token for a new record.

        Raises:
            NoTokenError: If there is no record
            NoRefreshTokenError: If the record has no refresh token
            RefreshError: On network error, non-2xx or malformed body
        """
        current = self._require_record()
        if not current.refresh_token:
            raise NoRefreshTokenError("No refresh token available")

        grant = {"grant_type": "refresh_token", "refresh_token": current.refresh_token}
        try:
            data = self.oauth.token_request(grant, client_id, client_secret)
        except ApiError as e:
            logger.error(f"Refresh failed: {e} (payload: {e.payload})")
            raise RefreshError(
                f"Refresh failed: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            ) from e

        try:
            record = TokenRecord.from_response(data, issued_at=int(time.time()))
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed refresh response: {e}")
            raise RefreshError(f"Malformed refresh response: {e}", payload=data) from e

        if record.refresh_token is None:
            if self.refresh_token_policy == RefreshTokenPolicy.RETAIN:
                record.refresh_token = current.refresh_token
            else:
                logger.warning("Refresh response carried no refresh token; dropping it")

        self.session.replace(record)
        logger.info("Tokens refreshed")
        return record

    def revoke(self, client_id: str, client_secret: Optional[str] = None) -> bool:
        """Revoke the access token and clear the session on confirmation.

        Returns:
            True once the server has confirmed revocation

        Raises:
            NoTokenError: If there is no access token
            RevokeError: If the server did not confirm (session unchanged)
        """
        record = self._require_record()
        try:
            self.oauth.revoke_token(
                record.access_token, "access_token", client_id, client_secret
            )
        except ApiError as e:
            logger.error(f"Revoke failed: {e} (payload: {e.payload})")
            raise RevokeError(
                f"Revoke failed: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            ) from e

        self.session.clear()
        logger.info("Access token revoked")
        return True

    def logout_url(self, redirect_uri: str) -> str:
        """End-session URL with the post-logout redirect.

        Raises:
            ConfigError: If no end-session endpoint is configured
        """
        endpoint = self.discovery.end_session_endpoint
        if not endpoint:
            raise ConfigError("Logout endpoint not available")
        return f"{endpoint}?post_logout_redirect_uri={quote(redirect_uri, safe='')}"

    def logout(self, redirect_uri: str) -> None:
        """Open the end-session page and clear local tokens regardless.

        The remote session may outlive the local one if the page never
        loads.

        Raises:
            ConfigError: If no end-session endpoint is configured
        """
        url = self.logout_url(redirect_uri)
        try:
            if self.user_agent is None:
                logger.warning("No user-agent; skipping remote logout page")
            elif not self.user_agent.open_url(url):
                logger.warning("User-agent could not open the logout page")
        except Exception as e:
            logger.warning(f"Logout page failed: {e}")
        finally:
            self.session.clear()
            logger.info("Logged out locally")
