"""HTTP calls against the OSP authorization server endpoints."""

import logging
from typing import Any, Optional

import requests

from ..http_client import BaseApiClient
from .discovery import DiscoveryDocument

__all__ = ["OAuthClient"]

logger = logging.getLogger(__name__)


class OAuthClient(BaseApiClient):
    """Token, revocation and user-info requests.

    All methods raise ``ApiError``; callers translate it into the error
    type of the operation they implement.
    """

    def __init__(
        self,
        discovery: DiscoveryDocument,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(discovery.token_endpoint, timeout=timeout, session=session)
        self.discovery = discovery

    @staticmethod
    def _client_auth(
        form: dict, client_id: str, client_secret: Optional[str]
    ) -> Optional[tuple[str, str]]:
        # Confidential clients authenticate with HTTP Basic, public ones
        # identify themselves in the body.
        if client_secret:
            return (client_id, client_secret)
        form["client_id"] = client_id
        return None

    def token_request(
        self,
        grant: dict,
        client_id: str,
        client_secret: Optional[str] = None,
    ) -> Any:
        """POST a grant to the token endpoint and return the JSON body."""
        form = dict(grant)
        auth = self._client_auth(form, client_id, client_secret)
        logger.debug(f"Token request: grant_type={form.get('grant_type')}")
        return self._request(
            "POST", self.discovery.token_endpoint, form=form, auth=auth
        )

    def revoke_token(
        self,
        token: str,
        token_type_hint: str,
        client_id: str,
        client_secret: Optional[str] = None,
    ) -> None:
        """POST to the revocation endpoint. Returns only on a 2xx."""
        form = {"token": token, "token_type_hint": token_type_hint}
        auth = self._client_auth(form, client_id, client_secret)
        self._request(
            "POST",
            self.discovery.revocation_endpoint,
            form=form,
            auth=auth,
            expect_json=False,
        )

    def fetch_user_info(self, access_token: str) -> Any:
        """GET the user-info endpoint with bearer auth."""
        return self._request(
            "GET", self.discovery.user_info_endpoint, access_token=access_token
        )
