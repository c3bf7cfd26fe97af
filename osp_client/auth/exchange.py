"""Authorization code exchange state machine.

States::

    IDLE -> AWAITING_AUTHORIZATION -> EXCHANGING_CODE -> AUTHENTICATED
                                                      \\-> FAILED

Transitions are driven by discrete events processed in FIFO order on the
calling thread. Handlers may enqueue further events; they run after the
current handler returns.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..errors import ProtocolError, TokenExchangeError
from ..http_client import ApiError
from ..protocols import UserAgent
from .browser_auth import RESULT_SUCCESS, CallbackResult
from .discovery import DiscoveryDocument
from .oauth_client import OAuthClient
from .pkce import AuthorizationRequest, build_authorization_request
from .tokens import SessionState, TokenRecord

__all__ = [
    "AuthState",
    "TokenExchangeEngine",
    "AuthorizationStarted",
    "AuthorizationResultReceived",
    "ExchangeCompleted",
    "ExchangeFailed",
]

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    IDLE = "idle"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    EXCHANGING_CODE = "exchanging_code"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class AuthorizationStarted:
    request: AuthorizationRequest


@dataclass
class AuthorizationResultReceived:
    result: CallbackResult


@dataclass
class ExchangeCompleted:
    record: TokenRecord


@dataclass
class ExchangeFailed:
    error: TokenExchangeError


class TokenExchangeEngine:
    """Turns an authorization callback into a token record.

    Only one authorization attempt is tracked: starting a new one discards
    the previous pending request and its verifier.
    """

    def __init__(
        self,
        discovery: DiscoveryDocument,
        client_id: str,
        redirect_uri: str,
        oauth: OAuthClient,
        session: SessionState,
    ):
        self.discovery = discovery
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.oauth = oauth
        self.session = session

        self._state = AuthState.IDLE
        self._pending: Optional[AuthorizationRequest] = None
        self._last_error: Optional[TokenExchangeError] = None
        self._events: deque = deque()
        self._draining = False
        self._handlers: dict[type, Callable] = {
            AuthorizationStarted: self._on_authorization_started,
            AuthorizationResultReceived: self._on_authorization_result,
            ExchangeCompleted: self._on_exchange_completed,
            ExchangeFailed: self._on_exchange_failed,
        }
        self._listeners: list[Callable[[AuthState], None]] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def pending_request(self) -> Optional[AuthorizationRequest]:
        return self._pending

    @property
    def last_error(self) -> Optional[TokenExchangeError]:
        return self._last_error

    def add_state_listener(self, listener: Callable[[AuthState], None]) -> None:
        """Call ``listener(new_state)`` on every transition."""
        self._listeners.append(listener)

    # -- Event queue -------------------------------------------------------

    def dispatch(self, event) -> None:
        """Queue an event and process the queue unless already processing."""
        self._events.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._events:
                current = self._events.popleft()
                self._handlers[type(current)](current)
        except Exception:
            self._events.clear()
            raise
        finally:
            self._draining = False

    def _transition(self, state: AuthState) -> None:
        if state == self._state:
            return
        logger.debug(f"Auth state {self._state.value} -> {state.value}")
        self._state = state
        for listener in self._listeners:
            listener(state)

    # -- Handlers ----------------------------------------------------------

    def _on_authorization_started(self, event: AuthorizationStarted) -> None:
        if self._pending is not None:
            logger.info("Discarding previous pending authorization request")
        self._pending = event.request
        self._last_error = None
        self._transition(AuthState.AWAITING_AUTHORIZATION)

    def _on_authorization_result(self, event: AuthorizationResultReceived) -> None:
        result = event.result
        if self._pending is None:
            raise ProtocolError("Authorization callback received with no pending request")

        if result.type != RESULT_SUCCESS or not result.code:
            logger.info(f"Authorization not completed ({result.type})")
            self._pending = None
            self._transition(AuthState.IDLE)
            return

        if result.state != self._pending.state:
            logger.warning("State parameter mismatch - possible CSRF attempt")
            self._pending = None
            self._transition(AuthState.IDLE)
            return

        self._transition(AuthState.EXCHANGING_CODE)

    def _on_exchange_completed(self, event: ExchangeCompleted) -> None:
        self._pending = None
        self.session.replace(event.record)
        self._transition(AuthState.AUTHENTICATED)
        logger.info("Authorization code exchanged for tokens")

    def _on_exchange_failed(self, event: ExchangeFailed) -> None:
        self._last_error = event.error
        self._transition(AuthState.FAILED)
        logger.error(f"Token exchange failed: {event.error} (payload: {event.error.payload})")

    # -- Operations --------------------------------------------------------

    def begin_authorization(self) -> AuthorizationRequest:
        """Build a new PKCE request and wait for its callback.

        Raises:
            ConfigError: If the client id or redirect URI is missing
        """
        request = build_authorization_request(
            self.client_id, self.redirect_uri, self.discovery.authorization_endpoint
        )
        self.dispatch(AuthorizationStarted(request))
        return request

    def handle_callback(self, result: CallbackResult) -> Optional[TokenRecord]:
        """Feed the user-agent's result into the state machine.

        Returns:
            The new TokenRecord, or None when authorization was not completed

        Raises:
            ProtocolError: If there is no pending request
            TokenExchangeError: If the code exchange fails
        """
        self.dispatch(AuthorizationResultReceived(result))
        if self._state != AuthState.EXCHANGING_CODE:
            return None
        return self.exchange_code(result.code, self._pending)

    def exchange_code(
        self, code: str, pending_request: Optional[AuthorizationRequest]
    ) -> TokenRecord:
        """Exchange an authorization code plus verifier for tokens.

        Raises:
            ProtocolError: If pending_request is None or is not the current
                pending request (no network call is made)
            TokenExchangeError: On network error, non-2xx or malformed body
        """
        if pending_request is None:
            raise ProtocolError("Cannot exchange a code without its pending request")
        if pending_request is not self._pending:
            raise ProtocolError("Authorization request is no longer pending")
        if self._state != AuthState.EXCHANGING_CODE:
            self._transition(AuthState.EXCHANGING_CODE)

        grant = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": pending_request.redirect_uri,
            "code_verifier": pending_request.code_verifier,
        }
        try:
            data = self.oauth.token_request(grant, pending_request.client_id)
        except ApiError as e:
            error = TokenExchangeError(
                f"Token exchange failed: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            )
            self.dispatch(ExchangeFailed(error))
            raise error from e

        try:
            record = TokenRecord.from_response(data, issued_at=int(time.time()))
        except (TypeError, ValueError) as e:
            error = TokenExchangeError(f"Malformed token response: {e}", payload=data)
            self.dispatch(ExchangeFailed(error))
            raise error from e

        self.dispatch(ExchangeCompleted(record))
        return record

    def authorize(self, user_agent: UserAgent) -> Optional[TokenRecord]:
        """Run a complete authorization: build, open user-agent, exchange.

        Returns:
            The new TokenRecord, or None if the user did not authorize
        """
        request = self.begin_authorization()
        result = user_agent.open_auth_session(request.url, request.redirect_uri)
        return self.handle_callback(result)

    def reset(self) -> None:
        """Forget any pending request and return to IDLE (after logout)."""
        self._pending = None
        self._last_error = None
        self._transition(AuthState.IDLE)
