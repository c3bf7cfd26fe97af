"""Auth module - PKCE authorization, token lifecycle and session storage."""

from .browser_auth import BrowserUserAgent, CallbackResult
from .discovery import DiscoveryDocument
from .exchange import AuthState, TokenExchangeEngine
from .keychain import KeychainStore
from .lifecycle import TokenLifecycleManager
from .oauth_client import OAuthClient
from .pkce import AuthorizationRequest, build_authorization_request
from .tokens import RefreshTokenPolicy, SessionState, TokenRecord
from .userinfo import UserInfo, UserInfoService

__all__ = [
    "AuthState",
    "AuthorizationRequest",
    "BrowserUserAgent",
    "CallbackResult",
    "DiscoveryDocument",
    "KeychainStore",
    "OAuthClient",
    "RefreshTokenPolicy",
    "SessionState",
    "TokenExchangeEngine",
    "TokenLifecycleManager",
    "TokenRecord",
    "UserInfo",
    "UserInfoService",
    "build_authorization_request",
]
