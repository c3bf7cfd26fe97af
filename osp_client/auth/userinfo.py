"""User profile lookup with a persisted cache."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import NoTokenError, UserInfoError
from ..http_client import ApiError
from .oauth_client import OAuthClient
from .tokens import SessionState, USER_INFO_KEY

__all__ = ["UserInfo", "Application", "UserInfoService"]

logger = logging.getLogger(__name__)


@dataclass
class Application:
    code: str
    name: str


@dataclass
class UserInfo:
    """Profile returned by the user-info endpoint."""

    id: str
    email: str
    name: str
    roles: list[str] = field(default_factory=list)
    application: Optional[Application] = None

    @classmethod
    def from_dict(cls, data: dict) -> "UserInfo":
        app = data.get("application") or None
        return cls(
            id=str(data["id"]),
            email=data.get("email", ""),
            name=data.get("name", ""),
            roles=[str(role) for role in data.get("roles") or []],
            application=Application(code=app.get("code", ""), name=app.get("name", ""))
            if app
            else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "roles": list(self.roles),
            "application": {"code": self.application.code, "name": self.application.name}
            if self.application
            else None,
        }

    def display_roles(self) -> str:
        return ", ".join(self.roles)


class UserInfoService:
    """Reads the cached profile, fetching it once when absent."""

    def __init__(self, oauth: OAuthClient, session: SessionState):
        self.oauth = oauth
        self.session = session

    def cached(self) -> Optional[UserInfo]:
        data = self.session.store.get_json(USER_INFO_KEY)
        if not data:
            return None
        try:
            return UserInfo.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed cached user info: {e}")
            return None

    def get_user_info(self, refresh: bool = False) -> UserInfo:
        """Return the user profile.

        Uses the ``userInfo`` cache unless ``refresh`` is set; otherwise
        fetches with the persisted access token and caches the result.

        Raises:
            NoTokenError: If no access token is available
            UserInfoError: If the fetch fails or the body is malformed
        """
        if not refresh:
            info = self.cached()
            if info is not None:
                return info

        access_token = self.session.access_token or self.session.persisted_access_token()
        if not access_token:
            raise NoTokenError("No access token for user info")

        try:
            data = self.oauth.fetch_user_info(access_token)
        except ApiError as e:
            logger.error(f"User info error: {e} (payload: {e.payload})")
            raise UserInfoError(
                f"User info error: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            ) from e

        try:
            info = UserInfo.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise UserInfoError(f"Malformed user info: {e}", payload=data) from e

        if not self.session.store.set_json(USER_INFO_KEY, info.to_dict()):
            logger.warning("User info could not be cached")
        return info

    def clear_cache(self) -> bool:
        return self.session.store.remove_item(USER_INFO_KEY)
