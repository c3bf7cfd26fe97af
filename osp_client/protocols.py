"""Protocol types for the client's external collaborators.

Defines the interfaces the auth and push components require from the
key-value store, the browser user-agent and the push subsystem, so tests
can substitute fakes.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .auth.browser_auth import CallbackResult


@runtime_checkable
class KeyValueStore(Protocol):
    """Persisted string key-value record."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> bool: ...

    def remove_item(self, key: str) -> bool: ...

    def get_json(self, key: str) -> Optional[Any]: ...

    def set_json(self, key: str, value: Any) -> bool: ...


@runtime_checkable
class UserAgent(Protocol):
    """Browser able to run an authorization session and open plain URLs."""

    def open_auth_session(self, url: str, redirect_uri: str) -> "CallbackResult": ...

    def open_url(self, url: str) -> bool: ...


@runtime_checkable
class PushTokenSource(Protocol):
    """Push-notification subsystem that hands out a device token."""

    def get_permission_status(self) -> str: ...

    def request_permission(self) -> str: ...

    def get_device_token(self) -> str: ...
