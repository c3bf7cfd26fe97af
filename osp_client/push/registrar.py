"""Device push token registration."""

import logging
from typing import Optional

import requests

from ..errors import RegistrationError
from ..http_client import ApiError, BaseApiClient
from ..protocols import PushTokenSource

__all__ = [
    "PushTokenRegistrar",
    "ConfiguredPushTokenSource",
    "obtain_device_token",
    "PERMISSION_GRANTED",
    "PERMISSION_DENIED",
    "PERMISSION_UNDETERMINED",
]

logger = logging.getLogger(__name__)

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_UNDETERMINED = "undetermined"


class ConfiguredPushTokenSource:
    """Push token source for hosts without a native push service.

    The device token comes from configuration (e.g. provisioned by the
    FCM setup of the deployment). Having a token counts as permission.
    """

    def __init__(self, device_token: Optional[str]):
        self._device_token = device_token

    def get_permission_status(self) -> str:
        return PERMISSION_GRANTED if self._device_token else PERMISSION_UNDETERMINED

    def request_permission(self) -> str:
        return PERMISSION_GRANTED if self._device_token else PERMISSION_DENIED

    def get_device_token(self) -> str:
        if not self._device_token:
            raise RegistrationError("No device push token configured")
        return self._device_token


def obtain_device_token(source: PushTokenSource) -> str:
    """Ask for push permission if needed and return the device token.

    Raises:
        RegistrationError: If permission is denied or no token is available
    """
    status = source.get_permission_status()
    if status != PERMISSION_GRANTED:
        status = source.request_permission()
    if status != PERMISSION_GRANTED:
        raise RegistrationError("Push notifications are disabled")
    return source.get_device_token()


class PushTokenRegistrar(BaseApiClient):
    """Registers the device push token for the authenticated user."""

    ENDPOINT = "client/user-fcm-token"

    def __init__(
        self,
        auth_host: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(auth_host, timeout=timeout, session=session)

    def register_device_token(self, access_token: str, device_token: str) -> None:
        """POST the device token with bearer auth.

        Raises:
            RegistrationError: If either token is missing, on transport
                failure or on a non-2xx response
        """
        if not access_token:
            raise RegistrationError("Not authenticated")
        if not device_token:
            raise RegistrationError("Push token is not available yet")

        try:
            self._request(
                "POST",
                self.ENDPOINT,
                json={"token": device_token},
                access_token=access_token,
                expect_json=False,
            )
        except ApiError as e:
            logger.error(f"Error registering push token: {e} (payload: {e.payload})")
            raise RegistrationError(
                f"Failed to register push token: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            ) from e

        logger.info("Push token registered")
