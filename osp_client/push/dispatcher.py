"""Send push notifications through the notification service."""

import logging
from typing import Optional

import requests

from ..errors import DispatchError
from ..http_client import ApiError, BaseApiClient

__all__ = ["NotificationDispatcher"]

logger = logging.getLogger(__name__)


class NotificationDispatcher(BaseApiClient):
    """Posts user-targeted notifications.

    Each call is a separate send; nothing is deduplicated client-side.
    """

    ENDPOINT = "push-notification/send"

    def __init__(
        self,
        notification_host: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(notification_host, timeout=timeout, session=session)

    def send_notification(
        self,
        access_token: str,
        target_user_id: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> None:
        """Send one notification to ``target_user_id``.

        Raises:
            DispatchError: On transport failure or a non-2xx response; the
                server's error body is on ``payload``
        """
        if not access_token:
            raise DispatchError("Not authenticated")

        payload: dict = {"userId": target_user_id, "title": title, "body": body}
        if data:
            payload["data"] = data

        try:
            self._request(
                "POST",
                self.ENDPOINT,
                json=payload,
                access_token=access_token,
                expect_json=False,
            )
        except ApiError as e:
            logger.error(f"Error sending notification: {e} (payload: {e.payload})")
            raise DispatchError(
                f"Failed to send notification: {e.message}",
                status_code=e.status_code,
                payload=e.payload,
            ) from e

        logger.info("Notification sent successfully")
