"""OSP Client - Main entry point."""

import cmd
import json
import logging
import sys
from typing import Optional

from . import __version__
from .auth import (
    BrowserUserAgent,
    KeychainStore,
    OAuthClient,
    RefreshTokenPolicy,
    SessionState,
    TokenExchangeEngine,
    TokenLifecycleManager,
    TokenRecord,
    UserInfo,
    UserInfoService,
)
from .config import Config, setup_logging
from .errors import ConfigError, OSPClientError
from .notices import DesktopNoticePresenter, Notice, NoticePresenter
from .protocols import KeyValueStore, PushTokenSource, UserAgent
from .push import (
    ConfiguredPushTokenSource,
    NotificationCenter,
    NotificationDispatcher,
    PushNotification,
    PushTokenRegistrar,
    obtain_device_token,
)

logger = logging.getLogger(__name__)


class OSPClientApp:
    """Wires the auth and push components and runs user actions.

    Every action catches its own failure, logs the full error and shows a
    short notice. Actions return their result, or None on failure.
    """

    def __init__(
        self,
        config: Config,
        store: Optional[KeyValueStore] = None,
        user_agent: Optional[UserAgent] = None,
        push_source: Optional[PushTokenSource] = None,
        presenter: Optional[NoticePresenter] = None,
        notification_center: Optional[NotificationCenter] = None,
    ):
        config.validate()
        self.config = config
        self.discovery = config.discovery()
        self.store = store or KeychainStore()
        self.user_agent = user_agent or BrowserUserAgent()
        self.push_source = push_source or ConfiguredPushTokenSource(config.device_push_token)
        self.presenter = presenter or DesktopNoticePresenter()
        # The presenter shows received notifications, so the center does not
        self.notification_center = notification_center or NotificationCenter(show_alerts=False)
        self.notification_center.add_received_listener(self._on_notification_received)

        self.session = SessionState(self.store)
        self.oauth = OAuthClient(self.discovery, timeout=config.request_timeout)
        self.engine = TokenExchangeEngine(
            self.discovery,
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            oauth=self.oauth,
            session=self.session,
        )
        self.lifecycle = TokenLifecycleManager(
            self.discovery,
            self.oauth,
            self.session,
            user_agent=self.user_agent,
            refresh_token_policy=RefreshTokenPolicy(config.refresh_token_policy),
        )
        self.user_info = UserInfoService(self.oauth, self.session)
        self.registrar = PushTokenRegistrar(config.auth_host, timeout=config.request_timeout)
        self.dispatcher = NotificationDispatcher(
            config.notification_base_url, timeout=config.request_timeout
        )
        self.device_token: Optional[str] = None

    def _notify(self, title: str, message: str) -> None:
        self.presenter.show(Notice(title, message))

    def _fail(self, message: str, error: Exception) -> None:
        logger.error(f"{message}: {error!r} payload={getattr(error, 'payload', None)}")
        self._notify("Error", message)

    # -- Auth actions ------------------------------------------------------

    def connect(self) -> Optional[TokenRecord]:
        """Run the browser authorization flow."""
        try:
            record = self.engine.authorize(self.user_agent)
        except OSPClientError as e:
            self._fail("Sign-in failed", e)
            return None
        if record is None:
            self._notify("Cancelled", "Authorization was not completed")
        return record

    def refresh(self) -> Optional[TokenRecord]:
        try:
            return self.lifecycle.refresh(self.config.client_id, self.config.client_secret)
        except OSPClientError as e:
            self._fail("Refresh error", e)
            return None

    def revoke(self) -> bool:
        try:
            self.lifecycle.revoke(self.config.client_id, self.config.client_secret)
        except OSPClientError as e:
            self._fail("Revoke error", e)
            return False
        self.user_info.clear_cache()
        return True

    def logout(self) -> None:
        try:
            self.lifecycle.logout(self.config.redirect_uri)
        except ConfigError as e:
            self._fail("Logout endpoint not available", e)
            return
        self.user_info.clear_cache()
        self.engine.reset()

    def show_user(self, refresh: bool = False) -> Optional[UserInfo]:
        try:
            return self.user_info.get_user_info(refresh=refresh)
        except OSPClientError as e:
            self._fail("User information is not available", e)
            return None

    # -- Push actions ------------------------------------------------------

    def register_push_token(self) -> bool:
        try:
            self.device_token = obtain_device_token(self.push_source)
            self.registrar.register_device_token(self.session.access_token, self.device_token)
        except OSPClientError as e:
            self._fail("Failed to register push token", e)
            return False
        self._notify("Success", "Push token registered successfully")
        return True

    def send_notification(self, title: str, body: str) -> bool:
        """Send a test notification to the signed-in user."""
        user = self.show_user()
        if user is None:
            return False
        try:
            self.dispatcher.send_notification(
                self.session.access_token, user.id, title, body
            )
        except OSPClientError as e:
            self._fail("Failed to send notification", e)
            return False
        self._notify("Success", "Notification sent successfully")
        return True

    def receive_notification(self, message: dict) -> PushNotification:
        """Hand an incoming push message to the notification center."""
        notification = PushNotification.from_dict(message)
        self.notification_center.deliver(notification)
        return notification

    def open_last_notification(self) -> Optional[PushNotification]:
        """Mark the last received notification as opened by the user."""
        notification = self.notification_center.last_notification
        if notification is not None:
            self.notification_center.respond(notification)
        return notification

    def _on_notification_received(self, notification: PushNotification) -> None:
        self._notify(notification.title or "Notification", notification.body)

    def close(self) -> None:
        self.oauth.close()
        self.registrar.close()
        self.dispatcher.close()

    def __enter__(self) -> "OSPClientApp":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class OSPConsole(cmd.Cmd):
    """Interactive console front-end."""

    intro = f"OSP Client {__version__}. Type help or ? to list commands."
    prompt = "(osp) "

    def __init__(self, app: OSPClientApp, **kwargs):
        super().__init__(**kwargs)
        self.app = app

    def do_connect(self, arg):
        """Sign in through the browser."""
        if self.app.connect():
            self.do_tokens(arg)

    def do_refresh(self, arg):
        """Refresh the access token."""
        if self.app.refresh():
            self.do_tokens(arg)

    def do_revoke(self, arg):
        """Revoke the access token."""
        self.app.revoke()

    def do_logout(self, arg):
        """Open the logout page and clear local tokens."""
        self.app.logout()

    def do_tokens(self, arg):
        """Show the current tokens."""
        record = self.app.session.record
        if record is None:
            self.stdout.write("No tokens yet.\n")
            return
        for key, value in record.to_dict().items():
            self.stdout.write(f"{key:<14}{value if value is not None else 'Not available'}\n")

    def do_user(self, arg):
        """Show user information (user refresh to bypass the cache)."""
        info = self.app.show_user(refresh=arg.strip() == "refresh")
        if info is None:
            self.stdout.write("No user information available.\n")
            return
        app_name = f"{info.application.name} ({info.application.code})" if info.application else ""
        for key, value in (
            ("ID", info.id),
            ("Email", info.email),
            ("Name", info.name),
            ("Roles", info.display_roles()),
            ("Application", app_name),
        ):
            self.stdout.write(f"{key:<14}{value}\n")

    def do_register(self, arg):
        """Register this device's push token."""
        self.app.register_push_token()

    def do_send(self, arg):
        """send <title> | <body> - send a test notification to yourself."""
        title, _, body = arg.partition("|")
        self.app.send_notification(title.strip(), body.strip())

    def do_receive(self, arg):
        """receive <json> - deliver an incoming push message."""
        try:
            message = json.loads(arg)
        except ValueError:
            message = None
        if not isinstance(message, dict):
            self.stdout.write("Invalid notification payload.\n")
            return
        self.app.receive_notification(message)

    def do_last(self, arg):
        """Show the last received notification; "last open" also marks it opened."""
        notification = (
            self.app.open_last_notification()
            if arg.strip() == "open"
            else self.app.notification_center.last_notification
        )
        if notification is None:
            self.stdout.write("No notifications received.\n")
            return
        self.stdout.write(f"{'Title':<14}{notification.title}\n")
        self.stdout.write(f"{'Body':<14}{notification.body}\n")
        if notification.data:
            self.stdout.write(f"{'Data':<14}{json.dumps(notification.data)}\n")

    def do_quit(self, arg):
        """Exit."""
        return True

    do_EOF = do_quit


def main() -> None:
    """Main entry point."""
    config = Config.load()
    setup_logging(config.debug_mode)
    logger.info("OSP Client starting...")

    try:
        app = OSPClientApp(config)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    with app:
        OSPConsole(app).cmdloop()


if __name__ == "__main__":
    main()
