"""Native OS notifications for OSP Client.

Each supported platform has a builder that turns a title and message into
the argv of a command-line notifier. Showing a notification is best-effort:
a missing notifier or a failing command is logged and otherwise ignored.
"""

import logging
import platform
import subprocess
from typing import Callable, Optional

logger = logging.getLogger(__name__)

APP_ID = "OSP Client"

TOAST_SCRIPT = (
    "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
    "ContentType = WindowsRuntime] > $null; "
    "$xml = [Windows.UI.Notifications.ToastNotificationManager]::"
    "GetTemplateContent([Windows.UI.Notifications.ToastTemplateType]::ToastText02); "
    "$lines = $xml.GetElementsByTagName('text'); "
    "$lines.Item(0).AppendChild($xml.CreateTextNode('{title}')) > $null; "
    "$lines.Item(1).AppendChild($xml.CreateTextNode('{message}')) > $null; "
    "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier('{app_id}')"
    ".Show([Windows.UI.Notifications.ToastNotification]::new($xml))"
)


def _applescript_literal(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _powershell_literal(text: str) -> str:
    return text.replace("'", "''")


def _macos_command(title: str, message: str, sound: bool) -> list[str]:
    script = (
        f"display notification {_applescript_literal(message)} "
        f"with title {_applescript_literal(title)}"
    )
    if sound:
        script += ' sound name "default"'
    return ["osascript", "-e", script]


def _windows_command(title: str, message: str, sound: bool) -> list[str]:
    script = TOAST_SCRIPT.format(
        title=_powershell_literal(title),
        message=_powershell_literal(message),
        app_id=_powershell_literal(APP_ID),
    )
    return ["powershell", "-Command", script]


def _linux_command(title: str, message: str, sound: bool) -> list[str]:
    return ["notify-send", "--app-name", APP_ID, title, message]


# platform.system() -> (argv builder, timeout in seconds)
NOTIFIERS: dict[str, tuple[Callable[[str, str, bool], list[str]], int]] = {
    "Darwin": (_macos_command, 5),
    "Windows": (_windows_command, 10),
    "Linux": (_linux_command, 5),
}


def notification_command(
    title: str, message: str, sound: bool = True, system: Optional[str] = None
) -> Optional[list[str]]:
    """Return the notifier argv for ``system`` (default: this OS), or None."""
    entry = NOTIFIERS.get(system or platform.system())
    if entry is None:
        return None
    build, _ = entry
    return build(title, message, sound)


def send_notification(title: str, message: str, sound: bool = True) -> None:
    """Show a native OS notification.

    Args:
        title: Notification title.
        message: Notification body text.
        sound: Whether to play a sound (macOS only).
    """
    system = platform.system()
    argv = notification_command(title, message, sound, system)
    if argv is None:
        logger.debug(f"Notifications not supported on {system}")
        return

    _, timeout = NOTIFIERS[system]
    try:
        subprocess.run(argv, capture_output=True, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Failed to show notification: {e}")
