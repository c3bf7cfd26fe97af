"""User-visible notices for failed (and completed) actions.

A notice carries only a short message. Error detail belongs in the
diagnostic log, never in the notice.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from .notifications import send_notification

__all__ = ["Notice", "NoticePresenter", "LogNoticePresenter", "DesktopNoticePresenter"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    title: str
    message: str

    @property
    def is_error(self) -> bool:
        return self.title == "Error"


class NoticePresenter(Protocol):
    def show(self, notice: Notice) -> None: ...


class LogNoticePresenter:
    """Records notices and echoes them to the log (console front-end)."""

    def __init__(self):
        self.notices: list[Notice] = []

    def show(self, notice: Notice) -> None:
        self.notices.append(notice)
        logger.info(f"{notice.title}: {notice.message}")


class DesktopNoticePresenter(LogNoticePresenter):
    """Also shows each notice as a native OS notification."""

    def show(self, notice: Notice) -> None:
        super().show(notice)
        send_notification(notice.title, notice.message, sound=notice.is_error)
