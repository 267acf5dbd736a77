"""User-facing notices produced by cart, checkout and order operations."""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notice(BaseModel):
    """A short message meant for the user."""

    level: NoticeLevel
    message: str

    def __str__(self) -> str:
        return f"[{self.level.value}] {self.message}"


class Notifier:
    """
    Collects notices until the presentation layer drains them.

    Each tool call or HTTP request runs inside ``collect()``, which routes the
    notices raised in that context (including tasks it starts) to a list of
    its own, so concurrent callers never see each other's notices. Outside a
    ``collect()`` block notices go to a list shared by the whole instance.
    """

    def __init__(self) -> None:
        self._notices: list[Notice] = []
        self._scope: ContextVar[Optional[list[Notice]]] = ContextVar(
            f"foodhub_notices_{id(self)}", default=None
        )

    @contextmanager
    def collect(self) -> Iterator[list[Notice]]:
        """Give the current context its own notice list until the block exits."""
        notices: list[Notice] = []
        token = self._scope.set(notices)
        try:
            yield notices
        finally:
            self._scope.reset(token)

    def _current(self) -> list[Notice]:
        scoped = self._scope.get()
        return self._notices if scoped is None else scoped

    def notify(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._current().append(notice)
        if level == NoticeLevel.ERROR:
            logger.warning(f"Notice: {notice}")
        else:
            logger.info(f"Notice: {notice}")
        return notice

    def success(self, message: str) -> Notice:
        return self.notify(NoticeLevel.SUCCESS, message)

    def info(self, message: str) -> Notice:
        return self.notify(NoticeLevel.INFO, message)

    def warning(self, message: str) -> Notice:
        return self.notify(NoticeLevel.WARNING, message)

    def error(self, message: str) -> Notice:
        return self.notify(NoticeLevel.ERROR, message)

    def peek(self) -> list[Notice]:
        return list(self._current())

    def drain(self) -> list[Notice]:
        """Return and forget every pending notice of the current context."""
        notices = self._current()
        drained = list(notices)
        notices.clear()
        return drained
