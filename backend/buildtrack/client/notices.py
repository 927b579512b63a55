"""Transient, dismissible user-facing notices."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime

from buildtrack.client.models import utc_now

logger = logging.getLogger(__name__)

VARIANT_DEFAULT = "default"
VARIANT_DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notice:
    id: int
    title: str
    description: str
    variant: str = VARIANT_DEFAULT
    created_at: datetime = field(default_factory=utc_now)


class NoticeBoard:
    """Holds the most recent notices until they are dismissed.

    Only the newest ``limit`` notices are kept; older ones fall off.
    """

    def __init__(self, limit: int = 5) -> None:
        self.limit = limit
        self._notices: list[Notice] = []
        self._ids = itertools.count(1)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def push(self, title: str, description: str, variant: str = VARIANT_DEFAULT) -> Notice:
        notice = Notice(id=next(self._ids), title=title, description=description, variant=variant)
        self._notices = [notice, *self._notices][: self.limit]
        if variant == VARIANT_DESTRUCTIVE:
            logger.warning("%s: %s", title, description)
        else:
            logger.info("%s: %s", title, description)
        return notice

    def error(self, title: str, description: str) -> Notice:
        return self.push(title, description, VARIANT_DESTRUCTIVE)

    def dismiss(self, notice_id: int) -> bool:
        remaining = [n for n in self._notices if n.id != notice_id]
        dismissed = len(remaining) != len(self._notices)
        self._notices = remaining
        return dismissed

    def clear(self) -> None:
        self._notices = []
