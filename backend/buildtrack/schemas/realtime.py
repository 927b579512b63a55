"""Pydantic schemas for realtime change-feed messages."""

from typing import Any, Literal

from pydantic import BaseModel

ChangeType = Literal["INSERT", "UPDATE", "DELETE"]


class ChangeMessage(BaseModel):
    type: ChangeType
    table: str
    new: dict[str, Any] | None = None
    old: dict[str, Any] | None = None

    def row(self) -> dict[str, Any]:
        """The row used for filter matching: ``new`` when present, else ``old``."""
        return self.new or self.old or {}
