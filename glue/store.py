"""Durable session state and the store interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from glue.types import Message, _format_time, _parse_time

SESSION_STATE_VERSION = 1


@dataclass
class SessionState:
    """The durable representation of a session."""

    version: int = SESSION_STATE_VERSION
    id: str = ""
    messages: list[Message] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "id": self.id}
        if self.messages:
            data["messages"] = [m.to_dict() for m in self.messages]
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        data["created_at"] = _format_time(self.created_at)
        data["updated_at"] = _format_time(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionState":
        return cls(
            version=int(data.get("version") or 0),
            id=str(data.get("id") or ""),
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            metadata=dict(data.get("metadata") or {}),
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
        )


@runtime_checkable
class Store(Protocol):
    """Persists session state.

    ``load`` returns None for an unknown id. ``save`` must not leave a
    partial write behind. ``delete`` of a missing id succeeds silently.
    """

    def load(self, session_id: str) -> Optional[SessionState]:
        """Return the stored state for ``session_id`` or None."""

    def save(self, session_id: str, state: SessionState) -> None:
        """Persist ``state`` under ``session_id``."""

    def delete(self, session_id: str) -> None:
        """Remove ``session_id``; missing ids are not an error."""