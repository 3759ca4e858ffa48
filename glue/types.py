"""Normalized message, content and tool types."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional


class MessageRole(str, Enum):
    """Who authored a message."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ContentType(str, Enum):
    """Kind of a content part inside a message."""

    TEXT = "text"
    THINKING = "thinking"
    IMAGE = "image"
    TOOL_CALL = "tool_call"


_UTC = timezone.utc
_ZERO_TIME = datetime(1, 1, 1, tzinfo=_UTC)
_FRACTION = re.compile(r"\.(\d+)")


def _format_time(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp as RFC 3339 in UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=_UTC)
    return value.astimezone(_UTC).isoformat().replace("+00:00", "Z")


def _parse_time(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; empty and zero timestamps become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(
            lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1
        )
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_UTC)
    if parsed == _ZERO_TIME:
        return None
    return parsed.astimezone(_UTC)


@dataclass
class ToolCall:
    """A model request to run a tool; ``arguments`` holds raw JSON text."""

    id: str = ""
    name: str = ""
    arguments: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.arguments, (bytes, bytearray)):
            self.arguments = bytes(self.arguments).decode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.arguments:
            data["arguments"] = json.loads(self.arguments)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        raw = data.get("arguments")
        arguments = "" if raw is None else json.dumps(raw, separators=(",", ":"))
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            arguments=arguments,
        )


@dataclass
class ContentPart:
    """One piece of message content."""

    type: ContentType
    text: str = ""
    tool_call: Optional[ToolCall] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": ContentType(self.type).value}
        if self.text:
            data["text"] = self.text
        if self.tool_call is not None:
            data["tool_call"] = self.tool_call.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentPart":
        tool_call = data.get("tool_call")
        return cls(
            type=ContentType(data["type"]),
            text=str(data.get("text", "")),
            tool_call=None if tool_call is None else ToolCall.from_dict(tool_call),
        )


@dataclass
class Message:
    """A single transcript entry."""

    role: MessageRole
    content: list[ContentPart] = field(default_factory=list)
    created_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": MessageRole(self.role).value,
            "content": [part.to_dict() for part in self.content],
        }
        if self.created_at is not None:
            data["created_at"] = _format_time(self.created_at)
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=MessageRole(data["role"]),
            content=[ContentPart.from_dict(p) for p in data.get("content") or []],
            created_at=_parse_time(data.get("created_at")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ToolSpec:
    """What the model is told about a tool; ``parameters`` is a JSON Schema."""

    name: str
    description: str = ""
    parameters: Any = None


@dataclass
class ToolResult:
    """Outcome of a tool call as shown to the model."""

    content: list[ContentPart] = field(default_factory=list)
    is_error: bool = False


@dataclass
class Tool:
    """A tool spec paired with the callable that runs it."""

    spec: ToolSpec
    executor: Callable[[ToolCall], ToolResult]

    def execute(self, call: ToolCall) -> ToolResult:
        """Run the tool for one call."""
        return self.executor(call)