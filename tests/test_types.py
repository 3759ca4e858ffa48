import json
from datetime import datetime, timezone

import pytest

from glue.types import (
    ContentPart,
    ContentType,
    Message,
    MessageRole,
    Tool,
    ToolCall,
    ToolResult,
    ToolSpec,
)

UTC = timezone.utc


def test_message_round_trip_through_json():
    msg = Message(
        role=MessageRole.ASSISTANT,
        content=[
            ContentPart(ContentType.TEXT, "hi"),
            ContentPart(
                ContentType.TOOL_CALL,
                tool_call=ToolCall("c1", "lookup", '{"q":"x"}'),
            ),
        ],
        created_at=datetime(2026, 5, 16, 10, 0, 0, tzinfo=UTC),
        metadata={"a": 1},
    )
    restored = Message.from_dict(json.loads(json.dumps(msg.to_dict())))
    assert restored == msg


def test_tool_call_arguments_embedded_as_json_value():
    call = ToolCall("c", "fn", '{"q":"x"}')
    assert call.to_dict()["arguments"] == {"q": "x"}


def test_tool_call_empty_arguments_omitted():
    assert "arguments" not in ToolCall("c", "fn").to_dict()


def test_tool_call_bytes_arguments_normalized():
    assert ToolCall(arguments=b'{"a":1}').arguments == '{"a":1}'


def test_role_from_wire_value():
    assert Message.from_dict({"role": "assistant", "content": []}).role is MessageRole.ASSISTANT


def test_unknown_role_raises():
    with pytest.raises(ValueError):
        Message.from_dict({"role": "ghost", "content": []})


def test_unknown_content_type_raises():
    with pytest.raises(ValueError):
        ContentPart.from_dict({"type": "video"})


def test_nanosecond_timestamp_parsed_to_microseconds():
    msg = Message.from_dict(
        {"role": "user", "content": [], "created_at": "2026-05-16T10:00:00.123456789Z"}
    )
    assert msg.created_at == datetime(2026, 5, 16, 10, 0, 0, 123456, tzinfo=UTC)


def test_naive_timestamp_written_as_utc():
    msg = Message(role=MessageRole.USER, created_at=datetime(2026, 5, 16, 10, 0, 0))
    assert msg.to_dict()["created_at"] == "2026-05-16T10:00:00Z"


def test_text_part_round_trip_keeps_text():
    part = ContentPart(ContentType.TEXT, "hello")
    assert ContentPart.from_dict(part.to_dict()) == part


def test_tool_execute_calls_executor():
    tool = Tool(
        ToolSpec("echo"),
        executor=lambda call: ToolResult([ContentPart(ContentType.TEXT, call.name)]),
    )
    result = tool.execute(ToolCall(name="echo"))
    assert result.content[0].text == "echo"
    assert result.is_error is False