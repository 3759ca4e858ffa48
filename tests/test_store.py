import json
from datetime import datetime, timezone

from glue.store import SESSION_STATE_VERSION, SessionState
from glue.types import ContentPart, ContentType, Message, MessageRole

UTC = timezone.utc


def test_default_state_uses_current_version():
    assert SessionState().version == SESSION_STATE_VERSION
    assert SessionState().version == 1


def test_round_trip_through_json():
    state = SessionState(
        id="dev",
        messages=[
            Message(MessageRole.USER, [ContentPart(ContentType.TEXT, "hi")]),
            Message(MessageRole.ASSISTANT, [ContentPart(ContentType.TEXT, "hello")]),
        ],
        metadata={"k": "v"},
        created_at=datetime(2026, 5, 16, 10, 0, 0, tzinfo=UTC),
        updated_at=datetime(2026, 5, 16, 12, 0, 0, tzinfo=UTC),
    )
    restored = SessionState.from_dict(json.loads(json.dumps(state.to_dict())))
    assert restored == state


def test_empty_collections_omitted():
    data = SessionState(id="x").to_dict()
    assert "messages" not in data
    assert "metadata" not in data
    assert data["id"] == "x"


def test_zero_timestamp_reads_as_unset():
    state = SessionState.from_dict(
        {"version": 1, "id": "x", "created_at": "0001-01-01T00:00:00Z", "updated_at": None}
    )
    assert state.created_at is None
    assert state.updated_at is None


def test_missing_version_reads_as_zero():
    assert SessionState.from_dict({"id": "x"}).version == 0


def test_unset_timestamps_serialize_as_null():
    data = SessionState(id="x").to_dict()
    assert data["created_at"] is None
    assert SessionState.from_dict(data).created_at is None