"""SQLite-backed session store with a full-text index over message text.

One database file holds many sessions. File databases run in WAL mode so
readers do not block the single writer. Message text goes into an FTS5
index kept in step by triggers.
"""

from __future__ import annotations

import dataclasses
import json
import os
import sqlite3
import threading
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from glue.store import SESSION_STATE_VERSION, SessionState
from glue.types import ContentPart, ContentType, Message

SCHEMA_VERSION = 1
"""The on-disk schema version this module writes and expects to read."""

DEFAULT_TIMEOUT = 5.0
"""Default busy timeout, in seconds."""

# Every statement is idempotent; later changes must be versioned
# migrations keyed off the schema_version table.
_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);
INSERT OR IGNORE INTO schema_version (version) VALUES (1);

CREATE TABLE IF NOT EXISTS sessions (
    id            TEXT PRIMARY KEY,
    created_at    INTEGER NOT NULL,
    updated_at    INTEGER NOT NULL,
    metadata_json TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    rowid        INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id   TEXT NOT NULL,
    ord          INTEGER NOT NULL,
    role         TEXT NOT NULL,
    content_text TEXT NOT NULL,
    content_json TEXT NOT NULL,
    ts           INTEGER NOT NULL,
    FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE,
    UNIQUE (session_id, ord)
);

CREATE INDEX IF NOT EXISTS messages_session_idx ON messages(session_id);
CREATE INDEX IF NOT EXISTS messages_ts_idx      ON messages(ts);

CREATE VIRTUAL TABLE IF NOT EXISTS messages_fts USING fts5(
    content_text,
    content='messages',
    content_rowid='rowid',
    tokenize='unicode61 remove_diacritics 2'
);

CREATE TRIGGER IF NOT EXISTS messages_ai AFTER INSERT ON messages BEGIN
    INSERT INTO messages_fts(rowid, content_text) VALUES (new.rowid, new.content_text);
END;
CREATE TRIGGER IF NOT EXISTS messages_ad AFTER DELETE ON messages BEGIN
    INSERT INTO messages_fts(messages_fts, rowid, content_text) VALUES ('delete', old.rowid, old.content_text);
END;
CREATE TRIGGER IF NOT EXISTS messages_au AFTER UPDATE ON messages BEGIN
    INSERT INTO messages_fts(messages_fts, rowid, content_text) VALUES ('delete', old.rowid, old.content_text);
    INSERT INTO messages_fts(rowid, content_text)                 VALUES (new.rowid, new.content_text);
END;
"""

_MEMORY = ":memory:"


def _unix(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() // 1)


def _from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, timezone.utc)


def text_for_fts(parts: Iterable[ContentPart]) -> str:
    """Join the non-empty text parts of a message with newlines.

    Tool calls, images and thinking are left out of the index.
    """
    return "\n".join(
        part.text
        for part in parts
        if ContentType(part.type) is ContentType.TEXT and part.text
    )


class SQLiteStore:
    """Session store backed by one SQLite file with FTS5 over message text.

    ``":memory:"`` gives a private in-memory database. Writes from one
    process are serialized through a single connection.
    """

    def __init__(
        self, path: str | os.PathLike[str], timeout: Optional[float] = None
    ) -> None:
        path = os.fspath(path)
        if not str(path).strip():
            raise ValueError("sqlite: path is required")
        if timeout is None or timeout <= 0:
            timeout = DEFAULT_TIMEOUT
        self.path = path
        self.timeout = timeout
        self._lock = threading.Lock()
        conn = sqlite3.connect(
            path, timeout=timeout, isolation_level=None, check_same_thread=False
        )
        try:
            if path == _MEMORY:
                conn.execute("PRAGMA journal_mode=MEMORY")
                conn.execute("PRAGMA synchronous=OFF")
            else:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
                conn.execute(f"PRAGMA busy_timeout={int(timeout * 1000)}")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.executescript(_SCHEMA_SQL)
        except sqlite3.Error:
            conn.close()
            raise
        self._conn: Optional[sqlite3.Connection] = conn

    def close(self) -> None:
        """Release the database handle; closing twice is harmless."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def db(self) -> sqlite3.Connection:
        """The underlying connection, for inspection and direct queries."""
        return self._connection()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("sqlite: store is closed")
        return self._conn

    @staticmethod
    def _check_id(session_id: str) -> None:
        if not session_id.strip():
            raise ValueError("sqlite: session id is required")

    def load(self, session_id: str) -> Optional[SessionState]:
        """Read a session; None when it does not exist."""
        self._check_id(session_id)
        with self._lock:
            conn = self._connection()
            row = conn.execute(
                "SELECT id, created_at, updated_at, COALESCE(metadata_json, '') "
                "FROM sessions WHERE id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                return None
            raw_messages = [
                content
                for (content,) in conn.execute(
                    "SELECT content_json FROM messages "
                    "WHERE session_id = ? ORDER BY ord ASC",
                    (session_id,),
                )
            ]

        found_id, created, updated, meta_json = row
        metadata: dict[str, Any] = {}
        if meta_json:
            try:
                metadata = json.loads(meta_json)
            except ValueError as exc:
                raise ValueError(
                    f"sqlite: load session {json.dumps(session_id)} metadata: {exc}"
                ) from exc
        messages = []
        for raw in raw_messages:
            try:
                messages.append(Message.from_dict(json.loads(raw)))
            except (ValueError, KeyError, TypeError) as exc:
                raise ValueError(
                    f"sqlite: decode message for {json.dumps(session_id)}: {exc}"
                ) from exc
        return SessionState(
            version=SESSION_STATE_VERSION,
            id=found_id,
            messages=messages,
            metadata=metadata,
            created_at=_from_unix(created),
            updated_at=_from_unix(updated),
        )

    def save(self, session_id: str, state: SessionState) -> None:
        """Replace a session and all its messages in one transaction."""
        self._check_id(session_id)
        now = datetime.now(timezone.utc)
        state = dataclasses.replace(
            state,
            id=state.id or session_id,
            version=state.version or SESSION_STATE_VERSION,
            created_at=state.created_at or now,
            updated_at=state.updated_at or now,
        )
        try:
            meta_json = json.dumps(state.metadata) if state.metadata else ""
        except (TypeError, ValueError) as exc:
            raise ValueError(f"sqlite: marshal metadata: {exc}") from exc

        rows = []
        for index, message in enumerate(state.messages):
            ts = message.created_at or state.updated_at
            rows.append(
                (
                    session_id,
                    index,
                    MessageRoleValue(message),
                    text_for_fts(message.content),
                    json.dumps(message.to_dict()),
                    _unix(ts),
                )
            )

        with self._lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute(
                    """
                    INSERT INTO sessions (id, created_at, updated_at, metadata_json)
                    VALUES (?, ?, ?, NULLIF(?, ''))
                    ON CONFLICT(id) DO UPDATE SET
                        updated_at    = excluded.updated_at,
                        metadata_json = NULLIF(excluded.metadata_json, '')
                    """,
                    (
                        session_id,
                        _unix(state.created_at),
                        _unix(state.updated_at),
                        meta_json,
                    ),
                )
                conn.execute(
                    "DELETE FROM messages WHERE session_id = ?", (session_id,)
                )
                conn.executemany(
                    "INSERT INTO messages "
                    "(session_id, ord, role, content_text, content_json, ts) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    rows,
                )
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def delete(self, session_id: str) -> None:
        """Remove a session, its messages and their index rows."""
        self._check_id(session_id)
        with self._lock:
            self._connection().execute(
                "DELETE FROM sessions WHERE id = ?", (session_id,)
            )


def MessageRoleValue(message: Message) -> str:  # noqa: N802
    return getattr(message.role, "value", message.role)