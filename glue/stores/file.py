"""Session store that keeps one JSON file per session.

Each session lives at ``<dir>/<escaped-id>.json``. Saves write a sibling
temporary file and rename it into place, so readers see either the old
file or the new one, never a partial write.
"""

from __future__ import annotations

import contextlib
import dataclasses
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from glue.store import SESSION_STATE_VERSION, SessionState

# Characters a URL path segment may carry unescaped, besides letters,
# digits and "_.-~".
_SEGMENT_SAFE = "$&+:=@"


class FileStore:
    """Persists sessions as local JSON files under one directory.

    The directory is created on the first save.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = os.fspath(directory)

    def path(self, session_id: str) -> Path:
        """The JSON file path for ``session_id``."""
        if not self.directory.strip():
            raise ValueError("file store: directory is required")
        if not session_id.strip():
            raise ValueError("file store: session id is required")
        return Path(self.directory) / (quote(session_id, safe=_SEGMENT_SAFE) + ".json")

    def load(self, session_id: str) -> Optional[SessionState]:
        """Read a session; None when it does not exist."""
        path = self.path(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            state = SessionState.from_dict(data)
        except (ValueError, TypeError, KeyError) as exc:
            raise ValueError(
                f"file store: load {json.dumps(session_id)}: {exc}"
            ) from exc
        if not state.id:
            state.id = session_id
        if not state.version:
            state.version = SESSION_STATE_VERSION
        return state

    def save(self, session_id: str, state: SessionState) -> None:
        """Write a session atomically, filling in missing id, version and times."""
        path = self.path(session_id)
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        now = datetime.now(timezone.utc)
        state = dataclasses.replace(
            state,
            id=state.id or session_id,
            version=state.version or SESSION_STATE_VERSION,
            created_at=state.created_at or now,
            updated_at=state.updated_at or now,
        )
        payload = json.dumps(state.to_dict(), indent=2, ensure_ascii=False) + "\n"

        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)

    def delete(self, session_id: str) -> None:
        """Remove a session; a missing one is not an error."""
        self.path(session_id).unlink(missing_ok=True)