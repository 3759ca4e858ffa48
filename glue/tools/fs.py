"""Filesystem helpers and a ready-made ``read_file`` tool.

The helpers cover the usual dangers of model-supplied paths: escaping
the working directory, reading secret-shaped files, and returning an
unbounded amount of output.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Union

from glue.tool_helpers import error_result, new_tool, text_result
from glue.types import Tool, ToolResult, ToolSpec

DEFAULT_READ_MAX_BYTES = 80 * 1024
"""Default cap on the content returned by one ``read_file`` call."""

_TRUNCATION_NOTE = "\n\n[... truncated]"

_DEFAULT_PATTERNS = (
    # Environment / secret bag dotfiles
    ".env",
    ".env.*",
    ".envrc",
    ".npmrc",
    ".netrc",
    ".pgpass",
    # SSH / key material
    "id_rsa",
    "id_rsa.*",
    "id_ed25519",
    "id_ed25519.*",
    "id_dsa",
    "id_dsa.*",
    "id_ecdsa",
    "id_ecdsa.*",
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    "*.jks",
    # Cloud / service account credentials
    "credentials",
    "credentials.json",
    "service-account*.json",
    "client-secret*.json",
    "*.kubeconfig",
    # Generic "secret" naming
    "*_secret*",
    "*_secrets*",
    "*.secret",
    "*.secrets",
    "secret.*",
    "secrets.*",
    "secrets",
    # Cloud CLI credential directories
    ".aws",
    ".gcloud",
    ".azure",
)


def _read_class_char(pattern: str, i: int) -> Optional[tuple[str, int]]:
    """Read one possibly escaped character inside a ``[...]`` class."""
    if i >= len(pattern) or pattern[i] in "-]":
        return None
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            return None
    return pattern[i], i + 1


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> Optional[re.Pattern[str]]:
    """Translate a glob into a regex; ``*`` and ``?`` never cross ``/``.

    Returns None for a malformed pattern, which then matches nothing.
    """
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "\\":
            i += 1
            if i >= n:
                return None
            out.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            i += 1
            negate = False
            if i < n and pattern[i] == "^":
                negate = True
                i += 1
            ranges: list[str] = []
            while True:
                if i >= n:
                    return None
                if pattern[i] == "]" and ranges:
                    i += 1
                    break
                read = _read_class_char(pattern, i)
                if read is None:
                    return None
                lo, i = read
                hi = lo
                if i < n and pattern[i] == "-":
                    read = _read_class_char(pattern, i + 1)
                    if read is None:
                        return None
                    hi, i = read
                    if hi < lo:
                        return None
                ranges.append(f"{re.escape(lo)}-{re.escape(hi)}")
            out.append("[" + ("^" if negate else "") + "".join(ranges) + "]")
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out), re.DOTALL)


def _glob_match(pattern: str, name: str) -> bool:
    compiled = _compile_glob(pattern)
    return compiled is not None and compiled.fullmatch(name) is not None


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


class Blocklist(tuple):
    """An ordered, immutable list of glob patterns for paths to refuse.

    A path is checked as a whole, by its base name and by each of its
    components; the last two checks ignore case.
    """

    def __new__(cls, patterns: Iterable[str] = ()) -> "Blocklist":
        return super().__new__(cls, patterns)

    def merge(self, *args: str) -> "Blocklist":
        """A new list with ``args`` appended, trimmed, blanks and duplicates dropped."""
        seen: dict[str, None] = {}
        for pattern in (*self, *args):
            pattern = pattern.strip()
            if pattern:
                seen.setdefault(pattern, None)
        return Blocklist(seen)

    def match(self, rel: str) -> Optional[str]:
        """The first pattern that blocks ``rel``, or None when it is allowed."""
        clean = rel.strip()
        if not clean:
            return None
        if os.sep != "/":
            clean = clean.replace(os.sep, "/")
        base = _base_name(clean).lower()
        parts = [part.lower() for part in clean.split("/")]

        for pattern in self:
            pattern = pattern.strip()
            if not pattern:
                continue
            if _glob_match(pattern, clean):
                return pattern
            low = pattern.lower()
            if _glob_match(low, base):
                return pattern
            if any(_glob_match(low, part) for part in parts):
                return pattern
        return None


def default_blocklist() -> Blocklist:
    """The built-in patterns for secret-shaped files and credential directories."""
    return Blocklist(_DEFAULT_PATTERNS)


def safe_join(base: Union[str, os.PathLike[str]], rel: str) -> str:
    """Resolve ``rel`` under ``base`` and return the absolute, normalized path.

    Raises ValueError for an empty path, an absolute path, or one that
    climbs out of ``base`` with "..".
    """
    rel = rel.strip()
    if not rel:
        raise ValueError("path is required")
    if os.path.isabs(rel):
        raise ValueError("absolute paths are not allowed")
    abs_base = os.path.abspath(os.fspath(base))
    candidate = os.path.normpath(os.path.join(abs_base, rel))
    relative = os.path.relpath(candidate, abs_base)
    if relative.startswith(".."):
        raise ValueError(f"path {json.dumps(rel)} escapes work directory")
    return candidate


def truncate(text: str, max_bytes: int) -> str:
    """Cap ``text`` at ``max_bytes`` UTF-8 bytes, ending with a visible marker.

    Text that fits is returned unchanged. When the cap is too small to
    hold the marker, the text is simply cut.
    """
    data = text.encode("utf-8")
    if len(data) <= max_bytes:
        return text
    note = _TRUNCATION_NOTE.encode("utf-8")
    if max_bytes <= len(note):
        return data[: max(max_bytes, 0)].decode("utf-8", errors="ignore")
    head = data[: max_bytes - len(note)].decode("utf-8", errors="ignore")
    return head + _TRUNCATION_NOTE


@dataclass
class _ReadFileArgs:
    path: str = ""
    max_bytes: int = 0


_READ_FILE_PARAMETERS = {
    "type": "object",
    "properties": {
        "path": {
            "type": "string",
            "description": "Path relative to the working directory. '..' traversal is rejected.",
        },
        "max_bytes": {
            "type": "integer",
            "description": "Cap on returned bytes. Default 81920.",
        },
    },
    "required": ["path"],
}


def read_file_tool(
    work_dir: Union[str, os.PathLike[str]],
    blocklist: Optional[Iterable[str]] = None,
    max_bytes: int = 0,
) -> Tool:
    """A ``read_file`` tool that reads text under ``work_dir``.

    Blocked, escaping or unreadable paths come back as error results so
    the model can recover.
    """
    default_limit = max_bytes if max_bytes > 0 else DEFAULT_READ_MAX_BYTES
    blocked_patterns = Blocklist(blocklist or ())

    def run(args: _ReadFileArgs) -> ToolResult:
        pattern = blocked_patterns.match(args.path)
        if pattern is not None:
            return error_result(
                f"path {json.dumps(args.path)} is blocked by sensitive-file pattern "
                f"{json.dumps(pattern)}; do not retry"
            )
        try:
            resolved = safe_join(work_dir, args.path)
        except ValueError as exc:
            return error_result(exc)
        limit = args.max_bytes if args.max_bytes > 0 else default_limit
        try:
            with open(resolved, "rb") as handle:
                data = handle.read(limit + 1)
        except OSError as exc:
            return error_result(exc)
        return text_result(truncate(data.decode("utf-8", errors="replace"), limit))

    return new_tool(
        ToolSpec(
            name="read_file",
            description=(
                "Read a UTF-8 text file from the working directory. Returns the file "
                "content, truncated if larger than max_bytes. Use this to inspect files "
                "mentioned in the diff when surrounding context is needed. Refuses to "
                "open secret-shaped files (.env, id_rsa, *.pem, credentials.json, etc.)."
            ),
            parameters=_READ_FILE_PARAMETERS,
        ),
        _ReadFileArgs,
        run,
    )