"""Git helpers and ready-made git tools.

The helpers call the system ``git`` binary; no git library is used.
Failures inside the tools come back as error results so the model can
recover.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from glue.tool_helpers import error_result, new_tool, text_result
from glue.tools.fs import truncate
from glue.types import Tool, ToolResult, ToolSpec

DEFAULT_RUN_TIMEOUT = 15.0
"""Default cap, in seconds, on one git invocation."""

DEFAULT_DIFF_MAX_BYTES = 200 * 1024
"""Default cap on the diff returned by the ``git_diff_branch`` tool."""

DEFAULT_LOG_LIMIT = 50
"""Default number of commits returned by the ``git_log_branch`` tool."""

_LOG_FORMAT = "--pretty=format:%h %an  %s%n%b%n---"

PathLike = Union[str, "os.PathLike[str]"]


class GitError(RuntimeError):
    """A git invocation could not run or exited unsuccessfully."""


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def run_git(
    work_dir: Optional[PathLike], *args: str, timeout: Optional[float] = None
) -> str:
    """Run ``git`` with ``args`` in ``work_dir`` and return its standard output.

    Raises GitError naming the command line and carrying the trimmed
    standard error when git is missing, times out or fails.
    """
    if shutil.which("git") is None:
        raise GitError("git binary not found in PATH")
    if timeout is None or timeout <= 0:
        timeout = DEFAULT_RUN_TIMEOUT
    command_line = "git " + " ".join(args)
    cwd = os.fspath(work_dir) if work_dir else None
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        stderr = _decode(exc.stderr).strip()
        raise GitError(
            f"{command_line}: timed out after {timeout:g}s ({stderr})"
        ) from exc
    except OSError as exc:
        raise GitError(f"{command_line}: {exc} ()") from exc
    if completed.returncode != 0:
        stderr = _decode(completed.stderr).strip()
        raise GitError(
            f"{command_line}: exit status {completed.returncode} ({stderr})"
        )
    return _decode(completed.stdout)


def build_pathspec(
    includes: Optional[Sequence[str]], excludes: Optional[Sequence[str]]
) -> list[str]:
    """Turn include and exclude globs into git pathspec arguments.

    Excludes become ``:(exclude)pattern``. When only excludes are given,
    ``*`` is added as a catch-all include so they take effect. Both lists
    empty gives an empty list.
    """
    includes = list(includes or ())
    excludes = list(excludes or ())
    if not includes and not excludes:
        return []
    out = includes or ["*"]
    out.extend(f":(exclude){pattern}" for pattern in excludes)
    return out


@dataclass
class _DiffBranchArgs:
    base: str = ""
    max_bytes: int = 0


@dataclass
class _LogBranchArgs:
    base: str = ""
    limit: int = 0


_DIFF_PARAMETERS = {
    "type": "object",
    "properties": {
        "base": {
            "type": "string",
            "description": "Base ref to diff against. Default 'main'.",
        },
        "max_bytes": {
            "type": "integer",
            "description": "Cap on returned diff size in bytes. Default 204800.",
        },
    },
}

_LOG_PARAMETERS = {
    "type": "object",
    "properties": {
        "base": {"type": "string", "description": "Base ref. Default 'main'."},
        "limit": {
            "type": "integer",
            "description": "Max commits returned. Default 50.",
        },
    },
}


def diff_branch_tool(
    work_dir: Optional[PathLike],
    pathspec: Optional[Sequence[str]] = None,
    default_base: str = "",
    max_bytes: int = 0,
    timeout: Optional[float] = None,
) -> Tool:
    """A ``git_diff_branch`` tool running ``git diff --no-color <base>...HEAD``.

    ``pathspec`` (see build_pathspec) is appended after ``--`` when given.
    """
    base_default = default_base or "main"
    limit_default = max_bytes if max_bytes > 0 else DEFAULT_DIFF_MAX_BYTES
    spec_args = list(pathspec or ())

    def run(args: _DiffBranchArgs) -> ToolResult:
        base = args.base.strip() or base_default
        limit = args.max_bytes if args.max_bytes > 0 else limit_default
        git_args = ["diff", "--no-color", f"{base}...HEAD"]
        if spec_args:
            git_args.append("--")
            git_args.extend(spec_args)
        try:
            out = run_git(work_dir, *git_args, timeout=timeout)
        except GitError as exc:
            return error_result(exc)
        return text_result(truncate(out, limit))

    return new_tool(
        ToolSpec(
            name="git_diff_branch",
            description=(
                "Show the diff of the current branch versus a base ref (default "
                "'main'). Includes file additions, deletions, and modifications. "
                "The diff may be pre-filtered by deployment-supplied path globs — "
                "only files in scope appear. Use this first to scope the review."
            ),
            parameters=_DIFF_PARAMETERS,
        ),
        _DiffBranchArgs,
        run,
    )


def log_branch_tool(
    work_dir: Optional[PathLike],
    default_base: str = "",
    default_limit: int = 0,
    timeout: Optional[float] = None,
) -> Tool:
    """A ``git_log_branch`` tool listing commits in ``<base>..HEAD``."""
    base_default = default_base or "main"
    limit_default = default_limit if default_limit > 0 else DEFAULT_LOG_LIMIT

    def run(args: _LogBranchArgs) -> ToolResult:
        base = args.base.strip() or base_default
        limit = args.limit if args.limit > 0 else limit_default
        try:
            out = run_git(
                work_dir,
                "log",
                "--no-color",
                f"-n{limit}",
                _LOG_FORMAT,
                f"{base}..HEAD",
                timeout=timeout,
            )
        except GitError as exc:
            return error_result(exc)
        return text_result(out)

    return new_tool(
        ToolSpec(
            name="git_log_branch",
            description=(
                "Show the commit history of the current branch since a base ref "
                "(default 'main'). Useful for reading commit messages to "
                "understand author intent."
            ),
            parameters=_LOG_PARAMETERS,
        ),
        _LogBranchArgs,
        run,
    )