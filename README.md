# glue

Building blocks for tool-using LLM agents. The package has message types, two
session stores, and ready-made filesystem and git tools. It uses only the
standard library.

## What is in the package

- `glue.types` holds the message and tool types:
  - `MessageRole` and `ContentType` are enums.
  - `Message`, `ContentPart` and `ToolCall` convert to and from plain
    JSON-compatible dictionaries with `to_dict` and `from_dict`.
  - `ToolSpec` and `ToolResult` describe a tool and its result.
  - `Tool` pairs a spec with an executor. Run it with `Tool.execute(call)`.
- `glue.tool_helpers`:
  - `text_result(text)` builds a successful text result.
  - `error_result(err)` builds a result with `is_error=True`.
  - `new_tool(spec, args_type, fn)` builds a `Tool` that decodes the call's
    JSON arguments into `args_type` (for example a dataclass) before it calls
    `fn`. Empty arguments decode to the zero value of `args_type`. If the
    arguments cannot be decoded, the tool returns an error result naming the
    tool and does not raise.
- `glue.store`:
  - `SessionState` has `version`, `id`, `messages`, `metadata`, `created_at`
    and `updated_at`.
  - `Store` is the protocol stores follow. `load` returns `None` for an
    unknown id. `save` persists a state. `delete` of a missing id is not an
    error.
  - `SESSION_STATE_VERSION` is the state's version number.
- `glue.stores.file.FileStore` writes one JSON file per session at
  `<directory>/<escaped-id>.json`.
  - Each save goes to a temporary file that is then renamed into place.
  - A missing id, version or timestamp is filled in on save.
  - `FileStore.path(session_id)` gives the file path.
- `glue.stores.sqlite.SQLiteStore` keeps all sessions in one SQLite database.
  Message text goes into an FTS5 index that triggers keep in step.
  - File databases run in WAL mode, and `":memory:"` is also accepted.
  - `save` replaces a session and all its messages in one transaction.
  - `delete` also removes the session's messages and their index rows.
  - `db()` returns the connection. `close()` closes it, and the store is a
    context manager.
  - `text_for_fts(parts)` shows what gets indexed: the non-empty text parts,
    joined by newlines. Tool calls are left out.
  - `SCHEMA_VERSION` is the schema version.
- `glue.tools.fs`:
  - `safe_join(base, rel)` rejects empty paths, absolute paths and `..`
    escapes with `ValueError`.
  - `truncate(text, max_bytes)` caps text at a number of UTF-8 bytes and ends
    it with a `[... truncated]` marker.
  - `Blocklist` holds glob patterns for secret-shaped paths.
    `Blocklist.merge(*patterns)` returns an extended copy.
    `Blocklist.match(path)` returns the blocking pattern or `None`.
  - `default_blocklist()` returns the built-in patterns.
  - `read_file_tool(work_dir, blocklist, max_bytes)` builds a `read_file`
    tool.
- `glue.tools.git`:
  - `run_git(work_dir, *args, timeout=None)` runs the system `git` and raises
    `GitError` on failure.
  - `build_pathspec(includes, excludes)` builds pathspec arguments.
  - `diff_branch_tool(...)` builds a `git_diff_branch` tool and
    `log_branch_tool(...)` builds a `git_log_branch` tool. These tools return
    git failures as error results and do not raise.

## Installation

```
pip install .
```

The git helpers need a `git` binary on `PATH`.

## Example

```python
from glue.store import SessionState
from glue.stores.file import FileStore
from glue.stores.sqlite import SQLiteStore
from glue.tools.fs import default_blocklist, read_file_tool
from glue.types import ContentPart, ContentType, Message, MessageRole, ToolCall

state = SessionState(
    id="dev",
    messages=[
        Message(
            role=MessageRole.USER,
            content=[ContentPart(type=ContentType.TEXT, text="hi")],
        )
    ],
)

store = FileStore("./sessions")
store.save("dev", state)
loaded = store.load("dev")  # None when the session does not exist

with SQLiteStore(":memory:") as db_store:
    db_store.save("dev", state)
    rows = db_store.db().execute(
        "SELECT count(*) FROM messages_fts WHERE messages_fts MATCH ?", ("hi",)
    ).fetchone()

tool = read_file_tool(".", default_blocklist().merge("*.token"), 0)
result = tool.execute(ToolCall(name="read_file", arguments='{"path": "README.md"}'))
print(result.is_error, result.content[0].text[:80])
```

## What the package does not do

- There is no agent, model provider or prompt loop. Nothing here sends
  messages to a model. The package provides the types, stores and tools that
  such a loop would use.
- `SQLiteStore` maintains the full-text index but has no search method. To
  query the `messages_fts` table, use the connection from `db()` directly.
- There is no command-line program.

## Running the tests

```
pip install .[test]
pytest
```