import os

import pytest

from glue.tools.fs import (
    DEFAULT_READ_MAX_BYTES,
    Blocklist,
    default_blocklist,
    read_file_tool,
    safe_join,
    truncate,
)
from glue.types import ToolCall

MARKER = "\n\n[... truncated]"


@pytest.mark.parametrize(
    "path, pattern",
    [
        (".env", ".env"),
        (".env.production", ".env.*"),
        ("id_rsa", "id_rsa"),
        ("id_ed25519.pub", "id_ed25519.*"),
        ("server.pem", "*.pem"),
        ("deploy.key", "*.key"),
        ("credentials.json", "credentials.json"),
        ("service-account-prod.json", "service-account*.json"),
        ("deep/path/to/.env", ".env"),
        ("app/secrets/db.yaml", "secrets"),
        (".aws/credentials", "credentials"),
        (".AWS/CREDENTIALS", "credentials"),
    ],
)
def test_default_rejects_common_secrets(path, pattern):
    assert default_blocklist().match(path) == pattern


@pytest.mark.parametrize(
    "path",
    ["main.go", "docs/design.md", "README.md", "src/handler.go", "package.json"],
)
def test_default_allows_ordinary_paths(path):
    assert default_blocklist().match(path) is None


def test_merge_adds_extras():
    bl = default_blocklist().merge("vault.json", "vault.json", "  ", "*.token")
    assert bl.match("vault.json") == "vault.json"
    assert bl.match("session.token") == "*.token"
    assert list(bl).count("vault.json") == 1
    assert "" not in bl and "  " not in bl


def test_merge_does_not_mutate_receiver():
    bl = default_blocklist()
    before = len(bl)
    merged = bl.merge("foo")
    assert len(bl) == before
    assert len(merged) == before + 1
    assert merged[-1] == "foo"


def test_merge_trims_and_dedups_receiver():
    bl = Blocklist([" a ", "a", "", "b"]).merge()
    assert list(bl) == ["a", "b"]


def test_match_empty_path():
    assert default_blocklist().match("") is None
    assert default_blocklist().match("   ") is None


def test_star_does_not_cross_separator():
    assert Blocklist(["a*c"]).match("a/c") is None
    assert Blocklist(["a*c"]).match("abbc") == "a*c"


def test_character_class_and_malformed_pattern():
    assert Blocklist(["file[0-9].txt"]).match("file7.txt") == "file[0-9].txt"
    assert Blocklist(["file[^0-9].txt"]).match("file7.txt") is None
    assert Blocklist(["[unclosed"]).match("[unclosed") is None


@pytest.mark.parametrize(
    "rel, message",
    [
        ("", "path is required"),
        ("/etc/passwd", "absolute paths are not allowed"),
        ("../outside", "escapes work directory"),
        ("a/b/../../../outside", "escapes work directory"),
    ],
)
def test_safe_join_errors(tmp_path, rel, message):
    with pytest.raises(ValueError, match=message):
        safe_join(tmp_path, rel)


def test_safe_join_trailing_dotdot(tmp_path):
    got = safe_join(tmp_path, "a/..")
    assert got.startswith(str(tmp_path))


def test_safe_join_accepts_valid_nested(tmp_path):
    got = safe_join(str(tmp_path), "subdir/file.go")
    assert got == os.path.join(str(tmp_path), "subdir", "file.go")


@pytest.mark.parametrize(
    "text, limit, want",
    [
        ("hello", 10, "hello"),
        ("hello", 5, "hello"),
        ("a" * 100, 50, "a" * (50 - len(MARKER)) + MARKER),
        ("abcdefghij", 5, "abcde"),
    ],
)
def test_truncate(text, limit, want):
    assert truncate(text, limit) == want


def test_truncate_counts_utf8_bytes():
    text = "é" * 10  # 20 bytes
    got = truncate(text, 4)
    assert got == "éé"
    assert truncate(text, 20) == text


def _call(arguments):
    return ToolCall(name="read_file", arguments=arguments)


def test_read_file_tool_reads_and_truncates(tmp_path):
    (tmp_path / "f.txt").write_text("a" * 200)
    tool = read_file_tool(tmp_path, default_blocklist(), 50)
    res = tool.execute(_call('{"path":"f.txt"}'))
    assert not res.is_error
    got = res.content[0].text
    assert got.endswith("[... truncated]")
    assert len(got) == 50


def test_read_file_tool_reads_whole_small_file(tmp_path):
    (tmp_path / "small.txt").write_text("hello world")
    tool = read_file_tool(tmp_path, default_blocklist())
    res = tool.execute(_call('{"path":"small.txt"}'))
    assert not res.is_error
    assert res.content[0].text == "hello world"
    assert tool.spec.name == "read_file"


def test_read_file_tool_call_max_bytes_overrides(tmp_path):
    (tmp_path / "f.txt").write_text("b" * 200)
    tool = read_file_tool(tmp_path, max_bytes=1000)
    res = tool.execute(_call('{"path":"f.txt","max_bytes":30}'))
    assert len(res.content[0].text) == 30
    assert res.content[0].text.endswith(MARKER)


def test_read_file_tool_blocks_sensitive_path(tmp_path):
    (tmp_path / ".env").write_text("S=1")
    tool = read_file_tool(tmp_path, default_blocklist())
    res = tool.execute(_call('{"path":".env"}'))
    assert res.is_error
    assert "blocked by sensitive-file pattern" in res.content[0].text


def test_read_file_tool_rejects_traversal(tmp_path):
    tool = read_file_tool(tmp_path)
    res = tool.execute(_call('{"path":"../escape"}'))
    assert res.is_error
    assert "escapes work directory" in res.content[0].text


def test_read_file_tool_missing_path_arg(tmp_path):
    tool = read_file_tool(tmp_path)
    res = tool.execute(_call("{}"))
    assert res.is_error
    assert "path is required" in res.content[0].text


def test_read_file_tool_missing_file(tmp_path):
    tool = read_file_tool(tmp_path)
    res = tool.execute(_call('{"path":"nope.txt"}'))
    assert res.is_error
    assert "nope.txt" in res.content[0].text


def test_read_file_tool_default_cap(tmp_path):
    (tmp_path / "big.txt").write_text("c" * 100_000)
    tool = read_file_tool(tmp_path)
    res = tool.execute(_call('{"path":"big.txt"}'))
    assert not res.is_error
    assert DEFAULT_READ_MAX_BYTES == 81920
    assert len(res.content[0].text) == 81920
    assert res.content[0].text.endswith(MARKER)