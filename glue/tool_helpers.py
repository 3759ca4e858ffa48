"""Helpers for building tools and tool results."""

from __future__ import annotations

import dataclasses
import json
from types import UnionType
from typing import Any, Callable, Union, get_args, get_origin

from glue.types import ContentPart, ContentType, Tool, ToolCall, ToolResult, ToolSpec


def text_result(text: str) -> ToolResult:
    """A successful tool result with one text part."""
    return ToolResult(content=[ContentPart(ContentType.TEXT, text)])


def error_result(err: BaseException | str) -> ToolResult:
    """A failed tool result whose text is the error message."""
    return ToolResult(content=[ContentPart(ContentType.TEXT, str(err))], is_error=True)


def new_tool(
    spec: ToolSpec,
    args_type: Any,
    fn: Callable[[Any], ToolResult],
) -> Tool:
    """Build a tool that decodes call arguments into ``args_type`` before calling ``fn``.

    Empty arguments decode to the zero value of ``args_type``. Decode
    failures come back as an error result instead of raising.
    """

    def execute(call: ToolCall) -> ToolResult:
        try:
            args = _decode(call.arguments, args_type)
        except (ValueError, TypeError) as exc:
            return error_result(
                f"decode arguments for tool {json.dumps(spec.name)}: {exc}"
            )
        return fn(args)

    return Tool(spec=spec, executor=execute)


_NAMES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "list": list,
    "List": list,
    "dict": dict,
    "Dict": dict,
    "Any": Any,
    "object": object,
    "None": type(None),
    "NoneType": type(None),
}


def _split_top(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def _resolve(annotation: Any) -> Any:
    """Turn a string annotation into a type; unknown names resolve to Any."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    if text.startswith("typing."):
        text = text[len("typing."):]
    parts = _split_top(text, "|")
    if len(parts) > 1:
        return Union[tuple(_resolve(p) for p in parts)]
    if text.endswith("]") and "[" in text:
        head, inner = text.split("[", 1)
        head = head.strip()
        args = tuple(_resolve(a) for a in _split_top(inner[:-1], ","))
        if head == "Optional" and args:
            return Union[args[0], None]
        if head == "Union" and args:
            return Union[args]
        base = _NAMES.get(head)
        if base is list and args:
            return list[args[0]]
        if base is dict and len(args) == 2:
            return dict[args[0], args[1]]
        return base if base is not None else Any
    return _NAMES.get(text, Any)


def _decode(raw: Any, tp: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8")
    if not raw:
        return _zero(tp)
    return _convert(json.loads(raw), tp, "")


def _is_union(tp: Any) -> bool:
    return get_origin(tp) is Union or isinstance(tp, UnionType)


def _zero(tp: Any) -> Any:
    if tp is bool:
        return False
    if tp is int:
        return 0
    if tp is float:
        return 0.0
    if tp is str:
        return ""
    container = get_origin(tp) or tp
    if container is list:
        return []
    if container is dict:
        return {}
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return _convert({}, tp, "")
    return None


def _mismatch(value: Any, tp: Any, where: str) -> TypeError:
    name = getattr(tp, "__name__", str(tp))
    target = f"field {where!r} of type {name}" if where else f"type {name}"
    return TypeError(f"cannot decode {type(value).__name__} into {target}")


def _convert(value: Any, tp: Any, where: str) -> Any:
    if value is None:
        return _zero(tp)
    if tp is Any or tp is object:
        return value
    if _is_union(tp):
        members = [a for a in get_args(tp) if a is not type(None)]
        return _convert(value, members[0], where) if len(members) == 1 else value
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return _convert_dataclass(value, tp, where)
    if tp is bool:
        if not isinstance(value, bool):
            raise _mismatch(value, tp, where)
        return value
    if tp is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise _mismatch(value, tp, where)
        return value
    if tp is float:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise _mismatch(value, tp, where)
        return float(value)
    if tp is str:
        if not isinstance(value, str):
            raise _mismatch(value, tp, where)
        return value
    container = get_origin(tp) or tp
    params = get_args(tp)
    if container is list:
        if not isinstance(value, list):
            raise _mismatch(value, tp, where)
        if params:
            return [_convert(item, params[0], where) for item in value]
        return list(value)
    if container is dict:
        if not isinstance(value, dict):
            raise _mismatch(value, tp, where)
        if len(params) == 2:
            return {k: _convert(v, params[1], where) for k, v in value.items()}
        return dict(value)
    return value


def _convert_dataclass(value: Any, tp: type, where: str) -> Any:
    if not isinstance(value, dict):
        raise _mismatch(value, tp, where)
    fields = {f.name: f for f in dataclasses.fields(tp) if f.init}
    hints = {name: _resolve(f.type) for name, f in fields.items()}
    by_lower = {name.lower(): name for name in fields}
    kwargs: dict[str, Any] = {
        name: _zero(hints.get(name, Any))
        for name, f in fields.items()
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
    }
    for key, item in value.items():
        name = key if key in fields else by_lower.get(str(key).lower())
        if name is None or item is None:
            continue
        kwargs[name] = _convert(item, hints.get(name, Any), name)
    return tp(**kwargs)