"""Dotted path access into result and input objects."""

from __future__ import annotations

from typing import Any

MISSING: Any = object()


def split_path(path: str) -> list[str]:
    return [p for p in path.split(".") if p]


def last_segment(path: str) -> str:
    parts = split_path(path)
    return parts[-1] if parts else ""


def get_path(obj: Any, path: str) -> Any:
    """Resolve 'a.b.0.c' against nested dicts/lists.

    Returns ``MISSING`` (not None) when any segment is absent, so an explicit
    ``null`` in a result is still a value.
    """
    parts = split_path(path)
    if not parts:
        return MISSING
    current: Any = obj
    for part in parts:
        if isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list) and part.isdigit():
            idx = int(part)
            if idx >= len(current):
                return MISSING
            current = current[idx]
        else:
            return MISSING
    return current


def set_path(obj: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at a dotted path, creating intermediate dicts.

    A non-dict value sitting on an intermediate segment is replaced.
    """
    parts = split_path(path)
    if not parts:
        raise ValueError("Empty path")
    current = obj
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value
