"""Named value transforms applied to data mappings."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from agenticflows.workflow.errors import TransformError

logger = logging.getLogger("agenticflows.workflow.transforms")


@dataclass(frozen=True)
class Transform:
    name: str
    source_type: str
    target_type: str
    fn: Callable[[Any], Any]
    description: str = ""

    def apply(self, value: Any) -> Any:
        try:
            return self.fn(value)
        except TransformError:
            raise
        except (TypeError, ValueError, KeyError, IndexError) as exc:
            raise TransformError(self.name, str(exc)) from exc


# ── Built-in transforms ─────────────────────────────────────────


def _join(value: Any) -> str:
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        raise TransformError("join", f"expected a list, got {type(value).__name__}")
    return ", ".join(str(v) for v in value)


def _first(value: Any) -> Any:
    if isinstance(value, dict):
        return value
    if not isinstance(value, list):
        raise TransformError("first", f"expected a list, got {type(value).__name__}")
    if not value:
        raise TransformError("first", "list is empty")
    return value[0]


def _wrap(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, sort_keys=True)


def _count(value: Any) -> int:
    if not isinstance(value, (list, dict)):
        raise TransformError("count", f"expected a collection, got {type(value).__name__}")
    return len(value)


BUILTIN_TRANSFORMS: tuple[Transform, ...] = (
    Transform("join", "string[]", "string", _join, "Join a list of strings with ', '"),
    Transform("first", "object[]", "object", _first, "Take the first element of a list of objects"),
    Transform("wrap", "string", "string[]", _wrap, "Wrap a single string in a list"),
    Transform("stringify", "object", "string", _stringify, "Serialise an object as JSON text"),
    Transform("count", "array", "number", _count, "Number of items in a collection"),
)


class TransformRegistry:
    """Name → Transform lookup.  Each registry instance is independent."""

    def __init__(self, transforms: tuple[Transform, ...] | list[Transform] = BUILTIN_TRANSFORMS):
        self._transforms: dict[str, Transform] = {}
        for t in transforms:
            self.register(t)

    def register(self, transform: Transform) -> None:
        if transform.name in self._transforms:
            logger.debug("Replacing transform %s", transform.name)
        self._transforms[transform.name] = transform

    def get(self, name: str) -> Transform | None:
        return self._transforms.get(name)

    def names(self) -> list[str]:
        return sorted(self._transforms)

    def __contains__(self, name: object) -> bool:
        return name in self._transforms

    def describe(self) -> list[dict[str, str]]:
        return [
            {
                "name": t.name,
                "source_type": t.source_type,
                "target_type": t.target_type,
                "description": t.description,
            }
            for t in sorted(self._transforms.values(), key=lambda t: t.name)
        ]
