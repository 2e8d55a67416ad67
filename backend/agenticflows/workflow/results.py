"""Execution result set — per-node outcome of one workflow run."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from agenticflows.workflow.errors import ResultSlotError
from agenticflows.workflow.validator import MappingIssue

ERROR_KEY = "error"


def error_marker(message: str) -> dict[str, str]:
    return {ERROR_KEY: message}


def is_error_marker(value: Any) -> bool:
    return isinstance(value, dict) and set(value) == {ERROR_KEY}


class ExecutionResultSet(Mapping):
    """Read-only mapping of node id -> result object or ``{"error": message}``.

    Slots are written once by the executor through :meth:`record`; nothing is
    ever overwritten or removed.  Run metadata (seed data, order, warnings,
    cancellation) lives on attributes so the mapping holds node ids only.
    """

    def __init__(self, workflow_id: str, initial_data: dict[str, Any] | None = None):
        self.workflow_id = workflow_id
        self.initial_data: dict[str, Any] = dict(initial_data or {})
        self.order: list[str] = []
        self.warnings: list[MappingIssue] = []
        self.cancelled: bool = False
        self._slots: dict[str, Any] = {}

    def record(self, node_id: str, value: Any) -> None:
        if node_id in self._slots:
            raise ResultSlotError(f"Result for node '{node_id}' was already recorded")
        self._slots[node_id] = value

    def record_error(self, node_id: str, message: str) -> None:
        self.record(node_id, error_marker(message))

    def succeeded(self, node_id: str) -> bool:
        return node_id in self._slots and not is_error_marker(self._slots[node_id])

    def errors(self) -> dict[str, str]:
        return {nid: v[ERROR_KEY] for nid, v in self._slots.items() if is_error_marker(v)}

    @property
    def status(self) -> str:
        if self.cancelled:
            return "cancelled"
        return "partial" if self.errors() else "completed"

    def to_dict(self) -> dict[str, Any]:
        return dict(self._slots)

    def __getitem__(self, node_id: str) -> Any:
        return self._slots[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"ExecutionResultSet(workflow_id={self.workflow_id!r}, slots={self._slots!r})"
