"""Workflow engine exceptions."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for workflow engine errors."""


class CycleError(WorkflowError):
    """The function-node graph is not a DAG.

    ``node_id`` is the node at which the cycle was detected; ``cycle`` is the
    closed path through it, e.g. ``["a", "b", "a"]``.
    """

    def __init__(self, node_id: str, cycle: list[str] | None = None):
        self.node_id = node_id
        self.cycle = cycle or [node_id]
        super().__init__(
            f"Workflow contains a cycle at node '{node_id}': {' -> '.join(self.cycle)}"
        )


class WorkflowNotFoundError(WorkflowError):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found")


class WorkflowExistsError(WorkflowError):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' already exists")


class WorkflowParseError(WorkflowError, ValueError):
    """The persisted workflow document is malformed."""


class TransformError(WorkflowError):
    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"Transform '{name}' failed: {message}")


class ResultSlotError(WorkflowError):
    """A node's result slot was written twice."""
