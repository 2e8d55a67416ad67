"""Workflow store — in-process persistence boundary for workflow definitions."""

from __future__ import annotations

import copy
import logging
from datetime import date

from agenticflows.workflow.errors import WorkflowExistsError, WorkflowNotFoundError
from agenticflows.workflow.model import Workflow

logger = logging.getLogger("agenticflows.services.workflow")


class WorkflowStore:
    """Keeps parsed workflows keyed by id, in insertion order.

    Callers get copies, so editing a returned workflow never changes what an
    execution reads.
    """

    def __init__(self):
        self._workflows: dict[str, Workflow] = {}

    def create(self, wf: Workflow) -> Workflow:
        if not wf.workflow_id:
            raise ValueError("Workflow id is required")
        if wf.workflow_id in self._workflows:
            raise WorkflowExistsError(wf.workflow_id)
        stored = copy.deepcopy(wf)
        if not stored.date:
            stored.date = date.today().isoformat()
        self._workflows[stored.workflow_id] = stored
        logger.info("Created workflow %s (%d nodes, %d edges)", stored.workflow_id, len(stored.nodes), len(stored.edges))
        return copy.deepcopy(stored)

    def get(self, workflow_id: str) -> Workflow:
        wf = self._workflows.get(workflow_id)
        if wf is None:
            raise WorkflowNotFoundError(workflow_id)
        return copy.deepcopy(wf)

    def list(self) -> list[Workflow]:
        return [copy.deepcopy(wf) for wf in self._workflows.values()]

    def update(self, workflow_id: str, wf: Workflow) -> Workflow:
        if workflow_id not in self._workflows:
            raise WorkflowNotFoundError(workflow_id)
        stored = copy.deepcopy(wf)
        stored.workflow_id = workflow_id
        if not stored.date:
            stored.date = date.today().isoformat()
        self._workflows[workflow_id] = stored
        logger.info("Updated workflow %s", workflow_id)
        return copy.deepcopy(stored)

    def delete(self, workflow_id: str) -> None:
        if self._workflows.pop(workflow_id, None) is None:
            raise WorkflowNotFoundError(workflow_id)
        logger.info("Deleted workflow %s", workflow_id)

    def exists(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows
