"""Pydantic models for workflows and their execution."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WorkflowIn(BaseModel):
    """Body for POST /api/workflows and PUT /api/workflows/{id}: the editor document."""
    id: str = ""
    name: str = ""
    date: str | None = None
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)


class WorkflowOut(BaseModel):
    id: str
    name: str
    date: str | None = None
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]


class ExecuteRequest(BaseModel):
    """Body for POST /api/workflows/{id}/execute.

    ``data``, ``text`` and ``parameters`` are folded into one initial-data
    object that every node sees as default input.
    """
    text: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    parameters: dict[str, Any] = Field(default_factory=dict)
    run_id: str | None = None

    def initial_data(self) -> dict[str, Any]:
        merged = dict(self.data)
        if self.text:
            merged["text"] = self.text
        merged.update(self.parameters)
        return merged


class MappingIssueOut(BaseModel):
    kind: str
    message: str
    blocking: bool
    edge_id: str | None = None
    index: int | None = None
    source_output: str | None = None
    target_input: str | None = None
    node_id: str | None = None


class ExecutionResponse(BaseModel):
    workflow_id: str
    workflow_name: str
    timestamp: datetime
    status: str
    order: list[str]
    results: dict[str, Any]
    errors: dict[str, str] = Field(default_factory=dict)
    warnings: list[MappingIssueOut] = Field(default_factory=list)
    cancelled: bool = False
    run_id: str | None = None


class ValidateRequest(BaseModel):
    """Optional body for POST /api/workflows/{id}/validate."""
    initial_keys: list[str] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    workflow_id: str
    valid: bool
    errors: list[str]
    warnings: list[MappingIssueOut]
