"""Workflows API router — CRUD, validation, execution config and execution."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response

from agenticflows.api.deps import get_executor, get_registry, get_store, get_transforms
from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.schemas.workflows import (
    ExecuteRequest,
    ExecutionResponse,
    ValidateRequest,
    ValidationResponse,
    WorkflowIn,
    WorkflowOut,
)
from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.utils.run_cancel import RunAlreadyRegisteredError
from agenticflows.workflow.errors import (
    CycleError,
    WorkflowExistsError,
    WorkflowNotFoundError,
    WorkflowParseError,
)
from agenticflows.workflow.execution_config import generate_execution_config
from agenticflows.workflow.executor import WorkflowExecutor
from agenticflows.workflow.model import Workflow
from agenticflows.workflow.parser import dump_workflow, parse_workflow
from agenticflows.workflow.transforms import TransformRegistry
from agenticflows.workflow.validator import validate_workflow

logger = logging.getLogger("agenticflows.api.workflows")

router = APIRouter()


def _parse(body: WorkflowIn, workflow_id: str | None = None) -> Workflow:
    try:
        return parse_workflow(body.model_dump(), workflow_id=workflow_id)
    except WorkflowParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _load(store: WorkflowStore, workflow_id: str) -> Workflow:
    try:
        return store.get(workflow_id)
    except WorkflowNotFoundError:
        raise HTTPException(status_code=404, detail="Workflow not found")


@router.get("", response_model=list[WorkflowOut])
async def list_workflows(store: WorkflowStore = Depends(get_store)):
    return [dump_workflow(wf) for wf in store.list()]


@router.post("", response_model=WorkflowOut, status_code=201)
async def create_workflow(body: WorkflowIn, store: WorkflowStore = Depends(get_store)):
    wf = _parse(body, workflow_id=body.id or uuid.uuid4().hex)
    try:
        created = store.create(wf)
    except WorkflowExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return dump_workflow(created)


@router.get("/{workflow_id}", response_model=WorkflowOut)
async def get_workflow(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    return dump_workflow(_load(store, workflow_id))


@router.put("/{workflow_id}", response_model=WorkflowOut)
async def update_workflow(workflow_id: str, body: WorkflowIn, store: WorkflowStore = Depends(get_store)):
    wf = _parse(body, workflow_id=workflow_id)
    try:
        updated = store.update(workflow_id, wf)
    except WorkflowNotFoundError:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return dump_workflow(updated)


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    try:
        store.delete(workflow_id)
    except WorkflowNotFoundError:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return Response(status_code=204)


@router.get("/{workflow_id}/execution-config")
async def get_execution_config(workflow_id: str, store: WorkflowStore = Depends(get_store)):
    """Input form (data sources and parameter groups) shown before a run."""
    return generate_execution_config(_load(store, workflow_id))


@router.post("/{workflow_id}/validate", response_model=ValidationResponse)
async def validate(
    workflow_id: str,
    body: ValidateRequest | None = None,
    store: WorkflowStore = Depends(get_store),
    registry: FunctionRegistry = Depends(get_registry),
    transforms: TransformRegistry = Depends(get_transforms),
):
    wf = _load(store, workflow_id)
    report = validate_workflow(wf, registry, transforms, initial_keys=body.initial_keys if body else ())
    return ValidationResponse(
        workflow_id=workflow_id,
        valid=report.valid,
        errors=report.errors,
        warnings=[w.as_dict() for w in report.warnings],
    )


@router.post("/{workflow_id}/execute", response_model=ExecutionResponse)
async def execute_workflow(
    workflow_id: str,
    body: ExecuteRequest | None = None,
    store: WorkflowStore = Depends(get_store),
    executor: WorkflowExecutor = Depends(get_executor),
):
    body = body or ExecuteRequest()
    wf = _load(store, workflow_id)
    run_id = body.run_id or uuid.uuid4().hex
    try:
        results = await executor.execute_workflow(wf, body.initial_data(), run_id=run_id)
    except CycleError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "node_id": exc.node_id, "cycle": exc.cycle},
        )
    except RunAlreadyRegisteredError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    return ExecutionResponse(
        workflow_id=wf.workflow_id,
        workflow_name=wf.name,
        timestamp=datetime.now(timezone.utc),
        status=results.status,
        order=results.order,
        results=results.to_dict(),
        errors=results.errors(),
        warnings=[w.as_dict() for w in results.warnings],
        cancelled=results.cancelled,
        run_id=run_id,
    )
