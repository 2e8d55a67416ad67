"""FastAPI dependency providers.

Shared services live on ``app.state`` (set up in the lifespan); tests swap
them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.workflow.executor import WorkflowExecutor
from agenticflows.workflow.transforms import TransformRegistry


def get_store(request: Request) -> WorkflowStore:
    return request.app.state.workflow_store


def get_registry(request: Request) -> FunctionRegistry:
    return request.app.state.function_registry


def get_transforms(request: Request) -> TransformRegistry:
    return request.app.state.transforms


def get_client(request: Request):
    return request.app.state.analysis_client


def get_executor(
    client=Depends(get_client),
    registry: FunctionRegistry = Depends(get_registry),
    transforms: TransformRegistry = Depends(get_transforms),
    store: WorkflowStore = Depends(get_store),
) -> WorkflowExecutor:
    return WorkflowExecutor(client, registry=registry, transforms=transforms, store=store)
