"""Functions API — analysis function catalog, transforms and mapping suggestions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from agenticflows.api.deps import get_client, get_registry, get_transforms
from agenticflows.connectors.analysis_client import AnalysisServiceError
from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.schemas.functions import AutoMapRequest, AutoMapResponse, FunctionOut
from agenticflows.workflow.compatibility import auto_map
from agenticflows.workflow.transforms import TransformRegistry

logger = logging.getLogger("agenticflows.api.functions")

router = APIRouter()


@router.get("", response_model=list[FunctionOut])
async def list_functions(registry: FunctionRegistry = Depends(get_registry)):
    return registry.all()


@router.get("/transforms")
async def list_transforms(transforms: TransformRegistry = Depends(get_transforms)):
    return transforms.describe()


@router.post("/refresh")
async def refresh_functions(
    client=Depends(get_client),
    registry: FunctionRegistry = Depends(get_registry),
):
    """Pull descriptors from the analysis service and merge them into the catalog."""
    try:
        payload = await client.get_function_metadata()
    except AnalysisServiceError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
    try:
        loaded = registry.load_metadata(payload)
    except ValueError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return {"loaded": loaded, "total": len(registry.all())}


@router.post("/auto-map", response_model=AutoMapResponse)
async def suggest_mappings(
    body: AutoMapRequest,
    registry: FunctionRegistry = Depends(get_registry),
    transforms: TransformRegistry = Depends(get_transforms),
):
    source = registry.get(body.source_function)
    if source is None:
        raise HTTPException(status_code=404, detail=f"Function '{body.source_function}' not found")
    target = registry.get(body.target_function)
    if target is None:
        raise HTTPException(status_code=404, detail=f"Function '{body.target_function}' not found")

    return AutoMapResponse(
        source_function=source.function_id,
        target_function=target.function_id,
        mappings=[m.as_dict() for m in auto_map(source, target, transforms)],
    )


@router.get("/{function_id}", response_model=FunctionOut)
async def get_function(function_id: str, registry: FunctionRegistry = Depends(get_registry)):
    descriptor = registry.get(function_id)
    if descriptor is None:
        raise HTTPException(status_code=404, detail="Function not found")
    return descriptor
