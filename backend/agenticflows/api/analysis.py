"""Analysis API — pass-through to the service-side analysis chain."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agenticflows.api.deps import get_client
from agenticflows.connectors.analysis_client import AnalysisServiceError
from agenticflows.schemas.functions import ChainRequest

router = APIRouter()


@router.post("/chain")
async def chain_analysis(body: ChainRequest, client=Depends(get_client)):
    try:
        return await client.chain_analysis(body.workflow_id, body.input_data, body.config)
    except AnalysisServiceError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
