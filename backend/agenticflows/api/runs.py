"""Runs API router — cancellation of in-flight workflow executions."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from agenticflows.utils.run_cancel import mark_cancelled as _mark_run_cancelled

router = APIRouter()


@router.post("/{run_id}/cancel")
async def cancel_run(run_id: str):
    """Request cancellation; takes effect before the run's next node starts."""
    if not _mark_run_cancelled(run_id):
        raise HTTPException(status_code=404, detail="Run not found or already finished")
    return {"run_id": run_id, "cancellation_requested": True}
