"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agenticflows.config import settings
from agenticflows.connectors.analysis_client import AnalysisClient, AnalysisServiceError
from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.workflow.transforms import TransformRegistry

# Routers
from agenticflows.api.workflows import router as workflows_router
from agenticflows.api.runs import router as runs_router
from agenticflows.api.functions import router as functions_router
from agenticflows.api.analysis import router as analysis_router

from agenticflows.utils.logger import setup_logger
from agenticflows.utils.metrics import get_metrics_summary

logger = setup_logger(log_format=settings.LOG_FORMAT, log_level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = AnalysisClient()
    registry = FunctionRegistry()
    app.state.analysis_client = client
    app.state.function_registry = registry
    app.state.transforms = TransformRegistry()
    app.state.workflow_store = WorkflowStore()

    if settings.FUNCTION_METADATA_ON_STARTUP:
        try:
            registry.load_metadata(await client.get_function_metadata())
        except (AnalysisServiceError, ValueError) as exc:
            logger.warning("Function metadata not loaded, using built-in catalog: %s", exc)

    logger.info(
        "Application startup complete; analysis service at %s, %d function(s) registered",
        settings.analysis_url, len(registry.all()),
    )
    try:
        yield
    finally:
        await client.close()


app = FastAPI(
    title="AgenticFlows",
    description="Workflow engine for chained analysis functions",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(workflows_router, prefix="/api/workflows", tags=["workflows"])
app.include_router(runs_router, prefix="/api/runs", tags=["runs"])
app.include_router(functions_router, prefix="/api/functions", tags=["functions"])
app.include_router(analysis_router, prefix="/api/analysis", tags=["analysis"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/metrics/summary", tags=["observability"])
async def metrics_summary():
    """In-process counters and histogram stats."""
    return get_metrics_summary()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
