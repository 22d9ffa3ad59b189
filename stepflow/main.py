"""
StepFlow - FastAPI Application Entry Point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from stepflow.config import settings
from stepflow.api.routes import workflows
from stepflow.workflows.order_fulfillment import (
    DEMO_WORKFLOW_ID,
    register_order_fulfillment_workflow,
)


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await register_order_fulfillment_workflow()

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
## StepFlow API

Run workflows built from handler classes and outcome-based transitions.

### Concepts
- **Nodes**: a handler class plus its transitions
- **Outcomes**: handlers return `success`, `fail` or a named transition (`onRetry`, `onSkip`, ...)
- **Result**: data returned by every handler, merged in execution order
- **Call stack**: each executed handler's Outcome

### Quick Start
1. Register a workflow: `POST /workflows/`
2. Run it: `POST /workflows/{workflow_id}/run`
3. Inspect runs: `GET /workflows/runs`

### Demo Workflow
A pre-registered order fulfillment workflow is available with ID: `order-fulfillment-demo`
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(workflows.router)


# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "A synchronous workflow state machine",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "workflows": "/workflows",
            "run": "/workflows/{workflow_id}/run",
            "runs": "/workflows/runs",
        },
        "demo_workflow": DEMO_WORKFLOW_ID,
    }


@app.get("/health", tags=["Root"])
async def health():
    """Health check endpoint."""
    from stepflow.storage.memory import workflow_storage, run_storage

    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "workflows_count": len(workflow_storage),
        "runs_count": len(run_storage),
    }


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        },
    )
