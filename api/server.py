"""
Extraction Job API

FastAPI server for creating, starting, monitoring, cancelling and saving
extraction jobs. Jobs run as asyncio tasks on the server's event loop; the
endpoints only ever read the last persisted snapshot of a job.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from core.models import JobOverrides
from core.settings_manager import settings
from core.store import JsonFileStore
from harvester import __version__
from harvester.exceptions import (
    AlreadyMaterializedError,
    HarvesterError,
    InvalidArgumentError,
    InvalidJobStateError,
    NothingToMaterializeError,
    NotFoundError,
)
from runner.jobs import DEFAULT_LIST_LIMIT, JobLifecycleManager

logger = logging.getLogger(__name__)

# =============================================================================
# Dependencies
# =============================================================================


def get_manager(request: Request) -> JobLifecycleManager:
    """Dependency to get the JobLifecycleManager from app state."""
    if getattr(request.app.state, "manager", None) is None:
        request.app.state.manager = JobLifecycleManager(JsonFileStore(settings.data_dir))
    manager: JobLifecycleManager = request.app.state.manager
    return manager


ManagerDep = Annotated[JobLifecycleManager, Depends(get_manager)]

_STATUS_CODES: list[tuple[type[HarvesterError], int]] = [
    (InvalidArgumentError, 400),
    (NothingToMaterializeError, 400),
    (NotFoundError, 404),
    (InvalidJobStateError, 409),
    (AlreadyMaterializedError, 409),
]


def _http_error(error: HarvesterError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    logger.error(f"Unmapped harvester error: {error}")
    return HTTPException(status_code=500, detail=error.message)


# =============================================================================
# Request/Response Models
# =============================================================================


class CreateExtractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_id: str | None = Field(default=None, alias="categoryId")
    source_type: str | None = Field(default=None, alias="sourceType")
    source_url: str | None = Field(default=None, alias="sourceUrl")
    config: JobOverrides | None = None
    start: bool = False


class CreateCategoryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    source_type: str = Field(default="followers", alias="sourceType")
    source_url: str = Field(default="", alias="sourceUrl")


class ActionResponse(BaseModel):
    status: str
    job_id: str = Field(serialization_alias="jobId")
    message: str


# =============================================================================
# Routes
# =============================================================================

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@router.post("/categories", status_code=201)
async def create_category(request: CreateCategoryRequest, manager: ManagerDep) -> dict[str, Any]:
    try:
        category = manager.create_category(
            request.name,
            description=request.description,
            source_type=request.source_type,
            source_url=request.source_url,
        )
    except HarvesterError as e:
        raise _http_error(e) from e
    return category.model_dump(mode="json", by_alias=True)


@router.get("/categories/{category_id}/leads")
async def list_leads(category_id: str, manager: ManagerDep) -> list[dict[str, Any]]:
    try:
        leads = manager.leads(category_id)
    except HarvesterError as e:
        raise _http_error(e) from e
    return [lead.model_dump(mode="json", by_alias=True) for lead in leads]


@router.post("/extractions", status_code=201)
async def create_extraction(request: CreateExtractionRequest, manager: ManagerDep) -> dict[str, Any]:
    """Create an extraction job, optionally starting it right away."""
    try:
        job = manager.create(request.category_id, request.source_type, request.source_url, request.config)
        if request.start:
            manager.start(job.id)
            job = manager.get(job.id)
    except HarvesterError as e:
        raise _http_error(e) from e
    return job.to_public_dict()


@router.get("/extractions")
async def list_extractions(
    manager: ManagerDep,
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=500),
) -> list[dict[str, Any]]:
    return [job.to_public_dict() for job in manager.list(limit)]


@router.get("/extractions/active")
async def active_extractions(manager: ManagerDep) -> dict[str, list[str]]:
    return {"active": manager.active()}


@router.get("/extractions/{job_id}")
async def get_extraction(job_id: str, manager: ManagerDep) -> dict[str, Any]:
    try:
        return manager.get(job_id).to_public_dict()
    except HarvesterError as e:
        raise _http_error(e) from e


@router.post("/extractions/{job_id}/start", response_model=ActionResponse)
async def start_extraction(job_id: str, manager: ManagerDep):
    """Start a pending job. Returns as soon as the job is running."""
    try:
        manager.start(job_id)
    except HarvesterError as e:
        raise _http_error(e) from e
    return ActionResponse(status="started", job_id=job_id, message="Extraction started")


@router.post("/extractions/{job_id}/cancel", response_model=ActionResponse)
async def cancel_extraction(job_id: str, manager: ManagerDep):
    """Cancel a running job. A job that already finished is left as is."""
    try:
        job = manager.get(job_id)
        if job_id not in manager.active():
            return ActionResponse(
                status="not_running",
                job_id=job_id,
                message=f"Extraction is not running (status: {job.status.value})",
            )
        await manager.cancel(job_id)
    except HarvesterError as e:
        raise _http_error(e) from e
    return ActionResponse(status="cancelling", job_id=job_id, message="Cancellation requested")


@router.post("/extractions/{job_id}/save")
async def save_extraction(job_id: str, manager: ManagerDep) -> dict[str, Any]:
    """Save a finished job's identifiers as leads in its category."""
    try:
        job = manager.materialize(job_id)
    except HarvesterError as e:
        raise _http_error(e) from e
    return {
        "jobId": job.id,
        "totalSaved": job.total_saved,
        "duplicatesSkipped": job.duplicates_skipped,
        "message": f"Saved {job.total_saved} leads, {job.duplicates_skipped} duplicates skipped",
    }


# =============================================================================
# FastAPI App
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info("Extraction API starting...")
    yield
    manager: JobLifecycleManager | None = getattr(app.state, "manager", None)
    if manager is not None:
        for job_id in manager.active():
            logger.info(f"Cancelling extraction {job_id} on shutdown", extra={"job_id": job_id})
            try:
                await manager.cancel(job_id)
            except NotFoundError:
                logger.debug(f"Extraction {job_id} finished before shutdown cancel")
    logger.info("Extraction API shutting down...")


def create_app(manager: JobLifecycleManager | None = None) -> FastAPI:
    app = FastAPI(
        title="Lead Harvester API",
        description="API for controlling extraction jobs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = manager
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
