"""Canvas job CRUD API endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flowcanvas.editor import CanvasEditor
from flowcanvas.graph import Graph, InMemoryGraphStore
from flowcanvas.logging_config import get_api_logger

from ..database import get_session, graph_session
from ..models.db import JobModel
from ..repositories.job import JobRepository
from ..schemas import CreateJobRequest, GraphPayload, JobResponse, PagedJobsResponse

router = APIRouter(prefix="/api/v2/jobs", tags=["jobs"])


# --- Helper functions ---


def _parse_graph(payload: Optional[GraphPayload]) -> Graph:
    """Convert a graph payload to a validated Graph (422 on dangling flows)."""
    if payload is None:
        return Graph()
    try:
        return Graph.from_dict(payload.model_dump(by_alias=True))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _graph_payload(graph: Graph) -> GraphPayload:
    return GraphPayload.model_validate(graph.to_dict())


def _iso(value: Optional[datetime]) -> str:
    """ISO 8601 in UTC with a trailing Z (SQLite returns naive datetimes)."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def _job_to_response(job: JobModel) -> JobResponse:
    """Convert ORM JobModel to API response."""
    graph = Graph.from_dict(job.graph)
    editor = CanvasEditor(InMemoryGraphStore(graph))
    return JobResponse(
        id=job.id,
        name=job.name,
        description=job.description,
        graph=_graph_payload(graph),
        smart_join_available=editor.is_new_project(),
        created_at=_iso(job.created_at),
        updated_at=_iso(job.updated_at),
    )


async def _get_job_or_404(repo: JobRepository, job_id: str) -> JobModel:
    job = await repo.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job '{job_id}' not found")
    return job


# --- CRUD Endpoints ---


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    payload: CreateJobRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create a new canvas job, optionally with an initial graph."""
    graph = _parse_graph(payload.graph)
    repo = JobRepository(session)
    job = await repo.create(
        name=payload.name,
        description=payload.description,
        graph=graph.to_dict(),
    )
    get_api_logger(job.id).info(f"Job created: {job.name}, {len(graph.nodes)} components")
    return _job_to_response(job)


@router.get("", response_model=PagedJobsResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """List canvas jobs with pagination."""
    repo = JobRepository(session)
    jobs, total = await repo.list(page=page, page_size=page_size)
    return PagedJobsResponse(
        items=[_job_to_response(job) for job in jobs],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    session: AsyncSession = Depends(get_session),
):
    repo = JobRepository(session)
    return _job_to_response(await _get_job_or_404(repo, job_id))


@router.put("/{job_id}/graph", response_model=JobResponse)
async def replace_job_graph(job_id: str, payload: GraphPayload):
    """Replace the whole graph of a job (nodes + flows)."""
    graph = _parse_graph(payload)
    async with graph_session(job_id) as session:
        job = await JobRepository(session).replace_graph(job_id, graph.to_dict())
    if not job:
        raise HTTPException(status_code=404, detail=f"Job '{job_id}' not found")
    return _job_to_response(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: str,
    session: AsyncSession = Depends(get_session),
):
    repo = JobRepository(session)
    deleted = await repo.delete(job_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Job '{job_id}' not found")
