"""Canvas editing endpoints: Smart Join, Guided Join, manual wiring, layout.

Each editing request opens the job graph through ``_edit_canvas``: the job's
graph lock is held while the graph is loaded into an InMemoryGraphStore, one
CanvasEditor operation runs synchronously, and the result is committed.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from flowcanvas.editor import CanvasEditor
from flowcanvas.engine import guided_join
from flowcanvas.engine.connection import IDLE
from flowcanvas.engine.guided_join import GuidedJoinState
from flowcanvas.engine.layout import AnchorKind, anchor_position
from flowcanvas.engine.outcomes import JoinOutcome
from flowcanvas.engine.pointer import AnchorPress, PointerRelease
from flowcanvas.graph import Graph, InMemoryGraphStore, Position
from flowcanvas.logging_config import get_api_logger
from flowcanvas.nodes.registry import list_node_types

from ..database import get_session, graph_session
from ..event_bus import get_event_bus
from ..models.db import JobModel
from ..repositories.job import GraphConflictError, JobRepository
from ..schemas import (
    ConnectionRequest,
    ConnectionResponse,
    FlowSchema,
    GuidedJoinSelectRequest,
    GuidedJoinStateRequest,
    GuidedJoinStateSchema,
    JoinOutcomeResponse,
    NodeTypeResponse,
    PositionSchema,
    RenderedComponentResponse,
)
from .jobs import _get_job_or_404, _graph_payload

router = APIRouter(prefix="/api/v2", tags=["canvas"])

OUTCOME_EVENT = "join_outcome"


# --- Helper functions ---


class _JobCanvas:
    """A job graph opened for one request."""

    def __init__(self, repo: JobRepository, job: JobModel, graph: Graph):
        self.repo = repo
        self.job_id = job.id
        self.revision = job.revision
        self.store = InMemoryGraphStore(graph)
        self.editor = CanvasEditor(self.store)
        self.editor.on_outcome.connect(self._publish_outcome)
        self.log = get_api_logger(job.id)

    def _publish_outcome(self, outcome: JoinOutcome) -> None:
        get_event_bus().push(self.job_id, OUTCOME_EVENT, outcome.to_dict())

    async def save(self) -> None:
        """Write the committed graph back if the editor changed it (409 on conflict)."""
        if not self.store.dirty:
            return
        graph = self.store.current_graph()
        try:
            await self.repo.replace_graph(self.job_id, graph.to_dict(), expected_revision=self.revision)
        except GraphConflictError as e:
            self.log.warning(f"Graph write rejected: {e}")
            raise HTTPException(status_code=409, detail=str(e))
        self.revision += 1
        self.log.info(
            f"Graph saved (rev {self.revision}): {len(graph.nodes)} components, {len(graph.edges)} flows"
        )


async def _open_canvas(session: AsyncSession, job_id: str) -> _JobCanvas:
    repo = JobRepository(session)
    job = await _get_job_or_404(repo, job_id)
    try:
        graph = Graph.from_dict(job.graph)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Stored graph is invalid: {e}")
    return _JobCanvas(repo, job, graph)


@asynccontextmanager
async def _edit_canvas(job_id: str) -> AsyncGenerator[_JobCanvas, None]:
    """Open a job graph for editing; saved and committed on clean exit."""
    async with graph_session(job_id) as session:
        canvas = await _open_canvas(session, job_id)
        yield canvas
        await canvas.save()


def _state_from_schema(schema: GuidedJoinStateSchema) -> GuidedJoinState:
    return GuidedJoinState.from_dict(schema.model_dump())


def _state_to_schema(state: GuidedJoinState) -> GuidedJoinStateSchema:
    return GuidedJoinStateSchema.model_validate(state.to_dict())


def _outcome_response(outcome: JoinOutcome, graph: Graph) -> JoinOutcomeResponse:
    return JoinOutcomeResponse(
        kind=outcome.kind.value,
        message=outcome.message,
        edges_created=[FlowSchema.model_validate(e.to_dict()) for e in outcome.edges_created],
        guided_state=_state_to_schema(outcome.guided_state) if outcome.guided_state else None,
        graph=_graph_payload(graph),
    )


# --- Node type palette ---


@router.get("/node-types", response_model=List[NodeTypeResponse])
def get_node_types():
    """List all registered component types for the frontend palette."""
    return [
        NodeTypeResponse(
            type_key=info.type_key,
            category=info.category.value,
            inputs=list(info.ports.inputs),
            outputs=list(info.ports.outputs),
        )
        for info in list_node_types()
    ]


# --- Smart Join ---


@router.post("/jobs/{job_id}/smart-join", response_model=JoinOutcomeResponse)
async def smart_join(job_id: str):
    """Auto-connect unconnected components, or hand back a Guided Join state."""
    async with _edit_canvas(job_id) as canvas:
        outcome = canvas.editor.smart_join()
    return _outcome_response(outcome, canvas.editor.graph)


# --- Guided Join (state held by the client) ---


@router.post("/jobs/{job_id}/guided-join/select", response_model=GuidedJoinStateSchema)
async def guided_join_select(
    job_id: str,
    payload: GuidedJoinSelectRequest,
    session: AsyncSession = Depends(get_session),
):
    """Apply selections to the current step without advancing."""
    await _get_job_or_404(JobRepository(session), job_id)
    state = _state_from_schema(payload.state)
    fan_in = None
    if payload.fan_in is not None:
        fan_in = (payload.fan_in.upstream, payload.fan_in.downstream)
    state = guided_join.apply_selections(
        state,
        input_mappings=payload.input_mappings,
        fan_in=fan_in,
        final_output=payload.final_output,
    )
    return _state_to_schema(state)


@router.post("/jobs/{job_id}/guided-join/advance", response_model=GuidedJoinStateSchema)
async def guided_join_advance(
    job_id: str,
    payload: GuidedJoinStateRequest,
    session: AsyncSession = Depends(get_session),
):
    await _get_job_or_404(JobRepository(session), job_id)
    return _state_to_schema(guided_join.advance(_state_from_schema(payload.state)))


@router.post("/jobs/{job_id}/guided-join/back", response_model=GuidedJoinStateSchema)
async def guided_join_back(
    job_id: str,
    payload: GuidedJoinStateRequest,
    session: AsyncSession = Depends(get_session),
):
    await _get_job_or_404(JobRepository(session), job_id)
    return _state_to_schema(guided_join.back(_state_from_schema(payload.state)))


@router.post("/jobs/{job_id}/guided-join/complete", response_model=JoinOutcomeResponse)
async def guided_join_complete(job_id: str, payload: GuidedJoinStateRequest):
    """Commit the flows described by a finished Guided Join."""
    async with _edit_canvas(job_id) as canvas:
        _, outcome = canvas.editor.complete_guided_join(_state_from_schema(payload.state))
    return _outcome_response(outcome, canvas.editor.graph)


# --- Manual editing ---


@router.post("/jobs/{job_id}/connections", response_model=ConnectionResponse)
async def create_connection(job_id: str, payload: ConnectionRequest):
    """Commit a hand-drawn flow (output anchor of source -> input anchor of target).

    Self and duplicate connections are ignored (``created`` is false).
    """
    async with _edit_canvas(job_id) as canvas:
        editor = canvas.editor
        for node_id in (payload.source, payload.target):
            if editor.graph.get_node(node_id) is None:
                raise HTTPException(status_code=404, detail=f"Component '{node_id}' not found")

        state, _ = editor.handle_connection_event(
            IDLE,
            AnchorPress(node_id=payload.source, port=payload.source_port, anchor=AnchorKind.OUTPUT),
        )
        _, edge = editor.handle_connection_event(
            state,
            PointerRelease(node_id=payload.target, anchor=AnchorKind.INPUT),
        )
    return ConnectionResponse(
        created=edge is not None,
        flow=FlowSchema.model_validate(edge.to_dict()) if edge else None,
        graph=_graph_payload(editor.graph),
    )


@router.delete("/jobs/{job_id}/nodes/{node_id}", response_model=ConnectionResponse)
async def delete_node(job_id: str, node_id: str):
    """Delete a component and every flow touching it."""
    async with _edit_canvas(job_id) as canvas:
        if not canvas.editor.delete_node(node_id):
            raise HTTPException(status_code=404, detail=f"Component '{node_id}' not found")
    return ConnectionResponse(created=False, graph=_graph_payload(canvas.editor.graph))


@router.post("/jobs/{job_id}/nodes/{node_id}/toggle-active", response_model=ConnectionResponse)
async def toggle_node_active(job_id: str, node_id: str):
    async with _edit_canvas(job_id) as canvas:
        try:
            canvas.editor.toggle_active(node_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))
    return ConnectionResponse(created=False, graph=_graph_payload(canvas.editor.graph))


@router.put("/jobs/{job_id}/nodes/{node_id}/position", response_model=ConnectionResponse)
async def move_node(job_id: str, node_id: str, payload: PositionSchema):
    async with _edit_canvas(job_id) as canvas:
        try:
            canvas.editor.move_node(node_id, Position(payload.x, payload.y))
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))
    return ConnectionResponse(created=False, graph=_graph_payload(canvas.editor.graph))


@router.post("/jobs/{job_id}/clear", response_model=ConnectionResponse)
async def clear_canvas(job_id: str):
    """Remove every component, flow, subjob and trigger from a job."""
    async with _edit_canvas(job_id) as canvas:
        canvas.editor.clear_canvas()
    return ConnectionResponse(created=False, graph=_graph_payload(canvas.editor.graph))


# --- Layout ---


@router.get("/jobs/{job_id}/layout", response_model=List[RenderedComponentResponse])
async def get_layout(
    job_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Render positions with overlaps pushed apart (stored positions untouched)."""
    canvas = await _open_canvas(session, job_id)
    rendered = []
    for item in canvas.editor.layout():
        pos = item.render_position
        rendered.append(RenderedComponentResponse(
            id=item.node.id,
            position=PositionSchema(**item.node.position.to_dict()),
            render_position=PositionSchema(**pos.to_dict()),
            input_anchor=PositionSchema(**anchor_position(pos, AnchorKind.INPUT).to_dict()),
            output_anchor=PositionSchema(**anchor_position(pos, AnchorKind.OUTPUT).to_dict()),
        ))
    return rendered
