"""Pydantic request/response models for the canvas API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PositionSchema(BaseModel):
    x: float = 0
    y: float = 0


class ComponentSchema(BaseModel):
    """Placed component in job JSON format."""
    id: str = Field(..., min_length=1)
    type: str = ""
    original_type: Optional[str] = None
    position: PositionSchema = Field(default_factory=PositionSchema)
    active: bool = True


class FlowSchema(BaseModel):
    """Flow in job JSON format ({name, from, to, type})."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = "main"
    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    type: str = "flow"


class GraphPayload(BaseModel):
    """Full canvas graph for create/update and responses."""
    components: List[ComponentSchema] = Field(default_factory=list)
    flows: List[FlowSchema] = Field(default_factory=list)
    subjobs: Dict[str, Any] = Field(default_factory=dict)
    triggers: List[Any] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateJobRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    graph: Optional[GraphPayload] = None


class JobResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    graph: GraphPayload
    smart_join_available: bool = False
    created_at: str
    updated_at: str


class PagedJobsResponse(BaseModel):
    items: List[JobResponse]
    page: int
    page_size: int
    total: int


# --- Smart Join / Guided Join ---


class FanInSchema(BaseModel):
    upstream: List[str] = Field(default_factory=list)
    downstream: Optional[str] = None


class GuidedJoinStateSchema(BaseModel):
    """Client-held Guided Join state, echoed back on every step."""
    input_nodes: List[str] = Field(default_factory=list)
    transform_nodes: List[str] = Field(default_factory=list)
    output_nodes: List[str] = Field(default_factory=list)
    input_mappings: Dict[str, str] = Field(default_factory=dict)
    fan_in: FanInSchema = Field(default_factory=FanInSchema)
    final_output: Optional[str] = None
    step: int = Field(1, ge=1, le=3)
    errors: List[str] = Field(default_factory=list)


class GuidedJoinSelectRequest(BaseModel):
    """Selections to apply to a Guided Join state (all optional)."""
    state: GuidedJoinStateSchema
    input_mappings: Optional[Dict[str, str]] = None
    fan_in: Optional[FanInSchema] = None
    final_output: Optional[str] = None


class GuidedJoinStateRequest(BaseModel):
    state: GuidedJoinStateSchema


class JoinOutcomeResponse(BaseModel):
    kind: str
    message: str = ""
    edges_created: List[FlowSchema] = Field(default_factory=list)
    guided_state: Optional[GuidedJoinStateSchema] = None
    graph: GraphPayload


# --- Manual editing ---


class ConnectionRequest(BaseModel):
    source: str = Field(..., min_length=1)
    source_port: Optional[str] = None
    target: str = Field(..., min_length=1)


class ConnectionResponse(BaseModel):
    created: bool
    flow: Optional[FlowSchema] = None
    graph: GraphPayload


class RenderedComponentResponse(BaseModel):
    id: str
    position: PositionSchema
    render_position: PositionSchema
    input_anchor: PositionSchema
    output_anchor: PositionSchema


class NodeTypeResponse(BaseModel):
    type_key: str
    category: str
    inputs: List[str]
    outputs: List[str]
