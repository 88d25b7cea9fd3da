"""SQLAlchemy ORM models for the canvas service.

Tables:
- canvas_jobs: ETL jobs edited on the canvas; the graph (components, flows,
  subjobs, triggers, metadata) is stored as one JSON document
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _gen_uuid() -> str:
    return str(uuid.uuid4())


class JobModel(Base):
    """Persistent canvas job.

    ``graph`` holds the wire format produced by flowcanvas.graph.Graph.to_dict
    and is always replaced as a whole.
    """

    __tablename__ = "canvas_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    graph: Mapped[Dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict,
        comment="Graph JSON: {components, flows, subjobs, triggers, metadata}",
    )
    revision: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Bumped on every graph write; guards read-modify-write",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_canvas_jobs_updated_at", "updated_at"),
    )
