"""Repository layer for canvas job persistence.

Provides async CRUD operations for JobModel. The graph column is only ever
replaced as a whole, matching the editor's replace_graph() contract.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.db import JobModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GraphConflictError(Exception):
    """The job graph was rewritten after it was read."""


class JobRepository:
    """Data access layer for canvas jobs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        description: Optional[str] = None,
        graph: Optional[Dict[str, Any]] = None,
    ) -> JobModel:
        job = JobModel(name=name, description=description, graph=graph or {})
        self.session.add(job)
        await self.session.flush()
        return job

    async def get(self, job_id: str) -> Optional[JobModel]:
        result = await self.session.execute(
            select(JobModel).where(JobModel.id == job_id)
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[JobModel], int]:
        """List jobs, most recently updated first.

        Returns:
            Tuple of (jobs, total_count)
        """
        query = (
            select(JobModel)
            .order_by(JobModel.updated_at.desc(), JobModel.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_query = select(func.count()).select_from(JobModel)

        result = await self.session.execute(query)
        jobs = list(result.scalars().all())

        count_result = await self.session.execute(count_query)
        total = count_result.scalar() or 0

        return jobs, total

    async def replace_graph(
        self,
        job_id: str,
        graph: Dict[str, Any],
        expected_revision: Optional[int] = None,
    ) -> Optional[JobModel]:
        """Replace a job's graph document and bump its revision.

        Args:
            job_id: Job to update
            graph: New graph document
            expected_revision: When set, write only if the stored revision
                still equals it (the revision the caller read)

        Returns:
            The updated job, or None if it does not exist

        Raises:
            GraphConflictError: The stored revision moved on
        """
        conditions = [JobModel.id == job_id]
        if expected_revision is not None:
            conditions.append(JobModel.revision == expected_revision)

        result = await self.session.execute(
            update(JobModel)
            .where(*conditions)
            .values(graph=graph, revision=JobModel.revision + 1, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        job = await self._reload(job_id)
        if result.rowcount == 0 and job is not None:
            raise GraphConflictError(
                f"Job '{job_id}' graph is at revision {job.revision}, expected {expected_revision}"
            )
        return job

    async def _reload(self, job_id: str) -> Optional[JobModel]:
        result = await self.session.execute(
            select(JobModel)
            .where(JobModel.id == job_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def delete(self, job_id: str) -> bool:
        job = await self.get(job_id)
        if not job:
            return False
        await self.session.delete(job)
        await self.session.flush()
        return True
