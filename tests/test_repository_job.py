"""Tests for JobRepository (app/repositories/job.py).

Covers CRUD operations, pagination, and revision-checked graph replacement.
Uses in-memory SQLite via conftest fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.job import GraphConflictError, JobRepository

GRAPH = {
    "components": [{"id": "tMap_1", "type": "tMap"}],
    "flows": [],
    "subjobs": {},
    "triggers": [],
    "metadata": {},
}


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_job(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="nightly load", description="orders", graph=GRAPH)
        assert job.id
        assert job.name == "nightly load"
        assert job.graph == GRAPH
        assert job.created_at is not None

    @pytest.mark.asyncio
    async def test_create_defaults_to_empty_graph(self, test_session: AsyncSession):
        job = await JobRepository(test_session).create(name="blank")
        assert job.graph == {}
        assert job.description is None


class TestGet:

    @pytest.mark.asyncio
    async def test_get_existing(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="a")
        fetched = await repo.get(job.id)
        assert fetched is not None
        assert fetched.name == "a"

    @pytest.mark.asyncio
    async def test_get_missing(self, test_session: AsyncSession):
        assert await JobRepository(test_session).get("nope") is None


class TestList:

    @pytest.mark.asyncio
    async def test_pagination(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        for i in range(5):
            await repo.create(name=f"job-{i}")

        page1, total = await repo.list(page=1, page_size=2)
        page3, _ = await repo.list(page=3, page_size=2)
        assert total == 5
        assert len(page1) == 2
        assert len(page3) == 1


class TestReplaceGraph:

    @pytest.mark.asyncio
    async def test_replace_graph(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="a", graph=GRAPH)
        new_graph = {**GRAPH, "components": []}

        updated = await repo.replace_graph(job.id, new_graph)
        assert updated.graph == new_graph
        assert (await repo.get(job.id)).graph["components"] == []

    @pytest.mark.asyncio
    async def test_replace_graph_missing(self, test_session: AsyncSession):
        assert await JobRepository(test_session).replace_graph("nope", GRAPH) is None

    @pytest.mark.asyncio
    async def test_replace_graph_bumps_revision(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="a", graph=GRAPH)
        assert job.revision == 0

        updated = await repo.replace_graph(job.id, GRAPH, expected_revision=0)
        assert updated.revision == 1
        updated = await repo.replace_graph(job.id, GRAPH)
        assert updated.revision == 2

    @pytest.mark.asyncio
    async def test_stale_revision_rejected(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="a", graph=GRAPH)
        await repo.replace_graph(job.id, {**GRAPH, "components": []}, expected_revision=0)

        with pytest.raises(GraphConflictError, match="revision 1, expected 0"):
            await repo.replace_graph(job.id, GRAPH, expected_revision=0)
        stored = await repo.get(job.id)
        assert stored.graph["components"] == []
        assert stored.revision == 1

    @pytest.mark.asyncio
    async def test_expected_revision_on_missing_job(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        assert await repo.replace_graph("nope", GRAPH, expected_revision=0) is None


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete(self, test_session: AsyncSession):
        repo = JobRepository(test_session)
        job = await repo.create(name="a")
        assert await repo.delete(job.id) is True
        assert await repo.get(job.id) is None
        assert await repo.delete(job.id) is False
