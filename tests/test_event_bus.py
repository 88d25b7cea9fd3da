"""Tests for the SSE EventBus (app/event_bus.py)."""

from __future__ import annotations

import asyncio
import json

import pytest

from app.event_bus import EventBus, format_sse


def _parse(chunk: str) -> tuple:
    event_line, data_line = chunk.strip().split("\n")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


async def _next(stream):
    return await stream.__anext__()


async def _collect(stream) -> list:
    return [chunk async for chunk in stream]


class TestEventBus:

    def test_push_without_subscriber_is_dropped(self):
        bus = EventBus()
        assert bus.push("job-1", "join_outcome", {"kind": "success"}) == 0

    @pytest.mark.asyncio
    async def test_subscriber_receives_event(self):
        bus = EventBus()
        stream = bus.subscribe("job-1", keepalive_interval=5)
        pending = asyncio.create_task(_next(stream))
        await asyncio.sleep(0)

        assert bus.subscriber_count("job-1") == 1
        assert bus.push("job-1", "join_outcome", {"kind": "success"}) == 1

        event_type, data = _parse(await pending)
        assert event_type == "join_outcome"
        assert data["job_id"] == "job-1"
        assert data["kind"] == "success"
        assert "timestamp" in data

        await stream.aclose()
        assert bus.subscriber_count("job-1") == 0

    @pytest.mark.asyncio
    async def test_keepalive(self):
        bus = EventBus()
        stream = bus.subscribe("job-1", keepalive_interval=0.01)
        assert await _next(stream) == ": keepalive\n\n"
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_close_ends_stream(self):
        bus = EventBus()
        consumer = asyncio.create_task(_collect(bus.subscribe("job-1", keepalive_interval=5)))
        await asyncio.sleep(0)

        bus.push("job-1", "join_outcome", {"kind": "no_new_connections"})
        bus.close("job-1")
        chunks = await consumer

        assert [_parse(c)[0] for c in chunks] == ["join_outcome"]
        assert bus.subscriber_count("job-1") == 0

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        bus = EventBus(queue_max_events=2)
        stream = bus.subscribe("job-1", keepalive_interval=5)
        pending = asyncio.create_task(_next(stream))
        await asyncio.sleep(0)

        # First event is consumed by the pending read
        bus.push("job-1", "e", {"n": 0})
        assert _parse(await pending)[1]["n"] == 0

        for n in range(1, 4):
            bus.push("job-1", "e", {"n": n})
        assert _parse(await _next(stream))[1]["n"] == 2
        assert _parse(await _next(stream))[1]["n"] == 3
        await stream.aclose()


def test_format_sse():
    chunk = format_sse({"event": "join_outcome", "data": {"kind": "success"}})
    assert chunk == 'event: join_outcome\ndata: {"kind": "success"}\n\n'
