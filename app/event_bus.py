"""SSE Event Bus for canvas outcome signals.

Smart Join / Guided Join outcomes (insufficient candidates, ambiguous
topology, nothing new to connect, success) are pushed here by the canvas
routes and fanned out to every client watching the job.

Architecture:
  - Routes connect CanvasEditor.on_outcome to EventBus.push()
  - Clients subscribe via GET /api/v2/jobs/{job_id}/stream
  - Outcomes are transient UI signals: with no subscriber they are dropped

Event Envelope:
  {
    "event": "<event_type>",
    "data": {"job_id": "<job_id>", "timestamp": "<ISO 8601>", ...payload}
  }
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict, Optional, Set

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from flowcanvas.logging_config import get_sse_logger

router = APIRouter()

# Per-subscriber queue bound; a stalled client loses the oldest events
QUEUE_MAX_EVENTS = 100


class EventBus:
    """Fan-out of canvas events to the SSE clients of each job."""

    def __init__(self, queue_max_events: int = QUEUE_MAX_EVENTS):
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._queue_max_events = queue_max_events

    def subscriber_count(self, job_id: str) -> int:
        return len(self._subscribers.get(job_id, ()))

    def push(self, job_id: str, event_type: str, data: dict) -> int:
        """Deliver an event to every subscriber of ``job_id``.

        Returns:
            Number of subscribers that received the event
        """
        payload = {"job_id": job_id, **data}
        payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        event = {"event": event_type, "data": payload}

        log = get_sse_logger(job_id)
        queues = self._subscribers.get(job_id, set())
        for queue in queues:
            if queue.full():
                queue.get_nowait()
                log.warning("Subscriber queue full, dropped oldest event")
            queue.put_nowait(event)

        if queues:
            log.info(f"Event sent: {event_type} ({len(queues)} subscriber(s))")
        else:
            log.info(f"No subscriber, dropped: {event_type}")
        return len(queues)

    async def subscribe(
        self,
        job_id: str,
        keepalive_interval: float = 30.0,
    ) -> AsyncGenerator[str, None]:
        """Yield SSE-formatted strings for ``job_id`` until the client leaves."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_max_events)
        self._subscribers.setdefault(job_id, set()).add(queue)
        log = get_sse_logger(job_id)
        log.info("Client subscribed")

        try:
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive_interval)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if event is None:  # Sentinel to stop
                    break
                yield format_sse(event)
        finally:
            queues = self._subscribers.get(job_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    self._subscribers.pop(job_id, None)
            log.info("Client unsubscribed")

    def close(self, job_id: str) -> None:
        """Ask every subscriber of ``job_id`` to end its stream."""
        for queue in self._subscribers.get(job_id, set()):
            queue.put_nowait(None)


def format_sse(event: dict) -> str:
    """Format an event dict as an SSE string."""
    return f"event: {event['event']}\ndata: {json.dumps(event['data'])}\n\n"


# --- Singleton ---

_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the global EventBus singleton."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


@router.get("/api/v2/jobs/{job_id}/stream")
async def stream_job_events(job_id: str):
    """SSE stream of canvas outcome events for a job."""
    return StreamingResponse(
        get_event_bus().subscribe(job_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
