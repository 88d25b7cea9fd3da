"""Minimal observer registration used for editor triggers and notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class Signal:
    """Synchronous signal: connected callbacks run in registration order."""

    def __init__(self, name: str):
        self.name = name
        self._receivers: List[Callable[..., Any]] = []

    def connect(self, receiver: Callable[..., Any]) -> Callable[..., Any]:
        """Register ``receiver``; usable as a decorator."""
        if receiver not in self._receivers:
            self._receivers.append(receiver)
        return receiver

    def disconnect(self, receiver: Callable[..., Any]) -> None:
        if receiver in self._receivers:
            self._receivers.remove(receiver)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        logger.debug(f"Signal '{self.name}' -> {len(self._receivers)} receiver(s)")
        for receiver in list(self._receivers):
            receiver(*args, **kwargs)

    def __len__(self) -> int:
        return len(self._receivers)
