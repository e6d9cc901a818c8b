"""Protocol for the progress-update sink consumed by the chat UI."""

from __future__ import annotations

from typing import Protocol


class ProgressSink(Protocol):
    def __call__(self, event: dict) -> None:
        """Receive ``{"type": "step"|"complete", "data": {...}}`` events."""
        ...
