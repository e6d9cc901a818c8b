"""Per-query timing of graph nodes and chat stages."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from uuid import uuid4


@dataclass
class Span:
    name: str
    start_ms: float
    end_ms: float = 0.0
    error: str | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict:
        entry = {"name": self.name, "duration_ms": round(self.duration_ms, 2), **self.metadata}
        if self.error is not None:
            entry["error"] = self.error
        return entry


class TraceContext:
    """Collects one span per stage. A span whose body raises records the error and re-raises."""

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or uuid4().hex[:12]
        self.spans: list[Span] = []
        self._origin = time.monotonic()

    def _now_ms(self) -> float:
        return (time.monotonic() - self._origin) * 1000

    @contextmanager
    def span(self, name: str, **metadata):
        current = Span(name=name, start_ms=self._now_ms(), metadata=metadata)
        try:
            yield current
        except Exception as e:
            current.error = str(e)
            raise
        finally:
            current.end_ms = self._now_ms()
            self.spans.append(current)

    @property
    def elapsed_ms(self) -> float:
        return self._now_ms()

    def slowest(self) -> Span | None:
        return max(self.spans, key=lambda s: s.duration_ms, default=None)

    def summary(self) -> dict:
        slowest = self.slowest()
        return {
            "trace_id": self.trace_id,
            "latency_ms": round(self.elapsed_ms, 2),
            "slowest_span": slowest.name if slowest else None,
            "failed_spans": [s.name for s in self.spans if s.error is not None],
            "spans": [s.to_dict() for s in self.spans],
        }
