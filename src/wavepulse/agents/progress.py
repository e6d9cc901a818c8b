"""Research-step bookkeeping and progress events for the chat UI."""

from __future__ import annotations

from wavepulse.models.domain import ResearchStep, StepStatus
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.progress import ProgressSink

logger = get_logger("progress")


class ResearchStepTracker:
    """Ordered research steps keyed by id.

    Updating an existing id rewrites that entry in place; a new id is
    appended. Every change is pushed to the sink as a ``step`` event.
    """

    def __init__(
        self,
        sink: ProgressSink | None = None,
        steps: list[ResearchStep] | None = None,
    ) -> None:
        self._sink = sink
        self._steps: list[ResearchStep] = [
            ResearchStep(s.id, s.description, s.status) for s in steps or []
        ]

    @property
    def steps(self) -> list[ResearchStep]:
        return list(self._steps)

    def fork(self) -> ResearchStepTracker:
        """A tracker seeded with a copy of these steps, reporting to the same sink."""
        return ResearchStepTracker(self._sink, self._steps)

    def get(self, step_id: str) -> ResearchStep | None:
        return next((s for s in self._steps if s.id == step_id), None)

    def update(self, step_id: str, description: str, status: StepStatus) -> ResearchStep:
        step = self._upsert(ResearchStep(step_id, description, status))
        self._emit_steps()
        return step

    def merge(self, steps: list[ResearchStep]) -> None:
        """Fold another step list in: same id overwrites, new ids append in their order."""
        for step in steps:
            self._upsert(step)
        if steps:
            self._emit_steps()

    def fail_in_progress(self) -> int:
        failed = 0
        for step in self._steps:
            if step.status == "in-progress":
                step.status = "failed"
                failed += 1
        if failed:
            self._emit_steps()
        return failed

    def snapshot(self) -> list[dict]:
        return [s.to_dict() for s in self._steps]

    def complete(self, message: str) -> None:
        self._emit({"type": "complete", "data": {"message": message, "researchSteps": self.snapshot()}})

    def _upsert(self, step: ResearchStep) -> ResearchStep:
        existing = self.get(step.id)
        if existing is None:
            existing = ResearchStep(step.id, step.description, step.status)
            self._steps.append(existing)
        else:
            existing.description = step.description
            existing.status = step.status
        return existing

    def _emit_steps(self) -> None:
        self._emit({"type": "step", "data": {"researchSteps": self.snapshot()}})

    def _emit(self, event: dict) -> None:
        if self._sink is None:
            return
        try:
            self._sink(event)
        except Exception as e:
            logger.warning("progress_sink_failed", event_type=event.get("type"), error=str(e))
