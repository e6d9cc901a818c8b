"""Chat entry point: route a turn and dispatch it to the matching agent."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field

from wavepulse.agents.codebase_graph import CodebaseAgent
from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.tool_agent import ToolAgent
from wavepulse.config.settings import Settings
from wavepulse.models.domain import OrchestrationError, Query, ResearchStep
from wavepulse.observability.logger import get_logger
from wavepulse.observability.metrics import log_chat_metrics
from wavepulse.observability.tracing import TraceContext
from wavepulse.protocols.progress import ProgressSink
from wavepulse.query.router import QueryRouter, RouteCategory

logger = get_logger("chat_service")


@dataclass
class ChatResult:
    message: str
    research_steps: list[ResearchStep]
    route: str
    errors: list[OrchestrationError] = field(default_factory=list)


class ChatService:
    def __init__(
        self,
        router: QueryRouter,
        codebase_agent: CodebaseAgent,
        file_ops_agent: ToolAgent,
        ui_state_agent: ToolAgent,
        settings: Settings,
    ) -> None:
        self._router = router
        self._codebase = codebase_agent
        self._tool_agents = {
            RouteCategory.FILE_OPS: file_ops_agent,
            RouteCategory.UI_STATE: ui_state_agent,
        }
        self._settings = settings

    async def respond(
        self,
        query: Query,
        use_deterministic_seed: bool | None = None,
        sink: ProgressSink | None = None,
    ) -> ChatResult:
        """Answer one chat turn. Emits exactly one ``complete`` event to ``sink``."""
        trace = TraceContext()
        seeded = (
            self._settings.use_deterministic_seed
            if use_deterministic_seed is None
            else use_deterministic_seed
        )

        # STEP 1: Route
        with trace.span("routing"):
            route = await self._router.route(query.message, seeded)

        # STEP 2: Dispatch
        with trace.span("agent", route=route.value):
            if route == RouteCategory.CODEBASE:
                outcome = await self._codebase.run(query, sink, seeded)
                result = ChatResult(outcome.message, outcome.research_steps, route.value, outcome.errors)
            else:
                result = await self._run_tool_agent(route, query, seeded, sink)

        log_chat_metrics(
            route=result.route,
            steps=len(result.research_steps),
            errors=len(result.errors),
            latency_ms=trace.elapsed_ms,
        )
        return result

    async def _run_tool_agent(
        self,
        route: RouteCategory,
        query: Query,
        seeded: bool,
        sink: ProgressSink | None,
    ) -> ChatResult:
        agent = self._tool_agents[route]
        tracker = ResearchStepTracker(sink)
        errors: list[OrchestrationError] = []
        try:
            message = await agent.run(query, tracker, seeded)
        except Exception as e:
            logger.error("tool_agent_failed", agent=agent.name, error=str(e))
            tracker.fail_in_progress()
            message = f"An error occurred while processing your request: {e}"
            errors.append(OrchestrationError(agent.name, str(e), "Return error message"))
        tracker.complete(message)
        return ChatResult(message, tracker.steps, route.value, errors)

    async def respond_stream(
        self, query: Query, use_deterministic_seed: bool | None = None
    ) -> AsyncGenerator[dict, None]:
        """Yield ``step`` events as they happen, ending with the ``complete`` event."""
        queue: asyncio.Queue[dict] = asyncio.Queue()

        def on_done(task: asyncio.Task) -> None:
            if not task.cancelled() and task.exception() is not None:
                logger.error("chat_stream_failed", error=str(task.exception()))
                queue.put_nowait(
                    {
                        "type": "complete",
                        "data": {
                            "message": f"An error occurred while processing your request: {task.exception()}",
                            "researchSteps": [],
                        },
                    }
                )

        task = asyncio.create_task(self.respond(query, use_deterministic_seed, queue.put_nowait))
        task.add_done_callback(on_done)
        try:
            while True:
                event = await queue.get()
                yield event
                if event.get("type") == "complete":
                    break
        finally:
            if not task.done():
                task.cancel()
