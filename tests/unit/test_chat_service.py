"""Tests for routing a chat turn to its agent and streaming progress."""

import json

from wavepulse.agents.codebase_graph import CodebaseResult
from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.tool_agent import ToolAgent
from wavepulse.models.domain import Query
from wavepulse.pipeline.chat_service import ChatService
from wavepulse.query.router import QueryRouter
from wavepulse.tools.registry import ToolRegistry


class StubCodebase:
    def __init__(self) -> None:
        self.calls = []

    async def run(self, query, sink=None, use_deterministic_seed=None):
        self.calls.append((query, use_deterministic_seed))
        tracker = ResearchStepTracker(sink)
        tracker.update("query-analyzer", "Query analysis complete", "completed")
        tracker.complete("codebase answer")
        return CodebaseResult("codebase answer", tracker.steps)


class ExplodingToolAgent:
    name = "file-ops"

    async def run(self, query, tracker, use_deterministic_seed=None):
        tracker.update("agent-iteration-1", "thinking", "in-progress")
        raise RuntimeError("registry corrupted")


class ExplodingRouter:
    async def route(self, message, use_deterministic_seed=True):
        raise RuntimeError("router bug")


def build_service(settings, llm, codebase=None, file_ops=None, router=None) -> ChatService:
    tool_agent = ToolAgent("ui-state", llm, ToolRegistry(), settings, "s")
    return ChatService(
        router=router or QueryRouter(llm, settings),
        codebase_agent=codebase or StubCodebase(),
        file_ops_agent=file_ops or ToolAgent("file-ops", llm, ToolRegistry(), settings, "s"),
        ui_state_agent=tool_agent,
        settings=settings,
    )


async def test_file_ops_turn_runs_tool_agent(settings, make_llm):
    llm = make_llm(queue=["file-ops", json.dumps({"action": "final", "answer": "Created notes.txt"})])
    events = []

    result = await build_service(settings, llm).respond(Query("create notes.txt"), sink=events.append)

    assert result.route == "file-ops"
    assert result.message == "Created notes.txt"
    assert [s.id for s in result.research_steps] == ["agent-iteration-1"]
    assert [e["type"] for e in events].count("complete") == 1
    assert events[-1]["data"]["message"] == "Created notes.txt"


async def test_codebase_turn_runs_graph(settings, make_llm):
    codebase = StubCodebase()
    service = build_service(settings, make_llm(queue=["codebase"]), codebase=codebase)

    result = await service.respond(Query("How does BaseComponent work?"), use_deterministic_seed=False)

    assert result.route == "codebase"
    assert result.message == "codebase answer"
    assert codebase.calls[0][1] is False


async def test_tool_agent_crash_becomes_error_answer(settings, make_llm):
    service = build_service(settings, make_llm(queue=["file-ops"]), file_ops=ExplodingToolAgent())
    events = []

    result = await service.respond(Query("edit the label"), sink=events.append)

    assert result.message == "An error occurred while processing your request: registry corrupted"
    assert [(e.step, e.recovery_action) for e in result.errors] == [("file-ops", "Return error message")]
    assert result.research_steps[0].status == "failed"
    assert events[-1]["type"] == "complete"


async def test_stream_ends_with_complete_event(settings, make_llm):
    llm = make_llm(queue=["ui-state", json.dumps({"action": "final", "answer": "The label is red."})])
    events = [e async for e in build_service(settings, llm).respond_stream(Query("why is it red"))]

    assert events[0]["type"] == "step"
    assert events[-1] == {
        "type": "complete",
        "data": {
            "message": "The label is red.",
            "researchSteps": [
                {"id": "agent-iteration-1", "description": "ui-state: answered", "status": "completed"}
            ],
        },
    }


async def test_stream_reports_unexpected_failures(settings, make_llm):
    service = build_service(settings, make_llm(), router=ExplodingRouter())
    events = [e async for e in service.respond_stream(Query("anything"))]
    assert len(events) == 1
    assert events[0]["type"] == "complete"
    assert "router bug" in events[0]["data"]["message"]
