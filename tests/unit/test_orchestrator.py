"""Tests for sub-agent fan-out and aggregation."""

import pytest

from wavepulse.agents.orchestrator import (
    SubAgentOrchestrator,
    check_consistency,
    library_cross_references,
    merge_sources,
)
from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.sub_agent import SubAgentContext
from wavepulse.exceptions import AnalysisError, GenerationError
from wavepulse.models.domain import AgentResponse, FileSource

QUERY = "How does the button lifecycle work?"


def context_for(root) -> SubAgentContext:
    return SubAgentContext(tracker=ResearchStepTracker(), base_path=str(root))


def test_merge_sources_dedupes_by_path():
    first = AgentResponse(sources=[FileSource("/a.ts", 1, 3), FileSource("/b.ts")])
    second = AgentResponse(sources=[FileSource("/b.ts", 1, 9), FileSource("/c.ts")])
    merged = merge_sources([first, second])
    assert [s.path for s in merged] == ["/a.ts", "/b.ts", "/c.ts"]
    assert merged[1].line_end is None


def test_library_cross_references_point_runtime_to_codegen():
    refs = library_cross_references(["/p/runtime/a.ts", "/p/codegen/b.ts"])
    assert [(r.source, r.target, r.type) for r in refs] == [("/p/runtime/a.ts", "/p/codegen/b.ts", "uses")]
    assert library_cross_references(["/p/codegen/b.ts", "/p/runtime/a.ts"]) == []


def test_check_consistency_records_shared_files():
    a = AgentResponse(sources=[FileSource("/x.ts")])
    b = AgentResponse(sources=[FileSource("/x.ts"), FileSource("/y.ts")])
    report = check_consistency([("A", a), ("B", b)])
    assert report.consistent
    assert report.agreements == [{"agents": ["A", "B"], "points": ["Both reference 1 common file(s)"]}]


async def test_single_agent_response_is_returned_as_is(settings, make_llm, local_fs, runtime_root):
    llm = make_llm(default="BaseComponent answer")
    context = context_for(runtime_root)
    response = await SubAgentOrchestrator(llm, local_fs, settings).execute(QUERY, ["BaseAgent"], context)

    assert response.agent == "BaseAgent"
    assert response.text == "BaseComponent answer"
    assert context.tracker.get("sub-agent-BaseAgent").status == "completed"


async def test_unknown_single_agent_fails(settings, make_llm, local_fs, runtime_root):
    context = context_for(runtime_root)
    with pytest.raises(AnalysisError, match="Agent NopeAgent not found"):
        await SubAgentOrchestrator(make_llm(), local_fs, settings).execute(QUERY, ["NopeAgent"], context)
    assert context.tracker.get("sub-agent-NopeAgent").status == "failed"


async def test_multiple_agents_are_aggregated(settings, make_llm, local_fs, runtime_root):
    llm = make_llm(
        [
            ("You are the BaseAgent", "Lifecycle lives in BaseComponent."),
            ("You are the ComponentAgent", "WmButton extends BaseComponent."),
        ]
    )
    context = context_for(runtime_root)
    response = await SubAgentOrchestrator(llm, local_fs, settings).execute(
        QUERY, ["BaseAgent", "ComponentAgent"], context
    )

    assert [s.title for s in response.sections] == ["BaseAgent Analysis", "ComponentAgent Analysis"]
    assert response.sections[0].content == "Lifecycle lives in BaseComponent."
    assert response.summary == (
        f'Analysis of "{QUERY}" across 2 specialized agent(s). '
        "Each agent provides domain-specific insights and code examples."
    )
    paths = [s.path for s in response.sources]
    assert len(paths) == len(set(paths))
    assert response.confidence == pytest.approx(0.9)
    for name in ("BaseAgent", "ComponentAgent"):
        assert context.tracker.get(f"sub-agent-{name}").status == "completed"


async def test_partial_failure_keeps_successful_agents(settings, make_llm, local_fs, runtime_root):
    llm = make_llm(
        [
            ("You are the BaseAgent", "Lifecycle lives in BaseComponent."),
            ("You are the ComponentAgent", GenerationError("quota")),
        ]
    )
    context = context_for(runtime_root)
    response = await SubAgentOrchestrator(llm, local_fs, settings).execute(
        QUERY, ["BaseAgent", "ComponentAgent"], context
    )
    assert [s.agent for s in response.sections] == ["BaseAgent"]
    assert context.tracker.get("sub-agent-ComponentAgent").status == "failed"


async def test_all_agents_failing_raises(settings, make_llm, local_fs, runtime_root):
    llm = make_llm(default=GenerationError("quota"))
    with pytest.raises(AnalysisError):
        await SubAgentOrchestrator(llm, local_fs, settings).execute(
            QUERY, ["BaseAgent", "ComponentAgent"], context_for(runtime_root)
        )
