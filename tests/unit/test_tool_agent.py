"""Tests for the tool registry and the JSON action loop."""

import json

from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.tool_agent import MAX_ITERATIONS_MESSAGE, ToolAgent, format_history, parse_action
from wavepulse.exceptions import GenerationError
from wavepulse.models.domain import ChatTurn, Query, ToolResult
from wavepulse.tools.registry import Tool, ToolContext, ToolRegistry, build_file_tools


def echo_registry(calls: list) -> ToolRegistry:
    def echo(args, context):
        calls.append((args, context))
        return ToolResult(True, output=args["text"])

    return ToolRegistry([Tool("echo", "Echo text back.", echo, {"text": "text to echo"}, ("text",))])


def test_parse_action_tolerates_fences_and_prose():
    assert parse_action('{"action": "final", "answer": "hi"}') == {"action": "final", "answer": "hi"}
    assert parse_action('```json\n{"action": "tool", "tool": "x"}\n```') == {"action": "tool", "tool": "x"}
    assert parse_action("no json here") is None
    assert parse_action("[1, 2]") is None


def test_format_history_keeps_last_ten_turns():
    turns = tuple(ChatTurn("user", f"m{i}") for i in range(12))
    text = format_history(Query("x", history=turns))
    assert text.splitlines()[0] == "user: m2"
    assert format_history(Query("x")) == "(none)"


def test_registry_describes_required_and_optional_parameters():
    registry = ToolRegistry(build_file_tools(fs=None, read_only=True))
    assert registry.names == ["read_file", "grep_files", "find_files", "list_directory"]
    assert "- read_file(path: file path" in registry.describe()
    assert "directory?: directory to search" in registry.describe()


async def test_registry_rejects_unknown_tools_and_missing_arguments():
    registry = echo_registry([])
    unknown = await registry.execute("nope", {}, ToolContext())
    assert not unknown.success
    assert unknown.error == "Unknown tool: nope. Available: echo"
    missing = await registry.execute("echo", {}, ToolContext())
    assert missing.error == "Missing required argument(s) for echo: text"


async def test_registry_turns_handler_crash_into_failed_result(local_fs):
    registry = ToolRegistry(build_file_tools(local_fs))
    result = await registry.execute(
        "edit_file", {"filePath": ["/tmp/a.ts"], "searchText": "x"}, ToolContext()
    )
    assert not result.success
    assert result.error.startswith("edit_file failed: ")


async def test_agent_continues_after_tool_crash(settings, make_llm):
    def explode(args, context):
        raise KeyError("filePath")

    registry = ToolRegistry([Tool("explode", "always fails", explode)])
    llm = make_llm(
        queue=[
            json.dumps({"action": "tool", "tool": "explode", "args": {}}),
            json.dumps({"action": "final", "answer": "Retried with a valid path."}),
        ]
    )
    tracker = ResearchStepTracker()

    answer = await ToolAgent("file-ops", llm, registry, settings, "s").run(Query("edit"), tracker)

    assert answer == "Retried with a valid path."
    assert tracker.get("tool-explode-1").status == "failed"
    assert "explode failed" in llm.calls[1]["prompt"]


async def test_tool_then_final_answer(settings, make_llm):
    calls = []
    llm = make_llm(
        queue=[
            json.dumps({"action": "tool", "tool": "echo", "args": {"text": "ping"}}),
            json.dumps({"action": "final", "answer": "Echoed ping."}),
        ]
    )
    tracker = ResearchStepTracker()
    agent = ToolAgent("file-ops", llm, echo_registry(calls), settings, "system")

    answer = await agent.run(Query("echo ping", channel_id="chan-1"), tracker)

    assert answer == "Echoed ping."
    assert calls[0][0] == {"text": "ping"}
    assert calls[0][1].project_location == settings.project_location("chan-1")
    assert [s.id for s in tracker.steps] == ["agent-iteration-1", "tool-echo-1", "agent-iteration-2"]
    assert all(s.status == "completed" for s in tracker.steps)
    assert '"output": "ping"' in llm.calls[1]["prompt"]


async def test_prose_answer_is_final(settings, make_llm):
    agent = ToolAgent("ui-state", make_llm(default="The button is blue."), echo_registry([]), settings, "s")
    assert await agent.run(Query("what color"), ResearchStepTracker()) == "The button is blue."


async def test_failed_tool_is_reported_and_loop_continues(settings, make_llm):
    llm = make_llm(
        [("Tool calls made so far:\n(none)", json.dumps({"action": "tool", "tool": "missing"}))],
        default=json.dumps({"action": "final", "answer": "Could not do it."}),
    )
    tracker = ResearchStepTracker()
    answer = await ToolAgent("file-ops", llm, echo_registry([]), settings, "s").run(Query("x"), tracker)
    assert answer == "Could not do it."
    assert tracker.get("tool-missing-1").status == "failed"


async def test_iteration_limit(settings, make_llm):
    settings.tool_agent_max_iterations = 3
    llm = make_llm(default=json.dumps({"action": "tool", "tool": "echo", "args": {"text": "again"}}))
    answer = await ToolAgent("file-ops", llm, echo_registry([]), settings, "s").run(
        Query("loop"), ResearchStepTracker()
    )
    assert answer == MAX_ITERATIONS_MESSAGE
    assert len(llm.calls) == 3


async def test_model_failure_ends_the_run(settings, make_llm):
    tracker = ResearchStepTracker()
    llm = make_llm(default=GenerationError("quota"))
    answer = await ToolAgent("file-ops", llm, echo_registry([]), settings, "s").run(Query("x"), tracker)
    assert answer == "Unable to complete the request: quota"
    assert tracker.get("agent-iteration-1").status == "failed"
