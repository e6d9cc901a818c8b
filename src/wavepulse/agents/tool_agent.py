"""Bounded JSON action loop over a tool registry (file-ops and ui-state agents)."""

from __future__ import annotations

import json
import re

from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.config.settings import Settings
from wavepulse.generation.prompt_templates import TOOL_AGENT_PROMPT
from wavepulse.models.domain import Query
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.llm import LLMProvider
from wavepulse.tools.registry import ToolContext, ToolRegistry

logger = get_logger("tool_agent")

MAX_ITERATIONS_MESSAGE = "Maximum iterations reached. Please try rephrasing your request."
HISTORY_TURNS = 10
RESULT_PREVIEW_CHARS = 4000
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_action(raw: str) -> dict | None:
    """Decode the model's JSON action, tolerating markdown fences and surrounding prose."""
    text = raw.strip()
    try:
        action = json.loads(text)
    except ValueError:
        match = _JSON_OBJECT.search(text)
        if match is None:
            return None
        try:
            action = json.loads(match.group(0))
        except ValueError:
            return None
    return action if isinstance(action, dict) else None


def format_history(query: Query) -> str:
    turns = query.history[-HISTORY_TURNS:]
    if not turns:
        return "(none)"
    return "\n".join(f"{t.role}: {t.content}" for t in turns)


class ToolAgent:
    def __init__(
        self,
        name: str,
        llm: LLMProvider,
        registry: ToolRegistry,
        settings: Settings,
        system_prompt: str,
    ) -> None:
        self._name = name
        self._llm = llm
        self._registry = registry
        self._settings = settings
        self._system = system_prompt

    @property
    def name(self) -> str:
        return self._name

    async def run(
        self,
        query: Query,
        tracker: ResearchStepTracker,
        use_deterministic_seed: bool | None = None,
    ) -> str:
        context = ToolContext(
            channel_id=query.channel_id,
            project_location=query.project_location
            or (self._settings.project_location(query.channel_id) if query.channel_id else None),
        )
        scratchpad: list[str] = []
        max_iterations = self._settings.tool_agent_max_iterations

        for n in range(1, max_iterations + 1):
            step_id = f"agent-iteration-{n}"
            tracker.update(step_id, f"{self._name}: deciding next step...", "in-progress")
            prompt = TOOL_AGENT_PROMPT.format(
                system=self._system,
                tools=self._registry.describe(),
                channel_id=context.channel_id or "(none)",
                project_location=context.project_location or "(none)",
                history=format_history(query),
                message=query.message,
                scratchpad="\n".join(scratchpad) or "(none)",
            )
            try:
                raw = await self._llm.generate(
                    prompt,
                    temperature=self._settings.gemini_temperature,
                    seed=self._settings.seed_for(use_deterministic_seed),
                    json_output=True,
                )
            except Exception as e:
                tracker.update(step_id, f"{self._name}: model call failed", "failed")
                logger.error("tool_agent_model_failed", agent=self._name, iteration=n, error=str(e))
                return f"Unable to complete the request: {e}"

            action = parse_action(raw)
            if action is None:
                # Prose instead of an action is taken as the final answer.
                tracker.update(step_id, f"{self._name}: answered", "completed")
                return raw.strip() or MAX_ITERATIONS_MESSAGE

            if action.get("action") == "final" or ("answer" in action and "tool" not in action):
                tracker.update(step_id, f"{self._name}: answered", "completed")
                logger.info("tool_agent_finished", agent=self._name, iterations=n)
                return str(action.get("answer") or "").strip() or "Done."

            tool = str(action.get("tool") or "")
            args = action.get("args") if isinstance(action.get("args"), dict) else {}
            tracker.update(step_id, f"{self._name}: calling {tool or 'unknown tool'}", "completed")

            tool_step = f"tool-{tool or 'unknown'}-{n}"
            tracker.update(tool_step, f"Running {tool}", "in-progress")
            result = await self._registry.execute(tool, args, context)
            tracker.update(
                tool_step,
                f"{tool}: {'done' if result.success else result.error}",
                "completed" if result.success else "failed",
            )
            payload = json.dumps(result.to_dict(), default=str)[:RESULT_PREVIEW_CHARS]
            scratchpad.append(f"{n}. {tool}({json.dumps(args)}) -> {payload}")

        logger.warning("tool_agent_max_iterations", agent=self._name, iterations=max_iterations)
        return MAX_ITERATIONS_MESSAGE
