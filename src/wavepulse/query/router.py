"""Top-level routing of a chat turn to the UI-state, file-ops or codebase agent."""

from __future__ import annotations

from enum import Enum

from wavepulse.config.constants import CODEBASE_KEYWORDS, UI_STATE_KEYWORDS
from wavepulse.config.settings import Settings
from wavepulse.generation.prompt_templates import ROUTER_AGENT_DESCRIPTIONS, ROUTER_PROMPT
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.llm import LLMProvider

logger = get_logger("router")


class RouteCategory(str, Enum):
    UI_STATE = "ui-state"
    FILE_OPS = "file-ops"
    CODEBASE = "codebase"


# Checked in this order; older clients answer with the long agent names.
_DECISION_TOKENS = (
    (RouteCategory.UI_STATE, ("ui-state", "information-retrieval")),
    (RouteCategory.FILE_OPS, ("file-ops", "file-operations")),
    (RouteCategory.CODEBASE, ("codebase",)),
)


class QueryRouter:
    def __init__(self, llm: LLMProvider, settings: Settings) -> None:
        self._llm = llm
        self._settings = settings
        if settings.router_mode == "two_way":
            self._categories = (RouteCategory.UI_STATE, RouteCategory.FILE_OPS)
        else:
            self._categories = tuple(RouteCategory)

    @property
    def categories(self) -> tuple[RouteCategory, ...]:
        return self._categories

    async def route(self, message: str, use_deterministic_seed: bool = True) -> RouteCategory:
        prompt = ROUTER_PROMPT.format(
            agent_descriptions="\n\n".join(
                f"{i}. {ROUTER_AGENT_DESCRIPTIONS[c.value]}"
                for i, c in enumerate(self._categories, start=1)
            ),
            message=message,
            tokens=", ".join(f'"{c.value}"' for c in self._categories),
        )
        try:
            raw = await self._llm.generate(
                prompt,
                temperature=0.1,
                max_tokens=16,
                seed=self._settings.seed_for(use_deterministic_seed),
            )
        except Exception as e:
            logger.warning("router_model_failed", error=str(e))
            return self.heuristic_route(message)

        category = self.parse_decision(raw)
        if category is None:
            logger.warning("router_unrecognized_decision", decision=raw[:100])
            return self.heuristic_route(message)
        logger.info("query_routed", category=category.value, method="model")
        return category

    def parse_decision(self, text: str) -> RouteCategory | None:
        decision = text.strip().lower()
        for category, tokens in _DECISION_TOKENS:
            if category in self._categories and any(t in decision for t in tokens):
                return category
        return None

    def heuristic_route(self, message: str) -> RouteCategory:
        lowered = message.lower()
        if RouteCategory.CODEBASE in self._categories and any(
            k in lowered for k in CODEBASE_KEYWORDS
        ):
            category = RouteCategory.CODEBASE
        elif any(k in lowered for k in UI_STATE_KEYWORDS):
            category = RouteCategory.UI_STATE
        else:
            category = RouteCategory.FILE_OPS
        logger.info("query_routed", category=category.value, method="heuristic")
        return category
