"""Query intent/domain classification and sub-agent selection, model-first with a parser fallback."""

from __future__ import annotations

import json
import re

from wavepulse.agents.registry import DOMAIN_TO_AGENT, SUB_AGENTS, SUB_AGENTS_BY_NAME
from wavepulse.config.constants import (
    CODEGEN_DOMAINS,
    DEFAULT_SUB_AGENT,
    RUNTIME_DOMAINS,
    VALID_BASE_PATHS,
    VALID_DEPTHS,
    VALID_DOMAINS,
    VALID_INTENTS,
)
from wavepulse.config.settings import Settings
from wavepulse.generation.prompt_templates import QUERY_ANALYSIS_PROMPT, QUERY_ANALYSIS_SYSTEM
from wavepulse.models.domain import QueryAnalysis
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.llm import LLMProvider
from wavepulse.query.keywords import extract_keywords

logger = get_logger("query_analyzer")

MODEL_CONFIDENCE = 0.9
PARSER_CONFIDENCE = 0.7

_DOMAIN_PATTERNS = (
    ("base", re.compile(r"basecomponent|base component|lifecycle|core infrastructure|propsprovider|props provider")),
    ("component", re.compile(r"\b(component|widget|button|list|form)\b")),
    ("service", re.compile(r"\b(service|navigation|modal|toast|storage)\b")),
    ("binding", re.compile(r"\b(binding|watcher|watch|two-way|one-way)\b")),
    ("variable", re.compile(r"\b(variable|livevariable|servicevariable)\b")),
    ("style", re.compile(r"\b(style|theme|css|less|styling)\b")),
    ("styledefinition", re.compile(r"class name|style definition|styledef|rnstyleselector")),
    ("transpiler", re.compile(r"\b(transpile|transformer|codegen|generate)\b")),
)


def resolve_base_path(domains: list[str] | tuple[str, ...]) -> str:
    has_codegen = any(d in CODEGEN_DOMAINS for d in domains)
    has_runtime = any(d in RUNTIME_DOMAINS for d in domains)
    if has_codegen and not has_runtime:
        return "codegen"
    if has_runtime and not has_codegen:
        return "runtime"
    return "both"


class QueryParser:
    """Deterministic keyword-based analysis used when the model is unavailable."""

    def analyze(self, query: str) -> QueryAnalysis:
        domains = self.identify_domains(query)
        return QueryAnalysis(
            intent=self.detect_intent(query),
            domain=tuple(domains),
            sub_agents=tuple(self.select_sub_agents(query, domains)),
            base_path=resolve_base_path(domains),
            analysis_depth=self.determine_depth(query),
            keywords=tuple(extract_keywords(query)),
            requires_validation=self.requires_validation(query),
            confidence=PARSER_CONFIDENCE,
            method="parser",
        )

    @staticmethod
    def detect_intent(query: str) -> str:
        q = query.lower()
        for intent in ("how", "why", "what", "where"):
            if intent in q:
                return intent
        if "compare" in q or "difference" in q:
            return "compare"
        return "general"

    @staticmethod
    def identify_domains(query: str) -> list[str]:
        q = query.lower()
        domains = [name for name, pattern in _DOMAIN_PATTERNS if pattern.search(q)]
        return domains or ["general"]

    @staticmethod
    def select_sub_agents(query: str, domains: list[str]) -> list[str]:
        q = query.lower()
        agents = [DOMAIN_TO_AGENT[d] for d in domains if d in DOMAIN_TO_AGENT]
        if "basecomponent" in q or "base component" in q:
            agents.append("BaseAgent")
        if "data flow" in q or "data binding" in q:
            agents.append("BindingAgent")
        if any(k in q for k in ("class name", "style definition", "styledef", "rnstyleselector", "style element")) or (
            "style" in q and ("icon" in q or "element" in q)
        ):
            agents.append("StyleDefinitionAgent")
        return list(dict.fromkeys(agents)) or [DEFAULT_SUB_AGENT]

    @staticmethod
    def determine_depth(query: str) -> str:
        q = query.lower()
        if any(w in q for w in ("deep", "detailed", "comprehensive")):
            return "comprehensive"
        if "quick" in q or "simple" in q:
            return "shallow"
        return "deep"

    @staticmethod
    def requires_validation(query: str) -> bool:
        q = query.lower()
        return any(w in q for w in ("verify", "validate", "check", "ensure"))


def _as_list(value) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value if v]
    if value:
        return [str(value)]
    return []


def extract_structured_data(text: str) -> dict:
    """Best-effort analysis from a model answer that was not valid JSON."""
    lowered = text.lower()
    intent = next((i for i in ("how", "why", "what", "where", "compare") if i in lowered), "general")
    domains: list[str] = []
    agents: list[str] = []
    for domain, words, agent in (
        ("base", ("basecomponent", "base component", "lifecycle"), "BaseAgent"),
        ("component", ("component", "widget"), "ComponentAgent"),
        ("service", ("service",), "ServiceAgent"),
        ("style", ("style", "theme"), "StyleAgent"),
    ):
        if any(w in lowered for w in words):
            domains.append(domain)
            agents.append(agent)
    if not agents:
        domains, agents = ["base"], [DEFAULT_SUB_AGENT]
    keywords = list(dict.fromkeys(re.findall(r"\b[A-Z][a-z]+\w+\b", text)))[:10]
    return {"intent": intent, "domain": domains, "subAgents": agents, "keywords": keywords}


class QueryAnalyzer:
    def __init__(self, llm: LLMProvider, settings: Settings, parser: QueryParser | None = None) -> None:
        self._llm = llm
        self._settings = settings
        self._parser = parser or QueryParser()
        self._system = QUERY_ANALYSIS_SYSTEM.format(
            domains=", ".join(VALID_DOMAINS),
            agents="\n".join(f"- {s.name}: {', '.join(s.domain)}" for s in SUB_AGENTS),
        )

    async def analyze(self, query: str, use_deterministic_seed: bool | None = None) -> QueryAnalysis:
        try:
            raw = await self._llm.generate(
                QUERY_ANALYSIS_PROMPT.format(query=query),
                system=self._system,
                temperature=0.1,
                seed=self._settings.seed_for(use_deterministic_seed),
                json_output=True,
            )
        except Exception as e:
            logger.warning("analysis_model_failed", error=str(e))
            return self._fallback(query)

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("analysis_json_invalid", preview=raw[:200])
            data = extract_structured_data(raw)
        if not isinstance(data, dict):
            return self._fallback(query)

        analysis = self._normalize(data, query)
        if not self._is_valid(analysis):
            logger.warning("analysis_validation_failed", intent=analysis.intent, agents=analysis.sub_agents)
            return self._fallback(query)

        logger.info(
            "query_analyzed",
            method="model",
            intent=analysis.intent,
            sub_agents=list(analysis.sub_agents),
            base_path=analysis.base_path,
        )
        return analysis

    def _fallback(self, query: str) -> QueryAnalysis:
        analysis = self._parser.analyze(query)
        logger.info(
            "query_analyzed",
            method="parser",
            intent=analysis.intent,
            sub_agents=list(analysis.sub_agents),
            base_path=analysis.base_path,
        )
        return analysis

    @staticmethod
    def _normalize(data: dict, query: str) -> QueryAnalysis:
        domains = _as_list(data.get("domain")) or ["general"]
        agents = _as_list(data.get("subAgents")) or [DEFAULT_SUB_AGENT]
        keywords = _as_list(data.get("keywords")) or extract_keywords(query)
        return QueryAnalysis(
            intent=str(data.get("intent") or "general"),
            domain=tuple(domains),
            sub_agents=tuple(dict.fromkeys(agents)),
            base_path=data.get("basePath") or resolve_base_path(domains),
            analysis_depth=data.get("analysisDepth") or "deep",
            keywords=tuple(keywords),
            requires_validation=bool(data.get("requiresValidation", False)),
            confidence=MODEL_CONFIDENCE,
            method="model",
            reasoning=data.get("reasoning"),
        )

    @staticmethod
    def _is_valid(analysis: QueryAnalysis) -> bool:
        return (
            analysis.intent in VALID_INTENTS
            and bool(analysis.domain)
            and all(d in VALID_DOMAINS for d in analysis.domain)
            and bool(analysis.sub_agents)
            and all(a in SUB_AGENTS_BY_NAME for a in analysis.sub_agents)
            and analysis.base_path in VALID_BASE_PATHS
            and analysis.analysis_depth in VALID_DEPTHS
        )
