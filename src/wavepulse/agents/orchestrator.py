"""Fan-out of a query to the selected sub-agents and aggregation of their answers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from wavepulse.agents.registry import SUB_AGENTS, SubAgentDefinition
from wavepulse.agents.sub_agent import SubAgent, SubAgentContext
from wavepulse.config.settings import Settings
from wavepulse.exceptions import AnalysisError
from wavepulse.models.domain import AgentResponse, CrossReference, FileSource, ResponseSection
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.llm import LLMProvider
from wavepulse.tools.file_system import FileSystemTools

logger = get_logger("orchestrator")

INCONSISTENCY_FACTOR = 0.8


@dataclass
class ConsistencyReport:
    consistent: bool = True
    inconsistencies: list[dict] = field(default_factory=list)
    agreements: list[dict] = field(default_factory=list)


def merge_sources(responses: list[AgentResponse]) -> list[FileSource]:
    seen: set[str] = set()
    merged = []
    for response in responses:
        for source in response.sources:
            if source.path not in seen:
                seen.add(source.path)
                merged.append(source)
    return merged


def library_cross_references(paths: list[str]) -> list[CrossReference]:
    """Pairwise 'uses' edges from runtime files to codegen files."""
    references = []
    for i, first in enumerate(paths):
        for second in paths[i + 1 :]:
            if "runtime" in first and "codegen" in second:
                references.append(
                    CrossReference(first, second, "uses", "Runtime uses codegen generated code")
                )
    return references


def check_consistency(results: list[tuple[str, AgentResponse]]) -> ConsistencyReport:
    report = ConsistencyReport()
    for i, (first_name, first) in enumerate(results):
        for second_name, second in results[i + 1 :]:
            common = {s.path for s in first.sources} & {s.path for s in second.sources}
            if common:
                report.agreements.append(
                    {
                        "agents": [first_name, second_name],
                        "points": [f"Both reference {len(common)} common file(s)"],
                    }
                )
    report.consistent = not report.inconsistencies
    return report


class SubAgentOrchestrator:
    def __init__(
        self,
        llm: LLMProvider,
        fs: FileSystemTools,
        settings: Settings,
        definitions: tuple[SubAgentDefinition, ...] = SUB_AGENTS,
    ) -> None:
        self._agents = {
            definition.name: SubAgent(definition, llm, fs, settings) for definition in definitions
        }

    @property
    def agent_names(self) -> list[str]:
        return list(self._agents)

    async def execute(
        self, query: str, agent_names: list[str], context: SubAgentContext
    ) -> AgentResponse:
        if len(agent_names) == 1:
            return await self._execute_single(query, agent_names[0], context)
        return await self._execute_multiple(query, agent_names, context)

    async def _execute_single(
        self, query: str, name: str, context: SubAgentContext
    ) -> AgentResponse:
        step_id = f"sub-agent-{name}"
        tracker = context.tracker
        tracker.update(step_id, f"{name}: Processing query...", "in-progress")

        agent = self._agents.get(name)
        if agent is None:
            tracker.update(step_id, f"{name}: Agent {name} not found", "failed")
            raise AnalysisError(f"Agent {name} not found")

        try:
            response = await agent.process(query, context)
        except Exception as e:
            tracker.update(step_id, f"{name}: Error executing {name}: {e}", "failed")
            raise
        tracker.update(step_id, f"{name}: Analysis complete", "completed")
        return response

    async def _execute_multiple(
        self, query: str, agent_names: list[str], context: SubAgentContext
    ) -> AgentResponse:
        tracker = context.tracker
        for name in agent_names:
            tracker.update(f"sub-agent-{name}", f"{name}: Queued for execution...", "pending")

        async def run(name: str) -> tuple[str, AgentResponse] | None:
            step_id = f"sub-agent-{name}"
            agent = self._agents.get(name)
            if agent is None:
                tracker.update(step_id, f"{name}: Agent not found", "failed")
                return None
            tracker.update(step_id, f"{name}: Processing query...", "in-progress")
            try:
                response = await agent.process(query, context)
            except Exception as e:
                tracker.update(step_id, f"{name}: {e}", "failed")
                return None
            tracker.update(step_id, f"{name}: Analysis complete", "completed")
            return name, response

        outcomes = await asyncio.gather(*(run(name) for name in agent_names))
        results = [r for r in outcomes if r is not None]
        if not results:
            raise AnalysisError(f"All {len(agent_names)} sub-agents failed")

        aggregated = self.aggregate(results, query)
        report = check_consistency(results)
        average = sum(r.confidence for _, r in results) / len(results)
        aggregated.confidence = average if report.consistent else average * INCONSISTENCY_FACTOR

        logger.info(
            "sub_agents_aggregated",
            requested=len(agent_names),
            succeeded=len(results),
            agreements=len(report.agreements),
            confidence=round(aggregated.confidence, 3),
        )
        return aggregated

    @staticmethod
    def aggregate(results: list[tuple[str, AgentResponse]], query: str) -> AgentResponse:
        sections = []
        insights: list[str] = []
        references: list[CrossReference] = []
        for name, response in results:
            sections.append(
                ResponseSection(
                    title=f"{name} Analysis",
                    content=response.body_text(),
                    agent=name,
                    sources=list(response.sources),
                )
            )
            insights.extend(response.insights)
            references.extend(response.cross_references)

        sources = merge_sources([r for _, r in results])
        references.extend(library_cross_references([s.path for s in sources]))
        return AgentResponse(
            summary=(
                f'Analysis of "{query}" across {len(sections)} specialized agent(s). '
                "Each agent provides domain-specific insights and code examples."
            ),
            sections=sections,
            insights=insights,
            sources=sources,
            cross_references=references,
        )
