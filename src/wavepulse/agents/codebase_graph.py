"""LangGraph pipeline answering questions about the WaveMaker React Native libraries.

query-analyzer -> file-discovery -> code-analysis -> sub-agent-execution
    -> response-validation -> final-response

Every node reports its research step, and a node that fails records an
OrchestrationError and hands degraded (possibly empty) state to the next
node. Nothing inside the graph raises past a node boundary.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Annotated, TypedDict

from langgraph.graph import END, START, StateGraph

from wavepulse.agents.orchestrator import SubAgentOrchestrator
from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.sub_agent import SubAgentContext
from wavepulse.analysis.code_analysis import CodeAnalysisEngine
from wavepulse.config.settings import Settings
from wavepulse.discovery.file_discovery import FileDiscoveryEngine
from wavepulse.generation.response_formatter import ResponseFormatter
from wavepulse.models.domain import (
    AgentResponse,
    CodeAnalysis,
    FileMatch,
    OrchestrationError,
    Query,
    QueryAnalysis,
    ResearchStep,
    ValidationIssue,
    ValidationResult,
)
from wavepulse.observability.logger import get_logger
from wavepulse.observability.tracing import TraceContext
from wavepulse.protocols.progress import ProgressSink
from wavepulse.query.analyzer import QueryAnalyzer
from wavepulse.verification.response_validator import ResponseValidator

logger = get_logger("codebase_graph")

NO_RESPONSE_MESSAGE = (
    "Unable to generate response. No aggregated response from sub-agents. "
    "Please try rephrasing your query."
)


class CodebaseState(TypedDict, total=False):
    query: Query
    use_deterministic_seed: bool | None
    tracker: ResearchStepTracker
    trace: TraceContext
    analysis: QueryAnalysis | None
    discovered_files: list[FileMatch]
    code_analysis: CodeAnalysis
    aggregated: AgentResponse | None
    validation: ValidationResult | None
    final_response: str
    errors: Annotated[list[OrchestrationError], operator.add]


@dataclass
class CodebaseResult:
    message: str
    research_steps: list[ResearchStep]
    errors: list[OrchestrationError] = field(default_factory=list)
    analysis: QueryAnalysis | None = None
    code_analysis: CodeAnalysis | None = None
    validation: ValidationResult | None = None
    trace: dict = field(default_factory=dict)


class CodebaseAgent:
    def __init__(
        self,
        analyzer: QueryAnalyzer,
        discovery: FileDiscoveryEngine,
        code_analysis: CodeAnalysisEngine,
        orchestrator: SubAgentOrchestrator,
        validator: ResponseValidator,
        formatter: ResponseFormatter,
        settings: Settings,
    ) -> None:
        self._analyzer = analyzer
        self._discovery = discovery
        self._code_analysis = code_analysis
        self._orchestrator = orchestrator
        self._validator = validator
        self._formatter = formatter
        self._settings = settings
        self._graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(CodebaseState)
        graph.add_node("query-analyzer", self._analyze_query)
        graph.add_node("file-discovery", self._discover_files)
        graph.add_node("code-analysis", self._analyze_code)
        graph.add_node("sub-agent-execution", self._execute_sub_agents)
        graph.add_node("response-validation", self._validate_response)
        graph.add_node("final-response", self._final_response)

        graph.add_edge(START, "query-analyzer")
        graph.add_edge("query-analyzer", "file-discovery")
        graph.add_edge("file-discovery", "code-analysis")
        graph.add_edge("code-analysis", "sub-agent-execution")
        graph.add_edge("sub-agent-execution", "response-validation")
        graph.add_edge("response-validation", "final-response")
        graph.add_edge("final-response", END)
        return graph.compile()

    async def run(
        self,
        query: Query,
        sink: ProgressSink | None = None,
        use_deterministic_seed: bool | None = None,
    ) -> CodebaseResult:
        """Run the graph and emit exactly one ``complete`` event."""
        tracker = ResearchStepTracker(sink)
        trace = TraceContext()
        initial: CodebaseState = {
            "query": query,
            "use_deterministic_seed": use_deterministic_seed,
            "tracker": tracker,
            "trace": trace,
            "analysis": None,
            "discovered_files": [],
            "code_analysis": CodeAnalysis(),
            "aggregated": None,
            "validation": None,
            "final_response": "",
            "errors": [],
        }
        try:
            final = await self._graph.ainvoke(initial)
        except Exception as e:
            logger.error("graph_failed", error=str(e))
            tracker.fail_in_progress()
            final = {
                **initial,
                "final_response": f"An error occurred while answering the query: {e}",
                "errors": [OrchestrationError("graph", str(e), "Return error message")],
            }

        message = final.get("final_response") or NO_RESPONSE_MESSAGE
        tracker.complete(message)
        summary = trace.summary()
        logger.info(
            "graph_completed",
            steps=len(tracker.steps),
            errors=len(final.get("errors", [])),
            **summary,
        )
        return CodebaseResult(
            message=message,
            research_steps=tracker.steps,
            errors=list(final.get("errors", [])),
            analysis=final.get("analysis"),
            code_analysis=final.get("code_analysis"),
            validation=final.get("validation"),
            trace=summary,
        )

    # Nodes

    async def _analyze_query(self, state: CodebaseState) -> dict:
        tracker = state["tracker"]
        tracker.update("query-analyzer", "Analyzing query intent and domain...", "in-progress")
        with state["trace"].span("query_analyzer"):
            try:
                analysis = await self._analyzer.analyze(
                    state["query"].message, state.get("use_deterministic_seed")
                )
            except Exception as e:
                message = f"Query analysis failed: {e}"
                tracker.update("query-analyzer", message, "failed")
                return {
                    "analysis": None,
                    "errors": [OrchestrationError("query-analyzer", message, "Retry with parser fallback")],
                }
        tracker.update(
            "query-analyzer",
            f"Query analysis complete: {', '.join(analysis.sub_agents) or 'no sub-agents'}",
            "completed",
        )
        return {"analysis": analysis}

    async def _discover_files(self, state: CodebaseState) -> dict:
        tracker = state["tracker"]
        analysis = state.get("analysis")
        query = state["query"]
        if analysis is None or not analysis.sub_agents or not query.channel_id:
            message = "Missing query analysis or channelId"
            tracker.update("file-discovery", f"Skipped: {message}", "failed")
            return {
                "discovered_files": [],
                "errors": [OrchestrationError("file-discovery", message, "Continue with empty file list")],
            }

        tracker.update("file-discovery", "Discovering relevant files...", "in-progress")
        with state["trace"].span("file_discovery") as span:
            try:
                files = await self._discovery.discover(
                    query.message,
                    analysis.domain,
                    self._settings.library_root(query.channel_id, analysis.base_path),
                )
            except Exception as e:
                message = f"File discovery failed: {e}"
                tracker.update("file-discovery", message, "failed")
                return {
                    "discovered_files": [],
                    "errors": [OrchestrationError("file-discovery", message, "Continue with empty file list")],
                }
            span.metadata["files"] = len(files)
        tracker.update("file-discovery", f"Found {len(files)} relevant files", "completed")
        return {"discovered_files": files}

    async def _analyze_code(self, state: CodebaseState) -> dict:
        tracker = state["tracker"]
        files = state.get("discovered_files") or []
        tracker.update("code-analysis", "Analyzing code structure...", "in-progress")
        if not files:
            tracker.update("code-analysis", "No files to analyze", "completed")
            return {"code_analysis": CodeAnalysis()}

        with state["trace"].span("code_analysis"):
            try:
                analysis = await self._code_analysis.analyze(files, state["query"].message)
            except Exception as e:
                message = f"Code analysis failed: {e}"
                tracker.update("code-analysis", message, "failed")
                return {
                    "code_analysis": CodeAnalysis(),
                    "errors": [OrchestrationError("code-analysis", message, "Continue without deep analysis")],
                }
        tracker.update("code-analysis", f"Analyzed {len(analysis.files)} files", "completed")
        return {"code_analysis": analysis}

    async def _execute_sub_agents(self, state: CodebaseState) -> dict:
        tracker = state["tracker"]
        analysis = state.get("analysis")
        query = state["query"]
        if analysis is None or not analysis.sub_agents:
            message = "No sub-agents selected"
            tracker.update("sub-agent-execution", message, "failed")
            return {
                "aggregated": None,
                "errors": [OrchestrationError("sub-agent-execution", message, "Ask the user to clarify the query")],
            }

        tracker.update(
            "sub-agent-execution",
            f"Executing {len(analysis.sub_agents)} sub-agent(s)...",
            "in-progress",
        )
        code_analysis = state.get("code_analysis") or CodeAnalysis()
        # The orchestrator works on its own copy of the steps; merged back by id.
        inner = tracker.fork()
        context = SubAgentContext(
            tracker=inner,
            base_path=(
                self._settings.library_root(query.channel_id, analysis.base_path)
                if query.channel_id
                else None
            ),
            project_location=query.project_location
            or (self._settings.project_location(query.channel_id) if query.channel_id else None),
            discovered=list(state.get("discovered_files") or []),
            code_analysis=code_analysis,
            use_deterministic_seed=state.get("use_deterministic_seed"),
        )
        with state["trace"].span("sub_agent_execution", agents=len(analysis.sub_agents)):
            try:
                response = await self._orchestrator.execute(
                    query.message, list(analysis.sub_agents), context
                )
            except Exception as e:
                tracker.merge(inner.steps)
                message = f"Sub-agent execution failed: {e}"
                tracker.update("sub-agent-execution", message, "failed")
                return {
                    "aggregated": None,
                    "errors": [OrchestrationError("sub-agent-execution", message, "Return partial response")],
                }
        tracker.merge(inner.steps)
        tracker.update("sub-agent-execution", "Sub-agent execution complete", "completed")
        if code_analysis.insights:
            response.insights = list(dict.fromkeys([*response.insights, *code_analysis.insights]))
        return {"aggregated": response}

    async def _validate_response(self, state: CodebaseState) -> dict:
        aggregated = state.get("aggregated")
        if aggregated is None:
            return {}
        tracker = state["tracker"]
        tracker.update("response-validation", "Validating response...", "in-progress")
        with state["trace"].span("response_validation"):
            try:
                validation = await self._validator.validate(aggregated, state["query"].message)
            except Exception as e:
                message = f"Validation failed: {e}"
                tracker.update("response-validation", message, "failed")
                return {
                    "validation": ValidationResult(
                        valid=False,
                        issues=[ValidationIssue("consistency", "warning", message)],
                        confidence=0.0,
                    ),
                    "errors": [OrchestrationError("response-validation", message, "Skip validation")],
                }
        tracker.update(
            "response-validation",
            f"Validation complete ({len(validation.issues)} issue(s))",
            "completed",
        )
        return {"validation": validation}

    async def _final_response(self, state: CodebaseState) -> dict:
        tracker = state["tracker"]
        aggregated = state.get("aggregated")
        if aggregated is None:
            tracker.fail_in_progress()
            tracker.update("final-response", "No response available", "failed")
            return {"final_response": NO_RESPONSE_MESSAGE}

        tracker.update("final-response", "Generating final response...", "in-progress")
        with state["trace"].span("final_response"):
            try:
                text = await self._formatter.format(
                    aggregated,
                    state["query"].message,
                    state.get("validation"),
                    state.get("use_deterministic_seed"),
                )
            except Exception as e:
                message = f"Final response generation failed: {e}"
                tracker.update("final-response", message, "failed")
                return {
                    "final_response": aggregated.body_text() or NO_RESPONSE_MESSAGE,
                    "errors": [OrchestrationError("final-response", message, "Return unformatted response")],
                }
        tracker.update("final-response", "Response generated", "completed")
        return {"final_response": text}
