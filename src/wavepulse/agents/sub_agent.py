"""Generic domain sub-agent: discover files, read them, answer with the model."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field

from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.agents.registry import SubAgentDefinition
from wavepulse.config.settings import Settings
from wavepulse.generation.prompt_templates import (
    SUB_AGENT_NO_CONTEXT,
    SUB_AGENT_PROMPT,
    SUB_AGENT_SYSTEM,
)
from wavepulse.models.domain import (
    AgentResponse,
    CodeAnalysis,
    CrossReference,
    FileMatch,
    FileSource,
)
from wavepulse.observability.logger import get_logger
from wavepulse.observability.metrics import log_agent_metrics
from wavepulse.protocols.llm import LLMProvider
from wavepulse.query.keywords import extract_keywords
from wavepulse.tools.file_system import FileSystemTools

logger = get_logger("sub_agent")

SUB_AGENT_CONFIDENCE = 0.9
KEYWORD_SEARCHES = 8
ANALYSIS_SNIPPETS = 5
ANALYSIS_RELATIONSHIPS = 10
_IMPORT = re.compile(r"import\s+.*?\s+from\s+['\"](.+?)['\"]")
_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".template")
EMPTY_RESPONSE = "Unable to generate response. The AI returned an empty response."


@dataclass
class SubAgentContext:
    """Per-query inputs shared by all sub-agents of one orchestration run."""

    tracker: ResearchStepTracker
    base_path: str | None = None
    project_location: str | None = None
    discovered: list[FileMatch] = field(default_factory=list)
    code_analysis: CodeAnalysis | None = None
    use_deterministic_seed: bool | None = None


def is_source_file(path: str) -> bool:
    return path.endswith(_SOURCE_SUFFIXES) and not path.endswith((".map", ".d.ts"))


def truncate_source(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + f"\n\n... (truncated, total length: {len(content)} chars)"


def format_code_analysis(analysis: CodeAnalysis | None) -> str:
    """Patterns, extends edges and the most relevant snippets, as prompt text."""
    if analysis is None or analysis.is_empty:
        return "(none)"
    lines = []
    if analysis.patterns:
        lines.append(f"Patterns: {', '.join(dict.fromkeys(analysis.patterns))}")
    for r in analysis.relationships[:ANALYSIS_RELATIONSHIPS]:
        lines.append(f"{r.source} {r.type} {r.target} ({r.path})")
    snippets = sorted(
        ((f.path, s) for f in analysis.files for s in f.snippets),
        key=lambda pair: pair[1].relevance,
        reverse=True,
    )
    for path, snippet in snippets[:ANALYSIS_SNIPPETS]:
        lines.append(f"\n// {path} (lines {snippet.start_line}-{snippet.end_line})\n{snippet.text}")
    return "\n".join(lines) or "(none)"


def find_cross_references(contents: dict[str, str]) -> list[CrossReference]:
    """Import edges between files that were read together."""
    references = []
    paths = list(contents)
    for path, content in contents.items():
        for import_path in _IMPORT.findall(content):
            name = import_path.rsplit("/", 1)[-1].replace(".tsx", "").replace(".ts", "")
            if not name or name in (".", ".."):
                continue
            target = next(
                (p for p in paths if p != path and p.rsplit("/", 1)[-1].startswith(name + ".")),
                None,
            )
            if target:
                references.append(
                    CrossReference(path, target, "imports", f"Imports from {import_path}")
                )
    return references


class SubAgent:
    def __init__(
        self,
        definition: SubAgentDefinition,
        llm: LLMProvider,
        fs: FileSystemTools,
        settings: Settings,
    ) -> None:
        self._definition = definition
        self._llm = llm
        self._fs = fs
        self._settings = settings

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def domain(self) -> tuple[str, ...]:
        return self._definition.domain

    def can_handle(self, query: str) -> bool:
        lowered = query.lower()
        return any(tag in lowered for tag in self._definition.domain)

    async def process(self, query: str, context: SubAgentContext) -> AgentResponse:
        prefix = f"sub-agent-{self.name}"
        tracker = context.tracker
        start = time.monotonic()
        current = f"{prefix}-discover-files"
        try:
            # STEP 1: Discover files in this agent's domain
            tracker.update(current, "Analyzing query and discovering files...", "in-progress")
            files = await self.discover_files(query, context)
            tracker.update(current, f"Found {len(files)} relevant files", "completed")

            # STEP 2: Read them
            current = f"{prefix}-read-files"
            tracker.update(current, f"Reading {len(files)} files...", "in-progress")
            contents = await self.read_files(files)
            tracker.update(current, f"Read {len(contents)} files", "completed")

            # STEP 3: Answer from the code
            current = f"{prefix}-generate-response"
            tracker.update(current, "Generating response...", "in-progress")
            text = await self.generate_response(query, contents, context)
            tracker.update(current, "Response generated", "completed")
        except Exception as e:
            tracker.update(current, f"Error: {e}", "failed")
            logger.error("sub_agent_failed", agent=self.name, step=current, error=str(e))
            raise

        sources = [
            FileSource(path, 1, max(1, len(content.split("\n"))))
            for path, content in contents.items()
        ]
        response = AgentResponse(
            agent=self.name,
            text=text,
            sources=sources,
            insights=self.generate_insights(contents),
            cross_references=find_cross_references(contents),
            confidence=SUB_AGENT_CONFIDENCE,
        )
        logger.info(
            "sub_agent_completed",
            agent=self.name,
            files=len(files),
            read=len(contents),
            cross_references=len(response.cross_references),
        )
        log_agent_metrics(
            self.name, len(contents), response.confidence, (time.monotonic() - start) * 1000
        )
        return response

    async def discover_files(self, query: str, context: SubAgentContext) -> list[str]:
        if not context.base_path:
            return []
        root = context.base_path.rstrip("/")
        files = [f"{root}/{key}" for key in self._definition.key_files]
        files.extend(m.path for m in context.discovered)

        for pattern in self._definition.path_patterns:
            result = await self._fs.find_files(pattern, root, limit=20, match_path=True)
            if result.success:
                files.extend(f for f in result.data["files"] if is_source_file(f))

        for keyword in extract_keywords(query)[:KEYWORD_SEARCHES]:
            result = await self._fs.grep_files(keyword, root, limit=20)
            if result.success:
                files.extend(f for f in result.data["files"] if is_source_file(f))

        return list(dict.fromkeys(files))

    async def read_files(self, files: list[str]) -> dict[str, str]:
        contents: dict[str, str] = {}
        for path in files[: self._settings.sub_agent_max_files]:
            result = await self._fs.read_file(path)
            if result.success and result.output.strip():
                contents[path] = result.output
            else:
                logger.debug("sub_agent_read_skipped", agent=self.name, path=path, error=result.error)
        return contents

    async def generate_response(
        self, query: str, contents: dict[str, str], context: SubAgentContext
    ) -> str:
        max_chars = self._settings.sub_agent_max_file_chars
        file_context = "\n\n".join(
            f"\n// File: {path}\n{truncate_source(content, max_chars)}"
            for path, content in contents.items()
            if not path.endswith(".map") and content.strip()
        )
        if not file_context:
            logger.warning("sub_agent_no_context", agent=self.name, files=len(contents))
            return SUB_AGENT_NO_CONTEXT.format(
                count=len(contents),
                files="\n".join(f"- {p} ({len(c)} chars)" for p, c in list(contents.items())[:5])
                or "- (none)",
            )

        text = await self._llm.generate(
            SUB_AGENT_PROMPT.format(
                query=query,
                file_context=file_context,
                analysis_context=format_code_analysis(context.code_analysis),
            ),
            system=SUB_AGENT_SYSTEM.format(
                agent_name=self.name,
                domain=", ".join(self._definition.domain),
                expertise=self._definition.expertise,
            ),
            temperature=0.1,
            seed=self._settings.seed_for(context.use_deterministic_seed),
        )
        return text if text.strip() else EMPTY_RESPONSE

    def generate_insights(self, contents: dict[str, str]) -> list[str]:
        insights = [f"Analyzed {len(contents)} file(s) in {self.name} domain"]
        for landmark in self._definition.landmarks:
            declaration = re.compile(rf"class\s+{landmark}\b")
            path = next((p for p, c in contents.items() if declaration.search(c)), None)
            if path:
                insights.append(f"{landmark} is declared in {path}")
        return insights
