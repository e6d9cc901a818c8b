"""Turns an aggregated agent response into the final markdown answer."""

from __future__ import annotations

from wavepulse.config.settings import Settings
from wavepulse.generation.prompt_templates import SYNTHESIS_PROMPT, SYNTHESIS_SYSTEM
from wavepulse.models.domain import AgentResponse, FileSource, ValidationResult
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.llm import LLMProvider

logger = get_logger("response_formatter")


def render_sources(sources: list[FileSource], with_lines: bool = True) -> str:
    lines = []
    for source in sources:
        suffix = ""
        if with_lines and source.line_start and source.line_end:
            suffix = f" (lines {source.line_start}-{source.line_end})"
        lines.append(f"- `{source.path}`{suffix}")
    return "## Source Files\n\n" + "\n".join(lines) + "\n"


def render_template(response: AgentResponse, validation: ValidationResult | None = None) -> str:
    """Deterministic layout used when one agent answered."""
    parts = []
    if response.is_structured:
        parts.append(f"# {response.summary or 'Answer'}\n")
        for section in response.sections:
            parts.append(f"## {section.title}\n\n{section.content}\n")
    if response.text:
        parts.append(response.text.rstrip() + "\n")

    if response.insights:
        parts.append("## Key Insights\n\n" + "\n".join(f"- {i}" for i in response.insights) + "\n")
    if response.flow:
        parts.append(f"## Flow\n\n```\n{response.flow}\n```\n")
    if response.sources:
        parts.append(render_sources(response.sources))
    if response.cross_references:
        parts.append(
            "## Related Files\n\n"
            + "\n".join(
                f"- `{r.source}` {r.type} `{r.target}` - {r.description}"
                for r in response.cross_references
            )
            + "\n"
        )
    if validation is not None and validation.warnings:
        parts.append("## Notes\n\n" + "\n".join(f"- {w.message}" for w in validation.warnings) + "\n")
    return "\n".join(parts)


def render_sections(response: AgentResponse) -> str:
    """Plain concatenation used when synthesis is unavailable."""
    parts = ["# Answer\n"]
    parts.extend(f"## {s.title}\n\n{s.content}\n" for s in response.sections)
    if response.sources:
        parts.append(render_sources(response.sources, with_lines=False))
    return "\n".join(parts)


class ResponseFormatter:
    def __init__(self, llm: LLMProvider, settings: Settings) -> None:
        self._llm = llm
        self._settings = settings

    async def format(
        self,
        response: AgentResponse,
        query: str,
        validation: ValidationResult | None = None,
        use_deterministic_seed: bool | None = None,
    ) -> str:
        if len(response.sections) > 1 and query:
            return await self.synthesize(response, query, use_deterministic_seed)
        return render_template(response, validation)

    async def synthesize(
        self, response: AgentResponse, query: str, use_deterministic_seed: bool | None = None
    ) -> str:
        prompt = SYNTHESIS_PROMPT.format(
            query=query,
            sections="\n".join(
                f"=== {s.agent or s.title} ===\n{s.content}\n" for s in response.sections
            ),
            sources="\n".join(s.path for s in response.sources) or "(none)",
        )
        try:
            text = await self._llm.generate(
                prompt,
                system=SYNTHESIS_SYSTEM,
                temperature=0.1,
                seed=self._settings.seed_for(use_deterministic_seed),
            )
        except Exception as e:
            logger.warning("synthesis_failed", error=str(e), sections=len(response.sections))
            return render_sections(response)

        if not text.strip():
            logger.warning("synthesis_empty", sections=len(response.sections))
            return render_sections(response)
        if response.sources:
            text = text.rstrip() + "\n\n" + render_sources(response.sources)
        logger.info("response_synthesized", sections=len(response.sections), length=len(text))
        return text
