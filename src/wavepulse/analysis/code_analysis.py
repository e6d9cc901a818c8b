"""Regex-level structural analysis of discovered source files.

The extraction is deliberately shallow: declarations, imports and ``extends``
edges are pulled out with regular expressions, and design patterns are
guessed from literal idioms. Nothing here parses TypeScript.
"""

from __future__ import annotations

import re

from wavepulse.config.constants import (
    MAX_ANALYZED_FILES,
    MAX_SNIPPETS,
    SNIPPET_LINES_AFTER,
    SNIPPET_LINES_BEFORE,
    SNIPPET_RELEVANCE_THRESHOLD,
)
from wavepulse.models.domain import (
    ClassDeclaration,
    CodeAnalysis,
    CodeSnippet,
    FileAnalysis,
    FileMatch,
    Relationship,
)
from wavepulse.observability.logger import get_logger
from wavepulse.query.keywords import extract_keywords
from wavepulse.tools.file_system import FileSystemTools

logger = get_logger("code_analysis")

_CLASS = re.compile(r"(?:export\s+)?(?:default\s+)?class\s+(\w+)(?:\s+extends\s+(\w+))?")
_INTERFACE = re.compile(r"interface\s+(\w+)")
_FUNCTION = re.compile(r"(?:export\s+)?(?:async\s+)?function\s+(\w+)")
_IMPORT = re.compile(r"import\s+.*?\s+from\s+['\"](.+?)['\"]")
_EXPORT = re.compile(r"export\s+(?:default\s+)?(?:class|interface|function|const|let|var)\s+(\w+)")
_EXTENDS = re.compile(r"class\s+(\w+)\s+extends\s+(\w+)")
_FACTORY_CALL = re.compile(r"create\w+\(")

OBSERVER_IDIOMS = ("addEventListener", "on(", "subscribe")

PATTERN_INSIGHTS = {
    "Observer": "Uses Observer pattern for event handling",
    "Factory": "Uses Factory pattern for object creation",
}


def detect_patterns(content: str) -> list[str]:
    patterns = []
    if any(idiom in content for idiom in OBSERVER_IDIOMS):
        patterns.append("Observer")
    if ("create" in content and "Factory" in content) or _FACTORY_CALL.search(content):
        patterns.append("Factory")
    return patterns


def line_relevance(line: str, keywords: list[str]) -> float:
    if not keywords:
        return 0.0
    lowered = line.lower()
    hits = sum(1 for k in keywords if k.lower() in lowered)
    return min(hits / len(keywords), 1.0)


def find_relevant_snippets(content: str, keywords: list[str]) -> list[CodeSnippet]:
    if not keywords:
        return []
    lines = content.split("\n")
    snippets = []
    for index, line in enumerate(lines):
        relevance = line_relevance(line, keywords)
        if relevance <= SNIPPET_RELEVANCE_THRESHOLD:
            continue
        start = max(0, index - SNIPPET_LINES_BEFORE)
        end = min(len(lines), index + SNIPPET_LINES_AFTER + 1)
        snippets.append(
            CodeSnippet(
                start_line=start + 1,
                end_line=end,
                text="\n".join(lines[start:end]),
                relevance=relevance,
            )
        )
    snippets.sort(key=lambda s: s.relevance, reverse=True)
    return snippets[:MAX_SNIPPETS]


def analyze_source(path: str, content: str, keywords: list[str]) -> FileAnalysis:
    return FileAnalysis(
        path=path,
        size=len(content),
        line_count=len(content.split("\n")),
        classes=[ClassDeclaration(name, extends or None) for name, extends in _CLASS.findall(content)],
        interfaces=_INTERFACE.findall(content),
        functions=_FUNCTION.findall(content),
        imports=_IMPORT.findall(content),
        exports=_EXPORT.findall(content),
        relationships=[
            Relationship("extends", source, target, path) for source, target in _EXTENDS.findall(content)
        ],
        patterns=detect_patterns(content),
        snippets=find_relevant_snippets(content, keywords),
    )


def generate_insights(analysis: CodeAnalysis, query: str) -> list[str]:
    insights = [text for name, text in PATTERN_INSIGHTS.items() if name in analysis.patterns]
    if any(r.type == "extends" and r.target == "BaseComponent" for r in analysis.relationships):
        insights.append("Components extend BaseComponent for consistent lifecycle")

    lowered = query.lower()
    if "how" in lowered:
        if analysis.files:
            insights.append(f"Found {len(analysis.files)} relevant implementation files")
        if analysis.relationships:
            insights.append(f"Identified {len(analysis.relationships)} code relationships")
    if "why" in lowered and analysis.patterns:
        insights.append(f"Uses {len(analysis.patterns)} design pattern(s)")
    return insights


class CodeAnalysisEngine:
    def __init__(self, fs: FileSystemTools, max_files: int = MAX_ANALYZED_FILES) -> None:
        self._fs = fs
        self._max_files = max_files

    async def analyze(self, files: list[FileMatch], query: str) -> CodeAnalysis:
        analysis = CodeAnalysis()
        keywords = extract_keywords(query)

        for match in files[: self._max_files]:
            content = await self._read(match.path)
            if content is None:
                continue
            file_analysis = analyze_source(match.path, content, keywords)
            analysis.files.append(file_analysis)
            analysis.relationships.extend(file_analysis.relationships)
            analysis.patterns.extend(file_analysis.patterns)

        analysis.insights = generate_insights(analysis, query)
        logger.info(
            "code_analyzed",
            requested=len(files),
            analyzed=len(analysis.files),
            relationships=len(analysis.relationships),
            patterns=len(analysis.patterns),
        )
        return analysis

    async def _read(self, path: str) -> str | None:
        try:
            result = await self._fs.read_file(path)
        except Exception as e:
            logger.warning("file_analysis_skipped", path=path, error=str(e))
            return None
        if not result.success:
            logger.warning("file_analysis_skipped", path=path, error=result.error)
            return None
        return result.output
