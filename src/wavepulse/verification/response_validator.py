"""Post-hoc checks on an aggregated answer: citations, code blocks, coverage, consistency."""

from __future__ import annotations

import re

from wavepulse.config.constants import (
    CITATION_REQUIRED_LENGTH,
    ERROR_PENALTY,
    MIN_RESPONSE_LENGTH,
    WARNING_PENALTY,
)
from wavepulse.models.domain import (
    AgentResponse,
    FileSource,
    ValidationIssue,
    ValidationResult,
)
from wavepulse.observability.logger import get_logger
from wavepulse.query.keywords import extract_keywords
from wavepulse.tools.file_system import FileSystemTools

logger = get_logger("response_validator")

_CODE_BLOCK = re.compile(r"```\w*\n([\s\S]*?)```")
_LINE_COMMENT = re.compile(r"//[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_UNDEFINED = re.compile(r"\bundefined\b")


def extract_code_blocks(text: str) -> list[str]:
    return _CODE_BLOCK.findall(text)


def strip_comments(code: str) -> str:
    return _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", code))


def score_issues(issues: list[ValidationIssue]) -> float:
    errors = sum(1 for i in issues if i.severity == "error")
    warnings = sum(1 for i in issues if i.severity == "warning")
    confidence = 1.0 - errors * ERROR_PENALTY - warnings * WARNING_PENALTY
    return max(0.0, min(1.0, confidence))


class ResponseValidator:
    def __init__(self, fs: FileSystemTools) -> None:
        self._fs = fs

    async def validate(self, response: AgentResponse, query: str) -> ValidationResult:
        text = response.body_text()
        issues = await self.check_sources(response.sources)
        issues.extend(self.check_code_blocks(text))
        issues.extend(self.check_completeness(text, query))
        issues.extend(self.check_consistency(text, response.sources))

        result = ValidationResult(
            valid=not any(i.severity == "error" for i in issues),
            issues=issues,
            confidence=score_issues(issues),
        )
        logger.info(
            "response_validated",
            valid=result.valid,
            errors=len(result.errors),
            warnings=len(result.warnings),
            confidence=round(result.confidence, 3),
        )
        return result

    async def check_sources(self, sources: list[FileSource]) -> list[ValidationIssue]:
        issues = []
        for source in sources:
            try:
                result = await self._fs.read_file(source.path)
            except Exception as e:
                logger.warning("source_check_failed", path=source.path, error=str(e))
                result = None
            if result is None or not result.success:
                issues.append(
                    ValidationIssue(
                        "source",
                        "error",
                        f"Source file not found: {source.path}",
                        {"path": source.path},
                    )
                )
                continue
            if source.line_start:
                line_count = len(result.output.split("\n"))
                if source.line_start > line_count or (source.line_end or 0) > line_count:
                    issues.append(
                        ValidationIssue(
                            "source",
                            "warning",
                            f"Line numbers out of range for {source.path}",
                            {"path": source.path, "lineCount": line_count},
                        )
                    )
        return issues

    @staticmethod
    def check_code_blocks(text: str) -> list[ValidationIssue]:
        return [
            ValidationIssue(
                "code",
                "warning",
                "Potential undefined reference in code snippet",
                {"code": block[:100]},
            )
            for block in extract_code_blocks(text)
            if _UNDEFINED.search(strip_comments(block))
        ]

    @staticmethod
    def check_completeness(text: str, query: str) -> list[ValidationIssue]:
        issues = []
        lowered = text.lower()
        missing = [k for k in extract_keywords(query) if k.lower() not in lowered]
        if missing:
            issues.append(
                ValidationIssue(
                    "completeness",
                    "warning",
                    f"Response may not address: {', '.join(missing)}",
                    {"missingKeywords": missing},
                )
            )
        if len(text) < MIN_RESPONSE_LENGTH:
            issues.append(
                ValidationIssue(
                    "completeness",
                    "warning",
                    "Response may be too brief",
                    {"responseLength": len(text)},
                )
            )
        return issues

    @staticmethod
    def check_consistency(text: str, sources: list[FileSource]) -> list[ValidationIssue]:
        if not sources and len(text) > CITATION_REQUIRED_LENGTH:
            return [
                ValidationIssue(
                    "consistency", "warning", "Response is detailed but lacks source citations"
                )
            ]
        return []
