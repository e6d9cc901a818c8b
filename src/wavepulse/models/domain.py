"""Core domain objects used throughout the system."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

StepStatus = Literal["pending", "in-progress", "completed", "failed"]
MatchType = Literal["name", "content", "symbol", "dependency"]
BasePath = Literal["runtime", "codegen", "both"]
Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class ChatTurn:
    role: str
    content: str


@dataclass(frozen=True)
class Query:
    message: str
    channel_id: str | None = None
    history: tuple[ChatTurn, ...] = ()
    project_location: str | None = None


@dataclass(frozen=True)
class QueryAnalysis:
    intent: str
    domain: tuple[str, ...]
    sub_agents: tuple[str, ...]
    base_path: BasePath
    analysis_depth: str = "deep"
    keywords: tuple[str, ...] = ()
    requires_validation: bool = False
    confidence: float = 0.7
    method: str = "parser"  # "model" or "parser"
    reasoning: str | None = None


@dataclass
class FileMatch:
    path: str
    match_type: MatchType
    confidence: float
    context: str


@dataclass
class CodeSnippet:
    start_line: int  # 1-based, inclusive
    end_line: int
    text: str
    relevance: float


@dataclass
class ClassDeclaration:
    name: str
    extends: str | None = None


@dataclass
class Relationship:
    type: str  # currently only "extends"
    source: str
    target: str
    path: str = ""


@dataclass
class FileAnalysis:
    path: str
    size: int
    line_count: int
    classes: list[ClassDeclaration] = field(default_factory=list)
    interfaces: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    snippets: list[CodeSnippet] = field(default_factory=list)


@dataclass
class CodeAnalysis:
    files: list[FileAnalysis] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files


@dataclass
class FileSource:
    path: str
    line_start: int | None = None
    line_end: int | None = None


@dataclass
class CrossReference:
    source: str
    target: str
    type: str
    description: str


@dataclass
class ResponseSection:
    title: str
    content: str
    agent: str | None = None
    sources: list[FileSource] = field(default_factory=list)


@dataclass
class AgentResponse:
    """Output of a sub-agent or of the orchestrator.

    Plain-text answers only set ``text``; structured answers fill the
    summary/sections/insights fields.
    """

    agent: str | None = None
    text: str | None = None
    summary: str = ""
    sections: list[ResponseSection] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    flow: str | None = None
    sources: list[FileSource] = field(default_factory=list)
    cross_references: list[CrossReference] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def is_structured(self) -> bool:
        return bool(self.summary or self.sections)

    def body_text(self) -> str:
        """All human-readable text carried by the response."""
        if not self.is_structured:
            return self.text or ""
        parts = [self.summary]
        parts.extend(f"{s.title}\n{s.content}" for s in self.sections)
        parts.extend(self.insights)
        if self.flow:
            parts.append(self.flow)
        if self.text:
            parts.append(self.text)
        return "\n\n".join(p for p in parts if p)


@dataclass
class ValidationIssue:
    type: str  # "source", "code", "completeness", "consistency"
    severity: Severity
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class ValidationResult:
    valid: bool
    issues: list[ValidationIssue]
    confidence: float

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]


@dataclass
class ResearchStep:
    id: str
    description: str
    status: StepStatus

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class OrchestrationError:
    """A failed pipeline stage, recorded instead of raised."""

    step: str
    error: str
    recovery_action: str

    def to_dict(self) -> dict:
        return {"step": self.step, "error": self.error, "recoveryAction": self.recovery_action}


@dataclass
class ToolResult:
    success: bool
    output: str = ""
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"success": self.success}
        if self.output:
            payload["output"] = self.output
        if self.error:
            payload["error"] = self.error
        if self.data:
            payload.update(self.data)
        return payload


@dataclass
class UISnapshot:
    """Latest UI inspection snapshot pushed by a connected app for one channel."""

    channel_id: str
    console_logs: list[dict] = field(default_factory=list)
    network_requests: list[dict] = field(default_factory=list)
    component_tree: dict | None = None
    timeline: list[dict] = field(default_factory=list)
    storage: dict = field(default_factory=dict)
    info: dict = field(default_factory=dict)
    updated_at: float = field(default_factory=time.time)


@dataclass
class PendingRequest:
    request_id: str
    channel_id: str
    kind: str
    payload: dict
    result: Any = None
    error: str | None = None
    completed: bool = False
    created_at: float = field(default_factory=time.time)
