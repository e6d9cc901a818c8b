"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    history: list[ChatMessage] = Field(default_factory=list)
    channel_id: str | None = Field(default=None, alias="channelId")
    project_location: str | None = Field(default=None, alias="projectLocation")
    use_deterministic_seed: bool | None = Field(default=None, alias="useDeterministicSeed")


class ResearchStepModel(BaseModel):
    id: str
    description: str
    status: Literal["pending", "in-progress", "completed", "failed"]


class OrchestrationErrorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step: str
    error: str
    recovery_action: str = Field(alias="recoveryAction")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    research_steps: list[ResearchStepModel] = Field(default_factory=list, alias="researchSteps")
    errors: list[OrchestrationErrorModel] = Field(default_factory=list)
    route: str | None = None


class SnapshotPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    console_logs: list[dict] = Field(default_factory=list, alias="consoleLogs")
    network_requests: list[dict] = Field(default_factory=list, alias="networkRequests")
    component_tree: dict | None = Field(default=None, alias="componentTree")
    timeline: list[dict] = Field(default_factory=list)
    storage: dict = Field(default_factory=dict)
    info: dict = Field(default_factory=dict)


class PendingRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId")
    kind: str
    payload: dict


class RequestResultPayload(BaseModel):
    result: Any = None
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    model: str
    router_mode: str
