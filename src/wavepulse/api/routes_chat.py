"""Chat endpoints: one JSON answer, or progress streamed as Server-Sent Events."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from wavepulse.api.dependencies import get_chat_service
from wavepulse.exceptions import WavePulseError
from wavepulse.models.domain import ChatTurn, Query
from wavepulse.models.schemas import (
    ChatRequest,
    ChatResponse,
    OrchestrationErrorModel,
    ResearchStepModel,
)
from wavepulse.pipeline.chat_service import ChatService

router = APIRouter()


def to_query(request: ChatRequest) -> Query:
    return Query(
        message=request.message,
        channel_id=request.channel_id,
        history=tuple(ChatTurn(m.role, m.content) for m in request.history),
        project_location=request.project_location,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    try:
        result = await service.respond(to_query(request), request.use_deterministic_seed)
    except WavePulseError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ChatResponse(
        message=result.message,
        research_steps=[ResearchStepModel(**s.to_dict()) for s in result.research_steps],
        errors=[OrchestrationErrorModel(**e.to_dict()) for e in result.errors],
        route=result.route,
    )


@router.post("/chat/stream")
async def chat_stream(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Stream ``step`` events and the final ``complete`` event via Server-Sent Events."""

    async def event_generator():
        async for event in service.respond_stream(to_query(request), request.use_deterministic_seed):
            yield f"data: {json.dumps(event, default=str)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
