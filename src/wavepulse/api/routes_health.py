"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from wavepulse.api.dependencies import get_settings
from wavepulse.config.settings import Settings
from wavepulse.models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(status="ok", model=settings.gemini_model, router_mode=settings.router_mode)
