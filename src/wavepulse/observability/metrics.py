"""Metric recording helpers for chat turns and agent runs."""

from __future__ import annotations

from wavepulse.observability.logger import get_logger

logger = get_logger("metrics")


def log_chat_metrics(route: str, steps: int, errors: int, latency_ms: float) -> None:
    logger.info(
        "chat_metrics",
        route=route,
        steps=steps,
        errors=errors,
        latency_ms=round(latency_ms, 2),
    )


def log_agent_metrics(agent: str, files_read: int, confidence: float, duration_ms: float) -> None:
    logger.info(
        "agent_metrics",
        agent=agent,
        files_read=files_read,
        confidence=round(confidence, 4),
        duration_ms=round(duration_ms, 2),
    )
