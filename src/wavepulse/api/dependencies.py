"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from wavepulse.config.settings import Settings
from wavepulse.pipeline.chat_service import ChatService
from wavepulse.storage.memory_store import PendingRequestStore, SnapshotStore


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_snapshot_store(request: Request) -> SnapshotStore:
    return request.app.state.snapshots


def get_request_store(request: Request) -> PendingRequestStore:
    return request.app.state.requests
