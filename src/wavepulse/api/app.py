"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from wavepulse.agents.codebase_graph import CodebaseAgent
from wavepulse.agents.orchestrator import SubAgentOrchestrator
from wavepulse.agents.tool_agent import ToolAgent
from wavepulse.analysis.code_analysis import CodeAnalysisEngine
from wavepulse.api.middleware import RequestTimingMiddleware
from wavepulse.api.routes_channels import router as channels_router
from wavepulse.api.routes_chat import router as chat_router
from wavepulse.api.routes_health import router as health_router
from wavepulse.config.settings import Settings
from wavepulse.discovery.file_discovery import FileDiscoveryEngine
from wavepulse.exceptions import WavePulseError
from wavepulse.generation.gemini_provider import GeminiProvider
from wavepulse.generation.prompt_templates import FILE_OPS_SYSTEM, UI_STATE_SYSTEM
from wavepulse.generation.response_formatter import ResponseFormatter
from wavepulse.observability.logger import get_logger, setup_logging
from wavepulse.pipeline.chat_service import ChatService
from wavepulse.protocols.executor import CommandExecutor
from wavepulse.protocols.llm import LLMProvider
from wavepulse.query.analyzer import QueryAnalyzer
from wavepulse.query.router import QueryRouter
from wavepulse.storage.memory_store import PendingRequestStore, SnapshotStore
from wavepulse.tools.command_executor import LocalCommandExecutor, RemoteCommandExecutor
from wavepulse.tools.file_system import FileSystemTools
from wavepulse.tools.registry import ToolRegistry, build_file_tools, build_ui_tools
from wavepulse.tools.ui_state import UIStateTools
from wavepulse.verification.response_validator import ResponseValidator

logger = get_logger("app")


def build_chat_service(
    settings: Settings,
    llm: LLMProvider,
    executor: CommandExecutor,
    snapshots: SnapshotStore,
    requests: PendingRequestStore,
) -> ChatService:
    """Wire every agent over one model and one command channel."""
    fs = FileSystemTools(executor)
    ui = UIStateTools(snapshots, requests, settings)

    # Tool-calling agents
    file_ops_agent = ToolAgent(
        "file-ops", llm, ToolRegistry(build_file_tools(fs)), settings, FILE_OPS_SYSTEM
    )
    ui_state_agent = ToolAgent(
        "ui-state",
        llm,
        ToolRegistry(build_ui_tools(ui) + build_file_tools(fs, read_only=True)),
        settings,
        UI_STATE_SYSTEM,
    )

    # Codebase graph
    codebase_agent = CodebaseAgent(
        analyzer=QueryAnalyzer(llm, settings),
        discovery=FileDiscoveryEngine(fs),
        code_analysis=CodeAnalysisEngine(fs),
        orchestrator=SubAgentOrchestrator(llm, fs, settings),
        validator=ResponseValidator(fs),
        formatter=ResponseFormatter(llm, settings),
        settings=settings,
    )

    return ChatService(
        router=QueryRouter(llm, settings),
        codebase_agent=codebase_agent,
        file_ops_agent=file_ops_agent,
        ui_state_agent=ui_state_agent,
        settings=settings,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    setup_logging(settings.log_level, settings.log_json)

    # LLM
    llm = GeminiProvider(api_key=settings.google_api_key, model=settings.gemini_model)

    # Command channel
    http_client: httpx.AsyncClient | None = None
    if settings.command_backend == "local":
        executor: CommandExecutor = LocalCommandExecutor(timeout_s=settings.command_timeout_s)
    else:
        http_client = httpx.AsyncClient(timeout=settings.command_timeout_s)
        executor = RemoteCommandExecutor(
            settings.wavemaker_endpoint, timeout_s=settings.command_timeout_s, client=http_client
        )

    # Channel state
    snapshots = SnapshotStore()
    requests = PendingRequestStore()

    # Attach to app state
    app.state.settings = settings
    app.state.snapshots = snapshots
    app.state.requests = requests
    app.state.chat_service = build_chat_service(settings, llm, executor, snapshots, requests)

    logger.info(
        "startup_complete",
        model=settings.gemini_model,
        router_mode=settings.router_mode,
        command_backend=settings.command_backend,
    )

    yield

    if http_client is not None:
        await http_client.aclose()
    logger.info("shutdown_complete")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_errors(exc)},
    )


async def wavepulse_error_handler(request: Request, exc: WavePulseError) -> JSONResponse:
    logger.error("request_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]


def create_app() -> FastAPI:
    app = FastAPI(
        title="WavePulse",
        version="1.0.0",
        description="Multi-agent assistant for WaveMaker React Native projects",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(WavePulseError, wavepulse_error_handler)
    app.include_router(health_router, tags=["health"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(channels_router, tags=["channels"])
    return app
