"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Keys
    google_api_key: str = ""

    # LLM / Gemini
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_temperature: float = 0.1
    gemini_max_tokens: int = 8192
    gemini_seed: int = 42
    use_deterministic_seed: bool = True

    # Routing
    router_mode: Literal["three_way", "two_way"] = "three_way"

    # Remote command execution
    command_backend: Literal["remote", "local"] = "remote"
    wavemaker_endpoint: str = "http://localhost:3000/api/execute"
    command_timeout_s: float = 30.0

    # Project layout
    projects_root: str = "/root/WaveMaker/WaveMaker-Studio/projects"
    generated_app_dir: str = "generated-rn-app"
    runtime_package: str = "@wavemaker/app-rn-runtime"
    codegen_package: str = "@wavemaker/rn-codegen"

    # Polling bridges
    expression_poll_interval_s: float = 0.5
    expression_poll_attempts: int = 10
    widget_poll_interval_s: float = 2.0
    widget_poll_attempts: int = 5

    # Agents
    tool_agent_max_iterations: int = 15
    sub_agent_max_files: int = 15
    sub_agent_max_file_chars: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_file": ".env", "env_prefix": "WAVEPULSE_"}

    def seed_for(self, deterministic: bool | None = None) -> int | None:
        use_seed = self.use_deterministic_seed if deterministic is None else deterministic
        return self.gemini_seed if use_seed else None

    def library_root(self, channel_id: str, base_path: str) -> str:
        """Absolute root of the runtime or codegen library for a channel's project.

        ``both`` resolves to the runtime library.
        """
        package = self.codegen_package if base_path == "codegen" else self.runtime_package
        return "/".join(
            [
                self.projects_root.rstrip("/"),
                channel_id,
                self.generated_app_dir,
                "node_modules",
                package,
            ]
        )

    def project_location(self, channel_id: str) -> str:
        return f"{self.projects_root.rstrip('/')}/{channel_id}"
