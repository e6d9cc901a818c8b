"""Command execution channels: the remote WaveMaker RPC and a local shell."""

from __future__ import annotations

import asyncio
import json
import shlex

import httpx

from wavepulse.exceptions import CommandExecutionError
from wavepulse.observability.logger import get_logger

logger = get_logger("command_executor")


def build_shell_command(command: str, working_dir: str | None = None) -> str:
    if not working_dir:
        return command
    return f"cd {shlex.quote(working_dir.rstrip('/') or '/')} && {command}"


class RemoteCommandExecutor:
    """Runs commands through ``GET {endpoint}?command=...`` and returns the response body."""

    def __init__(
        self,
        endpoint: str,
        timeout_s: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout_s
        self._client = client

    async def execute(self, command: str, working_dir: str | None = None) -> str:
        full_command = build_shell_command(command, working_dir)
        try:
            if self._client is not None:
                response = await self._client.get(
                    self._endpoint, params={"command": full_command}, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._endpoint, params={"command": full_command})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("remote_command_failed", command=full_command[:200], error=str(e))
            raise CommandExecutionError(f"Remote command failed: {e}") from e

        return response.text


class LocalCommandExecutor:
    """Runs commands in a local shell, returning stdout and stderr combined."""

    def __init__(self, timeout_s: float = 30.0) -> None:
        self._timeout = timeout_s

    async def execute(self, command: str, working_dir: str | None = None) -> str:
        full_command = build_shell_command(command, working_dir)
        try:
            process = await asyncio.create_subprocess_shell(
                full_command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise CommandExecutionError(f"Could not start command: {e}") from e

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise CommandExecutionError(
                f"Command timed out after {self._timeout}s: {full_command[:200]}"
            ) from e

        return stdout.decode("utf-8", errors="replace")


def decode_output(raw: str) -> str:
    """Undo JSON string encoding the remote channel sometimes applies to output."""
    text = raw.strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        try:
            decoded = json.loads(text)
        except ValueError:
            return text
        if isinstance(decoded, str):
            return decoded
    return raw


def output_lines(raw: str) -> list[str]:
    """Split command output into non-empty lines with stray quotes removed."""
    lines = []
    for line in decode_output(raw).replace("\\n", "\n").splitlines():
        cleaned = line.strip().strip("\"'").strip()
        if cleaned:
            lines.append(cleaned)
    return lines
