"""File-system tools expressed as shell commands over a CommandExecutor."""

from __future__ import annotations

import shlex

from wavepulse.config.constants import SOURCE_EXTENSIONS
from wavepulse.exceptions import CommandExecutionError
from wavepulse.models.domain import ToolResult
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.executor import CommandExecutor
from wavepulse.tools.command_executor import decode_output, output_lines
from wavepulse.tools.file_edit import FileEditVerifier

logger = get_logger("file_system")

_READ_ERROR_PREFIX = "cat: "


class FileSystemTools:
    def __init__(self, executor: CommandExecutor, verifier: FileEditVerifier | None = None) -> None:
        self._executor = executor
        self._verifier = verifier or FileEditVerifier(executor)

    @property
    def executor(self) -> CommandExecutor:
        return self._executor

    async def _run(self, command: str, working_dir: str | None) -> tuple[str | None, str | None]:
        try:
            return await self._executor.execute(command, working_dir), None
        except CommandExecutionError as e:
            logger.warning("command_failed", command=command[:200], error=str(e))
            return None, str(e)

    async def execute_command(self, command: str, working_dir: str | None = None) -> ToolResult:
        output, error = await self._run(command, working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        return ToolResult(True, output=output)

    async def read_file(self, path: str, working_dir: str | None = None) -> ToolResult:
        output, error = await self._run(f"cat {shlex.quote(path)} 2>&1", working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        text = decode_output(output)
        if text.startswith(_READ_ERROR_PREFIX):
            return ToolResult(False, error=text.strip())
        return ToolResult(
            True,
            output=text,
            data={"path": path, "lineCount": len(text.splitlines())},
        )

    async def _write(
        self, path: str, content: str, operator: str, working_dir: str | None
    ) -> ToolResult:
        command = f"printf '%s' {shlex.quote(content)} {operator} {shlex.quote(path)}"
        output, error = await self._run(command, working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        if output.strip():
            return ToolResult(False, error=output.strip())
        return ToolResult(True, output=f"Wrote {len(content)} characters to {path}")

    async def write_file(self, path: str, content: str, working_dir: str | None = None) -> ToolResult:
        return await self._write(path, content, ">", working_dir)

    async def append_file(self, path: str, content: str, working_dir: str | None = None) -> ToolResult:
        return await self._write(path, content, ">>", working_dir)

    async def grep_files(
        self,
        pattern: str,
        directory: str = ".",
        working_dir: str | None = None,
        include: tuple[str, ...] = SOURCE_EXTENSIONS,
        limit: int = 20,
        ignore_case: bool = True,
    ) -> ToolResult:
        includes = " ".join(f"--include={shlex.quote(ext)}" for ext in include)
        flags = "-r -i -l" if ignore_case else "-r -l"
        command = (
            f"grep {flags} {includes} -e {shlex.quote(pattern)} {shlex.quote(directory)} "
            f"2>/dev/null | head -n {limit}"
        )
        output, error = await self._run(command, working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        files = output_lines(output)
        return ToolResult(True, output="\n".join(files), data={"files": files})

    async def find_files(
        self,
        name_pattern: str,
        directory: str = ".",
        working_dir: str | None = None,
        max_depth: int | None = None,
        limit: int = 30,
        match_path: bool = False,
    ) -> ToolResult:
        depth = f" -maxdepth {max_depth}" if max_depth is not None else ""
        test = "-path" if match_path else "-name"
        command = (
            f"find {shlex.quote(directory)}{depth} -type f {test} {shlex.quote(name_pattern)} "
            f"2>/dev/null | head -n {limit}"
        )
        output, error = await self._run(command, working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        files = output_lines(output)
        return ToolResult(True, output="\n".join(files), data={"files": files})

    async def list_directory(
        self,
        path: str = ".",
        working_dir: str | None = None,
        long_format: bool = False,
        show_hidden: bool = False,
    ) -> ToolResult:
        flags = "-lh" if long_format else "-1"
        if show_hidden:
            flags += "a"
        output, error = await self._run(f"ls {flags} {shlex.quote(path)} 2>&1", working_dir)
        if error is not None:
            return ToolResult(False, error=error)
        text = decode_output(output)
        if text.startswith("ls: "):
            return ToolResult(False, error=text.strip())
        return ToolResult(True, output=text)

    async def file_exists(self, path: str, working_dir: str | None = None) -> bool:
        output, error = await self._run(
            f"[ -f {shlex.quote(path)} ] && echo exists || echo notfound", working_dir
        )
        return error is None and decode_output(output).strip() == "exists"

    async def edit_file(
        self,
        file_path: str,
        search_text: str,
        replace_text: str,
        working_dir: str | None = None,
    ) -> ToolResult:
        return await self._verifier.edit(file_path, search_text, replace_text, working_dir)
