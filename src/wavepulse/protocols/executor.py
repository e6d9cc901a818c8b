"""Protocol for the command execution channel."""

from __future__ import annotations

from typing import Protocol


class CommandExecutor(Protocol):
    async def execute(self, command: str, working_dir: str | None = None) -> str:
        """Run a shell command, optionally inside ``working_dir``, and return raw output.

        Raises CommandExecutionError when the channel itself fails.
        """
        ...
