"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from wavepulse.config.settings import Settings
from wavepulse.exceptions import CommandExecutionError
from wavepulse.storage.memory_store import PendingRequestStore, SnapshotStore
from wavepulse.tools.command_executor import LocalCommandExecutor
from wavepulse.tools.file_system import FileSystemTools

CHANNEL_ID = "chan-1"

BASE_COMPONENT_SOURCE = """import React from 'react';
import { PropsProvider } from './props.provider';

export abstract class BaseComponent<T> extends React.Component<T> {
  protected propertyProvider: PropsProvider<T>;

  componentDidMount() {
    this.notifier.subscribe('destroy', () => this.cleanup());
  }

  render() {
    return this.renderWidget(this.props);
  }
}
"""

PROPS_PROVIDER_SOURCE = """export class PropsProvider<T> {
  constructor(private defaultProps: T) {}

  get(name: string) {
    return this.defaultProps[name];
  }
}
"""

BUTTON_SOURCE = """import { BaseComponent } from '../../../core/base.component';
import { WmButtonProps } from './button.props';

export default class WmButton extends BaseComponent<WmButtonProps> {
  renderWidget(props: WmButtonProps) {
    return props.caption;
  }
}
"""


class FakeLLM:
    """Scripted model: the first rule whose key appears in the system+prompt text answers.

    A rule value may be a string or an exception instance to raise. Answers in
    ``queue`` are handed out first, one per call.
    """

    def __init__(
        self,
        rules: list[tuple[str, object]] | None = None,
        default: object = "",
        queue: list[object] | None = None,
    ) -> None:
        self.rules = list(rules or [])
        self.default = default
        self.queue = list(queue or [])
        self.calls: list[dict] = []

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 8192,
        seed: int | None = None,
        json_output: bool = False,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "seed": seed, "json_output": json_output}
        )
        haystack = f"{system or ''}\n{prompt}"
        if self.queue:
            answer = self.queue.pop(0)
        else:
            answer = next((value for key, value in self.rules if key in haystack), self.default)
        if isinstance(answer, Exception):
            raise answer
        return str(answer)


class FakeExecutor:
    """Answers commands from a list of (substring, output) rules and records every call."""

    def __init__(self, rules: list[tuple[str, object]] | None = None, default: str = "") -> None:
        self.rules = list(rules or [])
        self.default = default
        self.commands: list[tuple[str, str | None]] = []

    async def execute(self, command: str, working_dir: str | None = None) -> str:
        self.commands.append((command, working_dir))
        output = next((value for key, value in self.rules if key in command), self.default)
        if isinstance(output, Exception):
            raise output
        return str(output)


class FailingExecutor:
    async def execute(self, command: str, working_dir: str | None = None) -> str:
        raise CommandExecutionError("channel down")


@pytest.fixture
def settings(tmp_path):
    """Test settings rooted in a temp projects directory, with fast polling."""
    return Settings(
        _env_file=None,
        google_api_key="test-key",
        projects_root=str(tmp_path / "projects"),
        command_backend="local",
        expression_poll_interval_s=0.01,
        expression_poll_attempts=3,
        widget_poll_interval_s=0.01,
        widget_poll_attempts=3,
    )


@pytest.fixture
def runtime_root(settings):
    """A minimal runtime library checkout for CHANNEL_ID."""
    root = Path(settings.library_root(CHANNEL_ID, "runtime"))
    (root / "core").mkdir(parents=True)
    (root / "components" / "basic" / "button").mkdir(parents=True)
    (root / "core" / "base.component.tsx").write_text(BASE_COMPONENT_SOURCE)
    (root / "core" / "props.provider.ts").write_text(PROPS_PROVIDER_SOURCE)
    (root / "components" / "basic" / "button" / "button.tsx").write_text(BUTTON_SOURCE)
    return root


@pytest.fixture
def local_fs():
    return FileSystemTools(LocalCommandExecutor(timeout_s=10))


@pytest.fixture
def snapshots():
    return SnapshotStore()


@pytest.fixture
def pending_requests():
    return PendingRequestStore()


@pytest.fixture
def make_llm():
    return FakeLLM


@pytest.fixture
def make_executor():
    return FakeExecutor


@pytest.fixture
def failing_executor():
    return FailingExecutor()
