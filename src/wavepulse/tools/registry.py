"""Named tools exposed to the tool-calling agents."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from wavepulse.exceptions import ToolError
from wavepulse.models.domain import ToolResult
from wavepulse.observability.logger import get_logger
from wavepulse.tools.file_system import FileSystemTools
from wavepulse.tools.ui_state import UIStateTools

logger = get_logger("tool_registry")


@dataclass(frozen=True)
class ToolContext:
    channel_id: str | None = None
    project_location: str | None = None


Handler = Callable[[dict, ToolContext], Awaitable[ToolResult] | ToolResult]


@dataclass
class Tool:
    name: str
    description: str
    handler: Handler
    parameters: dict[str, str] = field(default_factory=dict)
    required: tuple[str, ...] = ()


class ToolRegistry:
    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        lines = []
        for tool in self._tools.values():
            params = ", ".join(
                f"{name}{'' if name in tool.required else '?'}: {desc}"
                for name, desc in tool.parameters.items()
            )
            lines.append(f"- {tool.name}({params}): {tool.description}")
        return "\n".join(lines)

    async def execute(self, name: str, args: dict, context: ToolContext) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(False, error=f"Unknown tool: {name}. Available: {', '.join(self._tools)}")
        try:
            missing = [p for p in tool.required if args.get(p) in (None, "")]
            if missing:
                raise ToolError(f"Missing required argument(s) for {name}: {', '.join(missing)}")
            result = tool.handler(args, context)
            if inspect.isawaitable(result):
                result = await result
        except ToolError as e:
            return ToolResult(False, error=str(e))
        except Exception as e:
            logger.warning("tool_failed", tool=name, error=str(e))
            return ToolResult(False, error=f"{name} failed: {e}")
        logger.info("tool_executed", tool=name, success=result.success)
        return result


def build_file_tools(fs: FileSystemTools, read_only: bool = False) -> list[Tool]:
    def cwd(context: ToolContext) -> str | None:
        return context.project_location

    tools = [
        Tool(
            "read_file",
            "Read the full contents of a file.",
            lambda a, c: fs.read_file(a["path"], cwd(c)),
            {"path": "file path, relative to the project or absolute"},
            ("path",),
        ),
        Tool(
            "grep_files",
            "Search file contents (case-insensitive) and list matching files.",
            lambda a, c: fs.grep_files(a["pattern"], a.get("directory") or ".", cwd(c)),
            {"pattern": "text to search for", "directory": "directory to search"},
            ("pattern",),
        ),
        Tool(
            "find_files",
            "Find files by name pattern, e.g. *button*.",
            lambda a, c: fs.find_files(a["namePattern"], a.get("directory") or ".", cwd(c)),
            {"namePattern": "shell glob for the file name", "directory": "directory to search"},
            ("namePattern",),
        ),
        Tool(
            "list_directory",
            "List the entries of a directory.",
            lambda a, c: fs.list_directory(
                a.get("path") or ".",
                cwd(c),
                long_format=bool(a.get("long")),
                show_hidden=bool(a.get("showHidden")),
            ),
            {"path": "directory path", "long": "true for sizes and permissions", "showHidden": "true to include dotfiles"},
        ),
    ]
    if read_only:
        return tools
    return tools + [
        Tool(
            "write_file",
            "Create or overwrite a file with the given content.",
            lambda a, c: fs.write_file(a["path"], a.get("content", ""), cwd(c)),
            {"path": "file path", "content": "full file content"},
            ("path",),
        ),
        Tool(
            "append_file",
            "Append content to the end of a file.",
            lambda a, c: fs.append_file(a["path"], a.get("content", ""), cwd(c)),
            {"path": "file path", "content": "content to append"},
            ("path",),
        ),
        Tool(
            "edit_file",
            "Replace every occurrence of searchText with replaceText in a file and verify the result.",
            lambda a, c: fs.edit_file(a["filePath"], a["searchText"], a.get("replaceText", ""), cwd(c)),
            {"filePath": "file path", "searchText": "exact text to replace", "replaceText": "replacement text"},
            ("filePath", "searchText"),
        ),
        Tool(
            "execute_command",
            "Run a shell command in the project directory.",
            lambda a, c: fs.execute_command(a["command"], cwd(c)),
            {"command": "shell command"},
            ("command",),
        ),
    ]


def _as_int(value) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError) as e:
        raise ToolError(f"Expected an integer, got {value!r}") from e


def build_ui_tools(ui: UIStateTools) -> list[Tool]:
    def channel(context: ToolContext) -> str:
        if not context.channel_id:
            raise ToolError("channelId is required for UI-state tools")
        return context.channel_id

    return [
        Tool(
            "get_ui_layer_data",
            "Get console logs, network requests, component tree, timeline, storage or app info.",
            lambda a, c: ui.get_ui_layer_data(
                channel(c),
                a.get("dataType") or "all",
                log_level=a.get("logLevel"),
                limit=_as_int(a.get("limit")),
                method=a.get("method"),
                status=a.get("status"),
            ),
            {
                "dataType": "console | network | components | timeline | storage | info | all",
                "logLevel": "debug | info | error | log | warn",
                "limit": "keep only the last N entries",
                "method": "HTTP method filter",
                "status": "HTTP status filter",
            },
        ),
        Tool(
            "eval_expression",
            "Evaluate a JavaScript expression inside the running app.",
            lambda a, c: ui.eval_expression(channel(c), a["expression"]),
            {"expression": "expression to evaluate"},
            ("expression",),
        ),
        Tool(
            "get_widget_properties_styles",
            "Get properties and styles of a widget by its id from the component tree.",
            lambda a, c: ui.get_widget_properties_styles(channel(c), a["widgetId"]),
            {"widgetId": "widget id from the component tree"},
            ("widgetId",),
        ),
    ]
