"""UI-state tools backed by the channel snapshot store and client-completed requests."""

from __future__ import annotations

import time
from typing import Literal

from wavepulse.config.constants import REQUEST_KIND_EVAL, REQUEST_KIND_SELECT_WIDGET
from wavepulse.config.settings import Settings
from wavepulse.exceptions import PollingTimeout
from wavepulse.models.domain import PendingRequest, ToolResult, UISnapshot
from wavepulse.observability.logger import get_logger
from wavepulse.storage.memory_store import PendingRequestStore, SnapshotStore
from wavepulse.storage.polling import submit_and_wait

logger = get_logger("ui_state")

DataType = Literal["console", "network", "components", "timeline", "storage", "info", "all"]


def find_widget_by_id(node: dict | None, widget_id: str) -> dict | None:
    if not node:
        return None
    if node.get("id") == widget_id:
        return node
    for child in node.get("children") or []:
        found = find_widget_by_id(child, widget_id)
        if found is not None:
            return found
    return None


def _select(snapshot: UISnapshot, data_type: str) -> dict:
    sections = {
        "console": lambda: {"consoleLogs": list(snapshot.console_logs)},
        "network": lambda: {"networkRequests": list(snapshot.network_requests)},
        "components": lambda: {"componentTree": snapshot.component_tree},
        "timeline": lambda: {"timelineLogs": list(snapshot.timeline)},
        "storage": lambda: {"storage": dict(snapshot.storage)},
        "info": lambda: {
            "appInfo": snapshot.info.get("appInfo"),
            "platformInfo": snapshot.info.get("platformInfo"),
        },
    }
    if data_type == "all":
        data: dict = {}
        for build in sections.values():
            data.update(build())
        return data
    return sections[data_type]()


class UIStateTools:
    def __init__(
        self,
        snapshots: SnapshotStore,
        requests: PendingRequestStore,
        settings: Settings,
    ) -> None:
        self._snapshots = snapshots
        self._requests = requests
        self._settings = settings

    def get_ui_layer_data(
        self,
        channel_id: str,
        data_type: DataType = "all",
        log_level: str | None = None,
        limit: int | None = None,
        method: str | None = None,
        status: str | None = None,
    ) -> ToolResult:
        if not channel_id:
            return ToolResult(False, error="channelId is required")
        if data_type not in ("console", "network", "components", "timeline", "storage", "info", "all"):
            return ToolResult(False, error=f"Unknown dataType: {data_type}")

        snapshot = self._snapshots.get(channel_id)
        if snapshot is None:
            return ToolResult(
                False, error="No UI layer data available. Make sure the app is connected."
            )

        data = _select(snapshot, data_type)
        if "consoleLogs" in data:
            if log_level:
                data["consoleLogs"] = [log for log in data["consoleLogs"] if log.get("type") == log_level]
            if limit:
                data["consoleLogs"] = data["consoleLogs"][-limit:]
        if "networkRequests" in data:
            requests = data["networkRequests"]
            if method:
                requests = [r for r in requests if str(r.get("method", "")).lower() == method.lower()]
            if status:
                requests = [r for r in requests if str(r.get("status", "")) == str(status)]
            if limit:
                requests = requests[-limit:]
            data["networkRequests"] = requests
        return ToolResult(True, data={"dataType": data_type, "data": data})

    async def eval_expression(self, channel_id: str, expression: str) -> ToolResult:
        if not channel_id:
            return ToolResult(False, error="channelId is required")
        if not expression:
            return ToolResult(False, error="expression is required")

        request = PendingRequest(
            request_id=f"eval_{channel_id}_{int(time.time() * 1000)}",
            channel_id=channel_id,
            kind=REQUEST_KIND_EVAL,
            payload={"expression": expression},
        )
        try:
            completed = await submit_and_wait(
                self._requests,
                request,
                self._settings.expression_poll_interval_s,
                self._settings.expression_poll_attempts,
            )
        except PollingTimeout:
            logger.warning("expression_eval_timeout", channel_id=channel_id)
            return ToolResult(
                False,
                error=(
                    "Timeout waiting for expression evaluation result. "
                    "Make sure the app is connected."
                ),
            )
        if completed.error:
            return ToolResult(False, error=completed.error)
        return ToolResult(True, data={"expression": expression, "result": completed.result})

    async def get_widget_properties_styles(self, channel_id: str, widget_id: str) -> ToolResult:
        if not channel_id:
            return ToolResult(False, error="channelId is required")
        if not widget_id:
            return ToolResult(False, error="widgetId is required")

        snapshot = self._snapshots.get(channel_id)
        if snapshot is None or not snapshot.component_tree:
            return ToolResult(
                False, error="Component tree not available. Make sure the app is connected."
            )
        widget = find_widget_by_id(snapshot.component_tree, widget_id)
        if widget is None:
            return ToolResult(False, error=f'Widget with id "{widget_id}" not found in component tree.')
        if widget.get("properties"):
            return self._widget_result(widget)

        # The client fetches properties and styles when the widget is selected.
        request = PendingRequest(
            request_id=f"select_{channel_id}_{int(time.time() * 1000)}",
            channel_id=channel_id,
            kind=REQUEST_KIND_SELECT_WIDGET,
            payload={"widgetId": widget_id, "widgetName": widget.get("name")},
        )

        def widget_with_properties() -> dict | None:
            current = self._snapshots.get(channel_id)
            found = find_widget_by_id(current.component_tree if current else None, widget_id)
            return found if found and found.get("properties") else None

        try:
            updated = await submit_and_wait(
                self._requests,
                request,
                self._settings.widget_poll_interval_s,
                self._settings.widget_poll_attempts,
                fetch=widget_with_properties,
            )
        except PollingTimeout:
            logger.warning("widget_properties_timeout", channel_id=channel_id, widget_id=widget_id)
            return ToolResult(
                False,
                error=(
                    "Timeout waiting for properties/styles to be available. Widget may need "
                    "to be selected first, or the client may not be connected."
                ),
            )
        return self._widget_result(updated)

    @staticmethod
    def _widget_result(widget: dict) -> ToolResult:
        return ToolResult(
            True,
            data={
                "widgetId": widget.get("id"),
                "widgetName": widget.get("name"),
                "properties": widget.get("properties") or {},
                "styles": widget.get("styles") or {},
            },
        )
