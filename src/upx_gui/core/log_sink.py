"""有界、有序的日志存储。"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from upx_gui.core.models import LogEvent, Severity

LOGGER = logging.getLogger(__name__)

MAX_LOGS = 1000
TRIM_COUNT = 200

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LogView(Protocol):
    """日志面板需要实现的回调。"""

    def clear_placeholder(self) -> None: ...

    def append(self, event: LogEvent) -> None: ...

    def trim(self, count: int) -> None: ...


class LogSink:
    """按插入顺序保存日志事件。

    超过 ``max_logs`` 条时一次性丢弃最旧的 ``trim_count`` 条；
    本会话的第一条日志会先清除面板上的占位提示（只发生一次）。
    """

    def __init__(self, max_logs: int = MAX_LOGS, trim_count: int = TRIM_COUNT) -> None:
        if not 0 < trim_count <= max_logs:
            raise ValueError("trim_count 必须在 1 与 max_logs 之间")
        self.max_logs = max_logs
        self.trim_count = trim_count
        self._events: list[LogEvent] = []
        self._views: list[LogView] = []
        self._placeholder_cleared = False

    def attach(self, view: LogView) -> None:
        self._views.append(view)

    def append(self, event: LogEvent) -> None:
        if not self._placeholder_cleared:
            self._placeholder_cleared = True
            for view in self._views:
                view.clear_placeholder()

        self._events.append(event)
        LOGGER.log(_LEVELS[event.severity], event.message)
        for view in self._views:
            view.append(event)

        if len(self._events) > self.max_logs:
            del self._events[: self.trim_count]
            for view in self._views:
                view.trim(self.trim_count)

    def extend(self, events: Sequence[LogEvent]) -> None:
        for event in events:
            self.append(event)

    def log(self, message: str, severity: Severity = Severity.INFO, highlight: bool = False) -> LogEvent:
        """创建并追加一条日志，返回该事件。"""

        event = LogEvent(message=message, severity=severity, highlight=highlight)
        self.append(event)
        return event

    def info(self, message: str, highlight: bool = False) -> LogEvent:
        return self.log(message, Severity.INFO, highlight)

    def success(self, message: str, highlight: bool = False) -> LogEvent:
        return self.log(message, Severity.SUCCESS, highlight)

    def warning(self, message: str, highlight: bool = False) -> LogEvent:
        return self.log(message, Severity.WARNING, highlight)

    def error(self, message: str, highlight: bool = False) -> LogEvent:
        return self.log(message, Severity.ERROR, highlight)

    def all(self) -> tuple[LogEvent, ...]:
        return tuple(self._events)

    def last(self) -> Optional[LogEvent]:
        return self._events[-1] if self._events else None

    def __len__(self) -> int:
        return len(self._events)
