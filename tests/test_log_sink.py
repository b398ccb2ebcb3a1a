"""日志存储的容量与顺序。"""

from __future__ import annotations

from datetime import datetime

import pytest

from upx_gui.core.log_sink import MAX_LOGS, TRIM_COUNT, LogSink
from upx_gui.core.models import LogEvent, Severity


class RecordingView:
    def __init__(self) -> None:
        self.cleared = 0
        self.appended: list[LogEvent] = []
        self.trimmed: list[int] = []

    def clear_placeholder(self) -> None:
        self.cleared += 1

    def append(self, event: LogEvent) -> None:
        self.appended.append(event)

    def trim(self, count: int) -> None:
        self.trimmed.append(count)


def test_overflow_evicts_oldest_batch() -> None:
    sink = LogSink()
    for index in range(MAX_LOGS + 1):
        sink.info(f"line {index}")

    events = sink.all()
    assert len(events) == MAX_LOGS + 1 - TRIM_COUNT
    assert [event.message for event in events] == [f"line {i}" for i in range(TRIM_COUNT, MAX_LOGS + 1)]


def test_length_never_exceeds_cap() -> None:
    sink = LogSink(max_logs=10, trim_count=3)
    for index in range(50):
        sink.info(str(index))
        assert len(sink) <= 10

    assert sink.all()[-1].message == "49"


def test_placeholder_cleared_once_and_views_notified() -> None:
    sink = LogSink(max_logs=4, trim_count=2)
    view = RecordingView()
    sink.attach(view)

    for index in range(5):
        sink.warning(str(index))

    assert view.cleared == 1
    assert [event.message for event in view.appended] == ["0", "1", "2", "3", "4"]
    assert view.trimmed == [2]
    assert [event.message for event in sink.all()] == ["2", "3", "4"]


def test_all_returns_read_only_snapshot() -> None:
    sink = LogSink()
    sink.append(LogEvent("a", Severity.SUCCESS, highlight=True))
    snapshot = sink.all()

    sink.info("b")

    assert isinstance(snapshot, tuple)
    assert [event.message for event in snapshot] == ["a"]
    assert snapshot[0].highlight is True


def test_invalid_trim_count_rejected() -> None:
    with pytest.raises(ValueError):
        LogSink(max_logs=5, trim_count=0)
    with pytest.raises(ValueError):
        LogSink(max_logs=5, trim_count=6)


def test_multiline_message_formats_as_single_display_line() -> None:
    event = LogEvent("UPX 输出:\r\n  Packed 1 file.\n", Severity.WARNING, timestamp=datetime(2024, 1, 2, 3, 4, 5))

    line = event.format_line()

    assert line == "[03:04:05] UPX 输出:   Packed 1 file."
    assert "\n" not in line and "\r" not in line
