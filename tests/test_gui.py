"""图形界面的日志面板、设置按钮与后台事件循环。"""

from __future__ import annotations

import time

import pytest

tk = pytest.importorskip("tkinter")
pytest.importorskip("tkinterdnd2")

from conftest import FakePackerService  # noqa: E402

from upx_gui.core.log_sink import LogSink  # noqa: E402
from upx_gui.gui.app import AsyncLoopThread, TextLogView, UpxGuiApp  # noqa: E402


@pytest.fixture
def root():
    try:
        window = tk.Tk()
    except tk.TclError:
        pytest.skip("没有可用的图形显示")
    window.withdraw()
    window.callback_errors = []
    window.report_callback_exception = lambda *exc_info: window.callback_errors.append(exc_info)
    yield window
    window.destroy()


def _panel_lines(widget) -> list[str]:
    return widget.get("1.0", "end-1c").splitlines()


def test_panel_trim_removes_whole_events_for_multiline_messages(root) -> None:
    widget = tk.Text(root)
    sink = LogSink(max_logs=4, trim_count=2)
    sink.attach(TextLogView(widget))

    for index in range(6):
        sink.warning(f"第 {index} 条\n  详细说明\n  解决方案")
    root.update()

    assert _panel_lines(widget) == [event.format_line() for event in sink.all()]
    assert root.callback_errors == []


def test_panel_ignores_writes_after_widget_destroyed(root) -> None:
    widget = tk.Text(root)
    sink = LogSink()
    sink.attach(TextLogView(widget))
    root.update()

    widget.destroy()
    sink.info("关闭后到达的日志")
    root.update()

    assert len(sink) == 1
    assert root.callback_errors == []


async def _answer() -> int:
    return 42


def test_loop_thread_closes_loop_on_stop() -> None:
    loop_thread = AsyncLoopThread()
    loop_thread.start()

    assert loop_thread.submit(_answer()).result(timeout=5) == 42

    loop_thread.stop()
    assert loop_thread.loop.is_closed()
    loop_thread.stop()


@pytest.fixture
def app():
    try:
        window = UpxGuiApp(FakePackerService())
    except (tk.TclError, RuntimeError):
        pytest.skip("没有可用的图形显示或 tkdnd 扩展")
    window.withdraw()
    yield window
    window._loop_thread.stop()
    window.destroy()


def test_settings_disabled_until_startup_config_applied(app) -> None:
    assert app.settings_button.instate(["disabled"])

    deadline = time.monotonic() + 5
    while app.settings_button.instate(["disabled"]) and time.monotonic() < deadline:
        app.update()
        time.sleep(0.01)

    assert not app.settings_button.instate(["disabled"])
    assert app.version_var.get() == "UPX GUI - upx 4.2.4"
