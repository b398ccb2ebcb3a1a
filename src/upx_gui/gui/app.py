"""Tkinter 图形界面实现。"""

from __future__ import annotations

import asyncio
import logging
import threading
import tkinter as tk
from concurrent.futures import Future
from dataclasses import replace
from pathlib import PurePath
from tkinter import filedialog, ttk
from typing import Any, Callable, Coroutine, Optional, Sequence

from tkinterdnd2 import DND_FILES, TkinterDnD

from upx_gui.core.config import AppConfig, describe_level
from upx_gui.core.drop_target import COMPRESS_REGION, DECOMPRESS_REGION, Point, Rect
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import LogEvent, OperationMode, Severity
from upx_gui.core.service import PackerService
from upx_gui.processing.controller import PackerController
from upx_gui.utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)

PLACEHOLDER = "拖放 .exe / .dll 文件或文件夹到按钮上，或点击按钮选择文件"
EXECUTABLE_FILETYPES = [("可执行文件", "*.exe *.dll")]
LAYOUT_TIMEOUT = 2.0

SEVERITY_COLORS = {
    Severity.INFO: "#d4d4d4",
    Severity.SUCCESS: "#4ec9b0",
    Severity.WARNING: "#dcdcaa",
    Severity.ERROR: "#f48771",
}


class TextLogView:
    """把 LogSink 的事件写入 Tk Text 控件，可在任意线程调用。"""

    def __init__(self, widget: tk.Text) -> None:
        self._widget = widget
        for severity, color in SEVERITY_COLORS.items():
            widget.tag_configure(severity.value, foreground=color)
        widget.tag_configure("highlight", font=("TkDefaultFont", 10, "bold"))
        widget.tag_configure("placeholder", foreground="#808080")
        self._run(self._write_placeholder)

    def _run(self, func: Callable[..., None], *args: Any) -> None:
        # 界面更新一律回到主线程
        self._widget.after(0, func, *args)

    def clear_placeholder(self) -> None:
        self._run(self._clear)

    def append(self, event: LogEvent) -> None:
        tags = (event.severity.value, "highlight") if event.highlight else (event.severity.value,)
        self._run(self._write, event.format_line(), tags)

    def trim(self, count: int) -> None:
        self._run(self._delete_head, count)

    def _edit(self, action: Callable[[], None]) -> None:
        if not self._widget.winfo_exists():
            return
        self._widget.configure(state=tk.NORMAL)
        action()
        self._widget.configure(state=tk.DISABLED)

    def _write_placeholder(self) -> None:
        self._edit(lambda: self._widget.insert(tk.END, PLACEHOLDER + "\n", ("placeholder",)))

    def _clear(self) -> None:
        self._edit(lambda: self._widget.delete("1.0", tk.END))

    def _write(self, message: str, tags: tuple[str, ...]) -> None:
        def action() -> None:
            self._widget.insert(tk.END, message + "\n", tags)
            self._widget.see(tk.END)

        self._edit(action)

    def _delete_head(self, count: int) -> None:
        self._edit(lambda: self._widget.delete("1.0", f"{count + 1}.0"))


class AsyncLoopThread:
    """在后台线程运行 asyncio 事件循环，核心状态只在该循环中读写。"""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="upx-gui-loop", daemon=True)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()

    def start(self) -> None:
        self._thread.start()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(_log_failure)
        return future

    def call_soon(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon_threadsafe(callback)

    def stop(self, timeout: float = 5.0) -> None:
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)


def _log_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        LOGGER.error("后台任务异常: %s", exc, exc_info=exc)


class SettingsWindow(tk.Toplevel):
    """全局设置弹窗，关闭时保存。"""

    def __init__(self, parent: "UpxGuiApp", config: AppConfig) -> None:
        super().__init__(parent)
        self._parent_app = parent
        self.title("设置")
        self.transient(parent)
        self.resizable(False, False)
        self.protocol("WM_DELETE_WINDOW", self._handle_close)

        self.level_var = tk.IntVar(value=config.compression_level)
        self.level_text_var = tk.StringVar(value=describe_level(config.compression_level))
        self.overwrite_var = tk.BooleanVar(value=config.overwrite)
        self.backup_var = tk.BooleanVar(value=config.backup)
        self.ultra_brute_var = tk.BooleanVar(value=config.ultra_brute)
        self.include_subfolders_var = tk.BooleanVar(value=config.include_subfolders)
        self.force_compress_var = tk.BooleanVar(value=config.force_compress)
        self._build_widgets()

    def _build_widgets(self) -> None:
        container = ttk.Frame(self, padding=12)
        container.pack(fill=tk.BOTH, expand=True)

        level_frame = ttk.LabelFrame(container, text="压缩级别", padding=8)
        level_frame.pack(fill=tk.X)
        ttk.Scale(
            level_frame,
            from_=1,
            to=10,
            orient=tk.HORIZONTAL,
            variable=self.level_var,
            command=self._on_level_changed,
        ).pack(fill=tk.X)
        ttk.Label(level_frame, textvariable=self.level_text_var).pack(anchor=tk.W, pady=(4, 0))

        options = ttk.LabelFrame(container, text="选项", padding=8)
        options.pack(fill=tk.X, pady=(8, 0))
        for text, var in (
            ("覆盖原文件", self.overwrite_var),
            ("备份原文件 (.bak)", self.backup_var),
            ("极限压缩 (--ultra-brute)", self.ultra_brute_var),
            ("包含子文件夹", self.include_subfolders_var),
            ("强制压缩 (--force)", self.force_compress_var),
        ):
            ttk.Checkbutton(options, text=text, variable=var).pack(anchor=tk.W)

        ttk.Button(container, text="完成", command=self._handle_close).pack(anchor=tk.E, pady=(12, 0))

    def _on_level_changed(self, value: str) -> None:
        position = int(round(float(value)))
        self.level_var.set(position)
        self.level_text_var.set(describe_level(position))

    def collect(self, base: AppConfig) -> AppConfig:
        return replace(
            base,
            compression_level=self.level_var.get(),
            overwrite=self.overwrite_var.get(),
            backup=self.backup_var.get(),
            ultra_brute=self.ultra_brute_var.get(),
            include_subfolders=self.include_subfolders_var.get(),
            force_compress=self.force_compress_var.get(),
        )

    def _handle_close(self) -> None:
        self._parent_app._handle_settings_closed(self)
        self.destroy()


class UpxGuiApp(TkinterDnD.Tk):
    """Tkinter 主窗口。"""

    def __init__(self, service: PackerService) -> None:
        super().__init__()
        self.title("UPX GUI")
        self.geometry("720x520")
        setup_logging()

        self._loop_thread = AsyncLoopThread()
        self._config = AppConfig()
        self._settings_window: Optional[SettingsWindow] = None
        self._closing = False

        self._build_ui()

        sink = LogSink()
        sink.attach(TextLogView(self.log_text))
        self.controller = PackerController(
            service,
            self._read_layout,
            sink=sink,
            choose_inputs=self._choose_inputs,
            choose_output=self._choose_output,
        )

        self.drop_target_register(DND_FILES)
        self.dnd_bind("<<Drop>>", self._on_drop)
        self.bind("<Configure>", self._on_configure)
        self.protocol("WM_DELETE_WINDOW", self._handle_close)

        self._loop_thread.start()
        self._loop_thread.submit(self._start_controller())

    # ---------------------- UI 构建 ---------------------- #

    def _build_ui(self) -> None:
        container = ttk.Frame(self, padding=12)
        container.pack(fill=tk.BOTH, expand=True)

        header = ttk.Frame(container)
        header.pack(fill=tk.X)
        self.version_var = tk.StringVar(value="UPX GUI")
        ttk.Label(header, textvariable=self.version_var).pack(side=tk.LEFT)
        # 读取配置完成后才启用
        self.settings_button = ttk.Button(header, text="设置", command=self._open_settings, state=tk.DISABLED)
        self.settings_button.pack(side=tk.RIGHT)
        ttk.Button(header, text="刷新图标缓存", command=self._refresh_icons).pack(side=tk.RIGHT, padx=(0, 8))

        actions = ttk.Frame(container)
        actions.pack(fill=tk.X, pady=12)
        self.compress_button = ttk.Button(
            actions, text="加壳压缩", command=lambda: self._activate(OperationMode.COMPRESS)
        )
        self.compress_button.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, ipady=24, padx=(0, 6))
        self.decompress_button = ttk.Button(
            actions, text="脱壳解压", command=lambda: self._activate(OperationMode.DECOMPRESS)
        )
        self.decompress_button.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, ipady=24, padx=(6, 0))

        log_frame = ttk.LabelFrame(container, text="日志", padding=6)
        log_frame.pack(fill=tk.BOTH, expand=True)
        scrollbar = ttk.Scrollbar(log_frame, orient=tk.VERTICAL)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self.log_text = tk.Text(
            log_frame,
            height=14,
            state=tk.DISABLED,
            background="#1e1e1e",
            yscrollcommand=scrollbar.set,
        )
        self.log_text.pack(fill=tk.BOTH, expand=True)
        scrollbar.configure(command=self.log_text.yview)

    # ---------------------- 主线程 <-> 事件循环 ---------------------- #

    def _on_main_thread(self, func: Callable[[], Any]) -> Future:
        """在 Tk 主线程执行 ``func``，返回可等待的 Future。"""

        future: Future = Future()

        def runner() -> None:
            try:
                future.set_result(func())
            except Exception as exc:  # noqa: BLE001
                future.set_exception(exc)

        self.after(0, runner)
        return future

    def _widget_rect(self, widget: tk.Widget) -> Rect:
        return Rect.from_size(widget.winfo_rootx(), widget.winfo_rooty(), widget.winfo_width(), widget.winfo_height())

    def _read_layout(self) -> dict[str, Rect]:
        # 在事件循环线程中调用，几何信息需回到主线程读取
        future = self._on_main_thread(
            lambda: {
                COMPRESS_REGION: self._widget_rect(self.compress_button),
                DECOMPRESS_REGION: self._widget_rect(self.decompress_button),
            }
        )
        return future.result(timeout=LAYOUT_TIMEOUT)

    async def _choose_inputs(self) -> Optional[Sequence[str]]:
        future = self._on_main_thread(
            lambda: filedialog.askopenfilenames(parent=self, title="选择文件", filetypes=EXECUTABLE_FILETYPES)
        )
        selected = await asyncio.wrap_future(future)
        return list(selected) if selected else None

    async def _choose_output(self, suggested: str) -> Optional[str]:
        path = PurePath(suggested)
        future = self._on_main_thread(
            lambda: filedialog.asksaveasfilename(
                parent=self,
                title="选择输出位置",
                initialdir=str(path.parent),
                initialfile=path.name,
                defaultextension=path.suffix,
                filetypes=EXECUTABLE_FILETYPES,
            )
        )
        return (await asyncio.wrap_future(future)) or None

    async def _start_controller(self) -> None:
        await self.controller.start()
        config = self.controller.config
        version = self.controller.version
        self.after(0, self._apply_startup, config, version)

    def _apply_startup(self, config: AppConfig, version: Optional[str]) -> None:
        self._config = config
        self.settings_button.configure(state=tk.NORMAL)
        if version:
            self.version_var.set(f"UPX GUI - {version}")

    # ---------------------- 事件处理 ---------------------- #

    def _activate(self, mode: OperationMode) -> None:
        self._loop_thread.submit(self.controller.activate(mode))

    def _refresh_icons(self) -> None:
        self._loop_thread.submit(self.controller.refresh_icon_cache())

    def _on_drop(self, event: Any) -> str:
        paths = [str(item) for item in self.tk.splitlist(event.data) if str(item).strip()]
        position = Point(float(event.x_root), float(event.y_root))
        self._loop_thread.submit(self.controller.handle_drop(paths, position))
        return event.action

    def _on_configure(self, event: tk.Event) -> None:
        if event.widget is self:
            self._loop_thread.call_soon(self.controller.on_resize)

    def _open_settings(self) -> None:
        if self._settings_window is not None and self._settings_window.winfo_exists():
            self._settings_window.lift()
            return
        self._settings_window = SettingsWindow(self, self._config)

    def _handle_settings_closed(self, window: SettingsWindow) -> None:
        self._config = window.collect(self._config)
        self._settings_window = None
        self._loop_thread.submit(self.controller.save_settings(self._config))

    def _handle_close(self) -> None:
        if self._closing:
            return
        self._closing = True
        # 进行中的批处理在后台跑完后再退出
        self.withdraw()
        future = self._loop_thread.submit(self.controller.close())
        future.add_done_callback(lambda _: self.after(0, self._shutdown))

    def _shutdown(self) -> None:
        self._loop_thread.stop()
        self.destroy()


def run_gui(service: PackerService) -> None:
    """启动 GUI 应用。"""

    app = UpxGuiApp(service)
    app.mainloop()
