"""控制面板逻辑：把点击、拖放等手势转换为批处理调用，与具体界面无关。"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from upx_gui.core.config import DEFAULT_CONCURRENCY, AppConfig
from upx_gui.core.config_store import ConfigStore
from upx_gui.core.drop_target import DropTargetClassifier, LayoutProvider, Point
from upx_gui.core.exceptions import PackerServiceError, SelectionCancelled
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import BatchRun, OperationMode, OperationTarget
from upx_gui.core.resolver import FileSetResolver
from upx_gui.core.service import PackerService
from upx_gui.processing.operations import OutputChooser, TargetOperation, accept_default_output
from upx_gui.processing.scheduler import BatchScheduler, ProgressCallback

LOGGER = logging.getLogger(__name__)

# 返回 None 或空列表表示用户取消。
InputChooser = Callable[[], Awaitable[Optional[Sequence[str]]]]


async def _no_input() -> Optional[Sequence[str]]:
    return None


class PackerController:
    """持有各组件实例以及"拖放后等待选择操作"的文件列表。"""

    def __init__(
        self,
        service: PackerService,
        layout: LayoutProvider,
        *,
        sink: Optional[LogSink] = None,
        choose_inputs: InputChooser = _no_input,
        choose_output: OutputChooser = accept_default_output,
        concurrency: int = DEFAULT_CONCURRENCY,
        progress_callback: ProgressCallback = None,
    ) -> None:
        self.service = service
        self.sink = sink if sink is not None else LogSink()
        self.config = AppConfig()
        self.config_store = ConfigStore(service)
        self.drop_classifier = DropTargetClassifier(layout)
        self.resolver = FileSetResolver(service, self.sink)
        self.operation = TargetOperation(service, self.sink, choose_output)
        self.scheduler = BatchScheduler(self.operation, self.sink, concurrency)
        self.pending: list[OperationTarget] = []
        self.version: Optional[str] = None
        self._choose_inputs = choose_inputs
        self._progress_callback = progress_callback
        self._in_flight: set[asyncio.Task] = set()

    # ---------------------- 启动与设置 ---------------------- #

    async def start(self) -> None:
        try:
            version = await self.service.get_version()
        except PackerServiceError as exc:
            LOGGER.info("获取 UPX 版本失败: %s", exc)
            self.sink.info("UPX GUI 已就绪 - 请选择操作")
        else:
            self.version = version
            self.sink.info(f"UPX GUI 已就绪 - {version}")
        self.config = await self.config_store.load()

    async def save_settings(self, config: AppConfig) -> None:
        self.config = config
        await self.config_store.save(config)
        self.sink.success("设置已保存")

    async def refresh_icon_cache(self) -> None:
        self.sink.info("正在刷新图标缓存...")
        try:
            await self.service.refresh_icon_cache()
        except PackerServiceError as exc:
            self.sink.error(f"刷新失败: {exc}")
        else:
            self.sink.success("图标缓存刷新完成")

    def on_resize(self) -> None:
        self.drop_classifier.invalidate()

    # ---------------------- 手势处理 ---------------------- #

    async def handle_drop(self, paths: Sequence[str], position: Optional[Point]) -> Optional[BatchRun]:
        if not paths:
            return None

        targets = await self.resolver.resolve_all(paths, self.config.include_subfolders)
        if not targets:
            self.sink.warning("未找到 .exe 或 .dll 文件")
            return None

        mode = self.drop_classifier.classify(position)
        if mode is OperationMode.COMPRESS:
            self.sink.info("检测到拖放至加壳区域")
            return await self.run_batch(targets, mode)
        if mode is OperationMode.DECOMPRESS:
            self.sink.info("检测到拖放至脱壳区域")
            return await self.run_batch(targets, mode)

        self.pending = targets
        if len(targets) == 1:
            self.sink.info('请点击"加壳压缩"或"脱壳解压"按钮')
        else:
            self.sink.info(f"已选择 {len(targets)} 个文件，请点击操作按钮")
        return None

    async def activate(self, mode: OperationMode) -> Optional[BatchRun]:
        """点击加壳 / 脱壳按钮。"""

        if self.pending:
            targets, self.pending = self.pending, []
            if len(targets) > 1:
                self.sink.info(f"开始批量{mode.label}...")
                return await self.run_batch(targets, mode)
            self.sink.info(f"开始{mode.label}...")
            await self.run_single(targets[0], mode)
            return None

        self.sink.info(f"选择文件进行{mode.verb}...")
        selected = await self._choose_inputs()
        if not selected:
            self.sink.warning("未选择文件")
            return None

        if len(selected) == 1:
            self.sink.info(f"选择文件: {selected[0]}")
            await self.run_single(OperationTarget(selected[0]), mode)
            return None
        self.sink.info(f"选择了 {len(selected)} 个文件")
        return await self.run_batch([OperationTarget(path) for path in selected], mode)

    # ---------------------- 执行 ---------------------- #

    async def run_single(self, target: OperationTarget, mode: OperationMode) -> bool:
        """单文件操作不计数，失败在此处消化。"""

        try:
            await self.operation(target, mode, self.config.snapshot_options())
        except (SelectionCancelled, PackerServiceError):
            # 已由 TargetOperation 写入日志
            return False
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("单文件处理异常: %s", target.path)
            self.sink.error(f"操作失败: {exc}")
            return False
        return True

    async def run_batch(self, targets: Sequence[OperationTarget], mode: OperationMode) -> BatchRun:
        options = self.config.snapshot_options()
        task = asyncio.ensure_future(self.scheduler.run(targets, mode, options, self._progress_callback))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        # shield: 调用方被取消时批处理仍然跑完
        return await asyncio.shield(task)

    @property
    def busy(self) -> bool:
        return bool(self._in_flight)

    async def close(self) -> None:
        """关闭窗口时等待进行中的批处理全部完成（不中途放弃）。"""

        if not self._in_flight:
            return
        LOGGER.info("等待 %d 个批处理完成后退出", len(self._in_flight))
        await asyncio.gather(*self._in_flight, return_exceptions=True)
