"""批处理调度：按固定宽度分组，组内并发、组间顺序执行。"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional, Sequence

from upx_gui.core.config import DEFAULT_CONCURRENCY, OperationOptions
from upx_gui.core.exceptions import BatchInvariantError
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import BatchRun, OperationMode, OperationTarget
from upx_gui.core.progress import ProgressUpdate

LOGGER = logging.getLogger(__name__)

SEPARATOR = "━" * 34

TargetHandler = Callable[[OperationTarget, OperationMode, OperationOptions], Awaitable[object]]
ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def split_waves(targets: Sequence[OperationTarget], width: int) -> list[Sequence[OperationTarget]]:
    """按顺序切分为若干组，每组最多 ``width`` 个。"""

    if width < 1:
        raise ValueError("并发宽度必须大于 0")
    return [targets[start : start + width] for start in range(0, len(targets), width)]


class BatchScheduler:
    """执行一次批处理。

    单个目标的任何失败只计入 ``failed`` 并记录日志，不会中断同组或后续的目标。
    每组完成后让出一次事件循环，保证界面在长批次中保持响应。
    """

    def __init__(
        self,
        handler: TargetHandler,
        sink: LogSink,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("并发宽度必须大于 0")
        self._handler = handler
        self._sink = sink
        self.concurrency = concurrency

    async def _run_target(
        self,
        run: BatchRun,
        target: OperationTarget,
        mode: OperationMode,
        options: OperationOptions,
    ) -> None:
        try:
            await self._handler(target, mode, options)
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("目标处理失败 %s: %s", target.path, exc, exc_info=exc)
            run.failed += 1
            self._sink.error(f"处理失败: {target.path}")
        else:
            run.succeeded += 1

    async def run(
        self,
        targets: Sequence[OperationTarget],
        mode: OperationMode,
        options: OperationOptions,
        progress_callback: ProgressCallback = None,
    ) -> BatchRun:
        run = BatchRun(total=len(targets), concurrency=self.concurrency)
        if not targets:
            self._sink.warning("没有找到可处理的文件")
            return run

        self._sink.info(SEPARATOR)
        self._sink.info("批量处理模式")
        self._sink.info(f"找到 {run.total} 个文件")
        self._sink.info(SEPARATOR)

        waves = split_waves(list(targets), self.concurrency)
        wave_count = math.ceil(run.total / self.concurrency)
        for index, wave in enumerate(waves, start=1):
            if index > 1:
                await asyncio.sleep(0)
            await asyncio.gather(*(self._run_target(run, target, mode, options) for target in wave))

            message = f"进度: 第 {index}/{wave_count} 组完成 ({run.finished}/{run.total})"
            self._sink.info(message)
            if progress_callback:
                progress_callback(
                    ProgressUpdate(
                        total=run.total,
                        completed=run.finished,
                        wave=index,
                        wave_count=wave_count,
                        message=message,
                    )
                )

        if not run.is_complete:
            raise BatchInvariantError(
                f"批处理计数不一致: 成功 {run.succeeded} + 失败 {run.failed} != 总数 {run.total}"
            )

        self._sink.success(f"批量处理完成! 成功: {run.succeeded} 个，失败: {run.failed} 个", highlight=True)
        if progress_callback:
            progress_callback(
                ProgressUpdate(
                    total=run.total,
                    completed=run.finished,
                    wave=wave_count,
                    wave_count=wave_count,
                    message="处理完成",
                    status="done",
                )
            )
        return run
