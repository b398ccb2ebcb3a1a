"""单个文件的加壳 / 脱壳操作。"""

from __future__ import annotations

from pathlib import PurePath
from typing import Awaitable, Callable, Optional

from upx_gui.core.classifier import classify_error, classify_result
from upx_gui.core.config import OperationOptions
from upx_gui.core.exceptions import PackerServiceError, SelectionCancelled
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import OperationMode, OperationTarget
from upx_gui.core.service import PackerService, ProcessRequest

PACKED_SUFFIX = "_packed"

# 参数为建议的输出路径，返回 None 表示用户取消。
OutputChooser = Callable[[str], Awaitable[Optional[str]]]


def default_output_path(input_file: str) -> str:
    """foo.exe -> foo_packed.exe"""

    path = PurePath(input_file)
    return str(path.with_name(f"{path.stem}{PACKED_SUFFIX}{path.suffix}"))


async def accept_default_output(suggested: str) -> Optional[str]:
    return suggested


class TargetOperation:
    """对一个目标执行加壳或脱壳，并把结果写入日志。

    失败时抛出异常（``SelectionCancelled`` 或 ``PackerServiceError``），
    由调用方决定如何计数。
    """

    def __init__(
        self,
        service: PackerService,
        sink: LogSink,
        choose_output: OutputChooser = accept_default_output,
    ) -> None:
        self._service = service
        self._sink = sink
        self._choose_output = choose_output

    async def _resolve_output(self, target: OperationTarget, mode: OperationMode, options: OperationOptions) -> str:
        # 脱壳总是直接恢复原文件
        if mode is OperationMode.DECOMPRESS or options.overwrite:
            self._sink.info("将覆盖原文件")
            return target.path

        output = await self._choose_output(default_output_path(target.path))
        if not output:
            self._sink.warning("未选择输出位置")
            raise SelectionCancelled(f"未选择输出位置: {target.path}")
        self._sink.info(f"输出文件: {output}")
        return output

    async def __call__(self, target: OperationTarget, mode: OperationMode, options: OperationOptions) -> str:
        output = await self._resolve_output(target, mode, options)
        request = ProcessRequest.build(mode, target.path, output, options)

        if options.ultra_brute:
            self._sink.info("已启用极限压缩模式")
        if options.force_compress:
            self._sink.warning("已启用强制压缩模式")
        self._sink.info(f"开始{mode.label}...")

        try:
            result = await self._service.process(request)
        except PackerServiceError as exc:
            self._sink.extend(classify_error(str(exc)))
            raise

        self._sink.extend(classify_result(result))
        self._sink.success("操作完成!", highlight=True)
        return result
