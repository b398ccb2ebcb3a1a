"""将拖放或选择的路径展开为待处理目标。"""

from __future__ import annotations

import logging
from typing import Iterable

from upx_gui.core.exceptions import PackerServiceError
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import OperationTarget
from upx_gui.core.service import PackerService

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".exe", ".dll")


def is_supported_file(path: str) -> bool:
    return path.lower().endswith(SUPPORTED_EXTENSIONS)


class FileSetResolver:
    """先尝试按文件夹扫描，扫描为空时再按单个文件处理。"""

    def __init__(self, service: PackerService, sink: LogSink) -> None:
        self._service = service
        self._sink = sink

    async def _scan(self, path: str, include_subfolders: bool) -> list[str]:
        try:
            return list(await self._service.scan_folder(path, include_subfolders))
        except PackerServiceError as exc:
            self._sink.error(f"扫描文件夹失败: {exc}")
            return []

    async def resolve(self, path: str, include_subfolders: bool) -> list[OperationTarget]:
        files = await self._scan(path, include_subfolders)
        if files:
            self._sink.info(f"扫描文件夹: {path} (找到 {len(files)} 个文件)")
            return [OperationTarget(file) for file in files]

        if is_supported_file(path):
            return [OperationTarget(path)]
        LOGGER.debug("忽略不支持的路径: %s", path)
        return []

    async def resolve_all(self, paths: Iterable[str], include_subfolders: bool) -> list[OperationTarget]:
        collected: list[OperationTarget] = []
        for path in paths:
            collected.extend(await self.resolve(path, include_subfolders))
        return collected
