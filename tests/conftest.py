"""测试共用的假加壳服务。"""

from __future__ import annotations

import asyncio
from pathlib import PurePath
from typing import Any, Mapping, Optional, Sequence

import pytest

from upx_gui.core.exceptions import PackerServiceError
from upx_gui.core.log_sink import LogSink
from upx_gui.core.service import ProcessRequest

ALREADY_PACKED = (
    "[错误] 文件已经被 UPX 加壳过了\n\n解决方案:\n"
    "  - 如果要重新压缩，请先使用「脱壳解压」功能\n  - 或者选择其他未加壳的文件"
)


class FakePackerService:
    """内存中的加壳服务。

    ``folders`` 模拟文件夹内容，``failing`` 中的文件处理时会被拒绝。
    """

    def __init__(
        self,
        folders: Optional[Mapping[str, Sequence[str]]] = None,
        failing: Sequence[str] = (),
        version: Optional[str] = "upx 4.2.4",
        config: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.folders = {key: list(value) for key, value in (folders or {}).items()}
        self.failing = set(failing)
        self.version = version
        self.config = dict(config) if config is not None else None
        self.config_error = False
        self.scan_error = False
        self.requests: list[ProcessRequest] = []
        self.scans: list[tuple[str, bool]] = []
        self.saved: list[dict] = []
        self.icon_refreshes = 0
        self.active = 0
        self.max_active = 0

    async def get_version(self) -> str:
        if self.version is None:
            raise PackerServiceError("未找到 UPX 工具！")
        return self.version

    async def scan_folder(self, folder_path: str, include_subfolders: bool) -> Sequence[str]:
        self.scans.append((folder_path, include_subfolders))
        if self.scan_error:
            raise PackerServiceError(f"路径不存在: {folder_path}")
        if folder_path not in self.folders:
            raise PackerServiceError(f"不是文件夹: {folder_path}")
        return list(self.folders[folder_path])

    async def process(self, request: ProcessRequest) -> str:
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if request.input_file in self.failing:
                raise PackerServiceError(ALREADY_PACKED)
            name = PurePath(request.output_file).name
            return (
                f"操作成功!\n输出: {request.output_file}\n原始大小: 1.00 MB\n"
                f"处理后大小: 400.00 KB\n压缩率: 39%\n\nUPX 输出:\n"
                f"1048576 ->    409600   39.06%    win64/pe     {name}\nPacked 1 file."
            )
        finally:
            self.active -= 1

    async def refresh_icon_cache(self) -> None:
        self.icon_refreshes += 1

    async def load_config(self) -> Mapping[str, Any]:
        if self.config_error:
            raise PackerServiceError("解析配置文件失败")
        return dict(self.config or {})

    async def save_config(self, payload: Mapping[str, Any]) -> None:
        if self.config_error:
            raise PackerServiceError("保存配置文件失败")
        self.saved.append(dict(payload))


@pytest.fixture
def sink() -> LogSink:
    return LogSink()


@pytest.fixture
def service() -> FakePackerService:
    return FakePackerService()


def failing_service() -> FakePackerService:
    """供命令行测试通过 --service 加载。"""

    return FakePackerService(failing=["broken.exe"])
