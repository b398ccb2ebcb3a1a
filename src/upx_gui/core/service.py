"""加壳服务（宿主桥接）的调用约定。

真正的 UPX 调用、文件夹扫描和配置读写都由宿主提供，这里只描述接口形状。
所有方法都是协程；服务拒绝调用时应抛出 ``PackerServiceError``，
其文本会被原样交给错误分类器。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from upx_gui.core.config import OperationOptions
from upx_gui.core.models import OperationMode


@dataclass(frozen=True, slots=True)
class ProcessRequest:
    """process 远程调用的参数。"""

    mode: str
    input_file: str
    output_file: str
    compression_level: str
    backup: bool
    ultra_brute: bool
    force: bool

    @classmethod
    def build(
        cls,
        mode: OperationMode,
        input_file: str,
        output_file: str,
        options: OperationOptions,
    ) -> "ProcessRequest":
        return cls(
            mode=mode.value,
            input_file=input_file,
            output_file=output_file,
            compression_level=options.level_argument,
            backup=options.backup,
            ultra_brute=options.ultra_brute,
            force=options.force_compress,
        )

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@runtime_checkable
class PackerService(Protocol):
    async def get_version(self) -> str: ...

    async def scan_folder(self, folder_path: str, include_subfolders: bool) -> Sequence[str]: ...

    async def process(self, request: ProcessRequest) -> str: ...

    async def refresh_icon_cache(self) -> None: ...

    async def load_config(self) -> Mapping[str, Any]: ...

    async def save_config(self, payload: Mapping[str, Any]) -> None: ...
