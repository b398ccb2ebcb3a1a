"""界面设置与单次操作参数的配置模型。"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional, Union

from upx_gui.core.exceptions import InvalidConfigurationError

BEST_LEVEL = "best"
# 滑动条的第 10 档代表 "best"。
SLIDER_BEST_POSITION = 10
DEFAULT_LEVEL = 9

CompressionLevel = Union[int, str]

LEVEL_DESCRIPTIONS = {
    1: "最快速度，压缩率最低",
    2: "较快速度，较低压缩率",
    3: "快速压缩",
    4: "平衡模式",
    5: "标准压缩",
    6: "良好压缩",
    7: "较高压缩率",
    8: "高压缩率",
    9: "推荐级别，平衡速度和压缩率",
    10: "极致压缩，速度最慢",
}

MIN_CONCURRENCY = 2
MAX_CONCURRENCY = 16


def default_concurrency(cpu_count: Optional[int] = None) -> int:
    """按 CPU 数估算并发宽度：clamp(2, cpu * 2, 16)。"""

    cores = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(MIN_CONCURRENCY, min(cores * 2, MAX_CONCURRENCY))


DEFAULT_CONCURRENCY = default_concurrency()


def level_from_slider(position: int) -> CompressionLevel:
    """将滑动条位置 (1..10) 转为压缩级别。"""

    if position == SLIDER_BEST_POSITION:
        return BEST_LEVEL
    if not 1 <= position <= 9:
        raise InvalidConfigurationError(f"压缩级别超出范围: {position}")
    return position


def describe_level(position: int) -> str:
    label = "级别 best" if position == SLIDER_BEST_POSITION else f"级别 {position}"
    description = LEVEL_DESCRIPTIONS.get(position, "")
    return f"{label}  {description}".rstrip()


@dataclass(frozen=True, slots=True)
class OperationOptions:
    """单次操作使用的参数快照。"""

    level: CompressionLevel = 9
    overwrite: bool = True
    backup: bool = False
    ultra_brute: bool = False
    force_compress: bool = False

    def __post_init__(self) -> None:
        if self.level == BEST_LEVEL:
            return
        # bool 是 int 的子类，需要单独排除
        if isinstance(self.level, bool) or not isinstance(self.level, int) or not 1 <= self.level <= 9:
            raise InvalidConfigurationError(f"压缩级别必须为 1-9 或 best: {self.level!r}")

    @property
    def level_argument(self) -> str:
        """服务端 compression_level 字段："best" 或单个数字。"""

        return BEST_LEVEL if self.level == BEST_LEVEL else str(self.level)


@dataclass(slots=True)
class AppConfig:
    """设置面板上的配置项，通过加壳服务持久化。"""

    compression_level: int = DEFAULT_LEVEL
    overwrite: bool = True
    backup: bool = False
    ultra_brute: bool = False
    include_subfolders: bool = False
    force_compress: bool = False

    def snapshot_options(self) -> OperationOptions:
        return OperationOptions(
            level=level_from_slider(self.compression_level),
            overwrite=self.overwrite,
            backup=self.backup,
            ultra_brute=self.ultra_brute,
            force_compress=self.force_compress,
        )

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AppConfig":
        """从持久化的字典构造配置，忽略未知字段，缺失字段取默认值。"""

        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in payload.items() if key in known}

        level = values.get("compression_level", DEFAULT_LEVEL)
        if isinstance(level, bool) or not isinstance(level, int):
            raise InvalidConfigurationError(f"无法解析压缩级别: {level!r}")
        if not 1 <= level <= SLIDER_BEST_POSITION:
            raise InvalidConfigurationError(f"压缩级别超出范围: {level}")

        for name in known - {"compression_level"}:
            if name in values and not isinstance(values[name], bool):
                raise InvalidConfigurationError(f"配置项 {name} 必须为布尔值")

        return cls(**values)
