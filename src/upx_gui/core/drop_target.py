"""根据拖放坐标判断目标区域（加壳按钮、脱壳按钮或都不是）。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from upx_gui.core.models import OperationMode

LOGGER = logging.getLogger(__name__)

COMPRESS_REGION = "compress"
DECOMPRESS_REGION = "decompress"

# 固定的优先级：先检查加壳区域
REGION_PRIORITY: tuple[tuple[str, OperationMode], ...] = (
    (COMPRESS_REGION, OperationMode.COMPRESS),
    (DECOMPRESS_REGION, OperationMode.DECOMPRESS),
)


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Rect:
    """屏幕坐标中的矩形，边界包含在内。"""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_size(cls, x: float, y: float, width: float, height: float) -> "Rect":
        return cls(left=x, top=y, right=x + width, bottom=y + height)

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom


LayoutProvider = Callable[[], Mapping[str, Rect]]


class DropTargetClassifier:
    """带缓存的拖放区域判定。

    ``layout`` 返回当前布局下各区域的矩形。窗口尺寸变化时调用
    ``invalidate`` 清空缓存，下一次判定时重新读取布局。
    """

    def __init__(self, layout: LayoutProvider) -> None:
        self._layout = layout
        self._geometry: dict[str, Rect] = {}

    @property
    def is_cached(self) -> bool:
        return bool(self._geometry)

    def invalidate(self) -> None:
        self._geometry = {}

    def _ensure_geometry(self) -> Mapping[str, Rect]:
        if not self._geometry:
            self._geometry = dict(self._layout())
            LOGGER.debug("拖放区域缓存已重建: %s", sorted(self._geometry))
        return self._geometry

    def classify(self, position: Optional[Point]) -> Optional[OperationMode]:
        if position is None:
            return None
        geometry = self._ensure_geometry()
        for region, mode in REGION_PRIORITY:
            rect = geometry.get(region)
            if rect is not None and rect.contains(position):
                return mode
        return None
