"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ProgressUpdate:
    """批处理过程中的进度信息（每完成一组发出一次）。"""

    total: int
    completed: int
    wave: int = 0
    wave_count: int = 0
    message: Optional[str] = None
    status: str = "running"
