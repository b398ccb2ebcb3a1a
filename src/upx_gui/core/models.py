"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class OperationMode(str, Enum):
    """一次批处理使用的操作模式，值即服务端的 mode 字段。"""

    COMPRESS = "compress"
    DECOMPRESS = "decompress"

    @property
    def label(self) -> str:
        return "加壳压缩" if self is OperationMode.COMPRESS else "脱壳解压"

    @property
    def verb(self) -> str:
        return self.label[:2]


class Severity(str, Enum):
    """日志事件的级别。"""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class OperationTarget:
    """待处理的单个可执行文件。"""

    path: str


@dataclass(frozen=True, slots=True)
class LogEvent:
    """一条已分类的状态日志，创建后不可修改。"""

    message: str
    severity: Severity = Severity.INFO
    highlight: bool = False
    timestamp: datetime = field(default_factory=datetime.now)

    def format_line(self) -> str:
        """返回带时间前缀的显示文本，多行消息合并为一行。"""

        text = " ".join(self.message.splitlines())
        return f"[{self.timestamp:%H:%M:%S}] {text}"


@dataclass(slots=True)
class BatchRun:
    """单次批处理的计数。"""

    total: int
    concurrency: int
    succeeded: int = 0
    failed: int = 0

    @property
    def finished(self) -> int:
        return self.succeeded + self.failed

    @property
    def is_complete(self) -> bool:
        return self.finished == self.total
