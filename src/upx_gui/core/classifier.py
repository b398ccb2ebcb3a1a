"""将服务返回的多行文本拆分为分类后的日志事件。

规则按顺序匹配，命中第一条即停止。规则本身只是 ``(匹配方式, 关键字, 结果)``
组成的表，不依赖任何状态。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence

from upx_gui.core.models import LogEvent, Severity


class MatchKind(str, Enum):
    CONTAINS = "contains"
    PREFIX = "prefix"


@dataclass(frozen=True, slots=True)
class Rule:
    """一条分类规则。"""

    kind: MatchKind
    needles: tuple[str, ...]
    severity: Severity
    highlight: bool = False

    def matches(self, line: str) -> bool:
        if self.kind is MatchKind.PREFIX:
            return line.startswith(self.needles)
        return any(needle in line for needle in self.needles)


RESULT_RULES: tuple[Rule, ...] = (
    Rule(MatchKind.CONTAINS, ("操作成功", "操作完成", "处理完成"), Severity.SUCCESS, highlight=True),
    Rule(MatchKind.PREFIX, ("输出:", "原始大小", "处理后大小", "压缩率"), Severity.SUCCESS),
    Rule(MatchKind.CONTAINS, ("UPX 输出", "->", "Packed ", "Unpacked "), Severity.INFO),
    Rule(MatchKind.CONTAINS, ("扫描", "检测", "scan", "detect"), Severity.WARNING),
)

ERROR_MARKER_RULE = Rule(MatchKind.CONTAINS, ("[错误]", "[error]", "[ERROR]"), Severity.ERROR)
ERROR_RULES: tuple[Rule, ...] = (
    ERROR_MARKER_RULE,
    Rule(MatchKind.CONTAINS, ("可能原因", "解决方案", "错误信息"), Severity.WARNING),
    Rule(MatchKind.PREFIX, ("-",), Severity.INFO),
)


def _lines(text: str) -> Iterator[str]:
    for raw in text.splitlines():
        line = raw.strip()
        if line:
            yield line


def _first_match(rules: Sequence[Rule], line: str) -> Optional[Rule]:
    for rule in rules:
        if rule.matches(line):
            return rule
    return None


def classify_result(text: str) -> list[LogEvent]:
    """成功结果的分类，未命中的行为 info。"""

    events: list[LogEvent] = []
    for line in _lines(text):
        rule = _first_match(RESULT_RULES, line)
        if rule is None:
            events.append(LogEvent(line, Severity.INFO))
        else:
            events.append(LogEvent(line, rule.severity, rule.highlight))
    return events


def classify_error(text: str) -> list[LogEvent]:
    """错误文本的分类。

    第一行总是视为主要错误；其余行按规则表分类，未命中的行为 warning。
    """

    events: list[LogEvent] = []
    for index, line in enumerate(_lines(text)):
        if index == 0:
            events.append(LogEvent(line, Severity.ERROR))
            continue
        rule = _first_match(ERROR_RULES, line)
        severity = rule.severity if rule is not None else Severity.WARNING
        events.append(LogEvent(line, severity))
    return events
