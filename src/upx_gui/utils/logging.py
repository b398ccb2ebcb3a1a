"""日志初始化。"""

from __future__ import annotations

import logging


def setup_logging(level: int = logging.INFO, *, quiet_sink: bool = False) -> None:
    """初始化项目日志配置。

    ``quiet_sink`` 为 True 时不把面板日志重复输出到控制台（CLI 已自行渲染）。
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(processName)s] %(levelname)s %(name)s: %(message)s",
    )
    if quiet_sink:
        logging.getLogger("upx_gui.core.log_sink").setLevel(logging.CRITICAL)
