"""通过加壳服务读写界面设置。"""

from __future__ import annotations

import logging

from upx_gui.core.config import AppConfig
from upx_gui.core.exceptions import InvalidConfigurationError, PackerServiceError
from upx_gui.core.service import PackerService

LOGGER = logging.getLogger(__name__)


class ConfigStore:
    """配置读写失败只记录诊断日志，不打断用户操作。"""

    def __init__(self, service: PackerService) -> None:
        self._service = service

    async def load(self) -> AppConfig:
        try:
            payload = await self._service.load_config()
            return AppConfig.from_payload(payload)
        except (PackerServiceError, InvalidConfigurationError) as exc:
            LOGGER.warning("读取配置失败，使用默认配置: %s", exc)
            return AppConfig()

    async def save(self, config: AppConfig) -> bool:
        try:
            await self._service.save_config(config.to_payload())
        except PackerServiceError as exc:
            LOGGER.warning("保存配置失败: %s", exc)
            return False
        return True
