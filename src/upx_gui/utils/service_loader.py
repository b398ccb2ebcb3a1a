"""按 "package.module:factory" 形式加载宿主提供的加壳服务。"""

from __future__ import annotations

import importlib
from typing import Any

from upx_gui.core.exceptions import InvalidConfigurationError
from upx_gui.core.service import PackerService

SERVICE_ENV_VAR = "UPX_GUI_SERVICE"


def load_service(spec: str, **kwargs: Any) -> PackerService:
    """导入 ``spec`` 指向的工厂（类或函数）并调用，返回服务实例。"""

    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise InvalidConfigurationError(f"服务路径必须形如 package.module:factory: {spec}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise InvalidConfigurationError(f"无法导入服务模块: {module_name}") from exc

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise InvalidConfigurationError(f"服务模块中不存在: {attr}") from exc

    service = target(**kwargs) if callable(target) else target
    if not isinstance(service, PackerService):
        raise InvalidConfigurationError(f"{spec} 未实现 PackerService 接口")
    return service
