"""项目内使用的自定义异常定义。"""


class UpxGuiError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(UpxGuiError):
    """配置不合法时抛出。"""


class PackerServiceError(UpxGuiError):
    """加壳服务拒绝了一次远程调用，异常文本即服务返回的错误信息。"""


class SelectionCancelled(UpxGuiError):
    """用户取消了输入文件或输出位置的选择。"""


class BatchInvariantError(UpxGuiError):
    """批处理计数不一致（成功 + 失败 != 总数），属于程序缺陷。"""
