"""异常体系

三类错误各自归属单个模型调用，Batch 层捕获后转为 SlotError，不聚合为批次级异常。
"""


class CompareError(Exception):
    """sidebyside 包基础异常"""

    def __init__(self, message: str, model_id: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            model_id: 产生错误的模型 ID（调用前校验失败时为 None）
        """
        super().__init__(message)
        self.message = message
        self.model_id = model_id


class ValidationError(CompareError):
    """调用方输入不合法（空 prompt、超长 prompt、缺失配置）

    在发出请求前立即抛出，不重试。
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, model_id=None)


class NetworkError(CompareError):
    """传输层失败（DNS 解析、连接拒绝、超时等），未收到任何 HTTP 响应

    与 ApiError 的区别：没有 HTTP 状态码。
    """

    def __init__(self, message: str, model_id: str) -> None:
        super().__init__(message, model_id=model_id)


class ApiError(CompareError):
    """上游返回非成功状态，或成功响应结构无效/内容为空

    status 为 None 表示响应结构问题（无 candidates、无 parts、空文本）或未知异常包装。
    """

    def __init__(
        self,
        message: str,
        model_id: str,
        status: int | None = None,
    ) -> None:
        """
        Args:
            message: 错误描述（非成功状态时包含上游 body 文本）
            model_id: 产生错误的模型 ID
            status: 上游 HTTP 状态码
        """
        super().__init__(message, model_id=model_id)
        self.status = status
