"""Collaborator 异常体系

外部协作方（条款抽取服务、LLM 审查、报告生成）调用失败时抛出。
这些异常都属于程序失败：执行器会将任务标记为 FAILED 并交给重试 sweep。
业务结论（高风险、不合规）永远不通过异常表达。
"""


class CollaboratorError(Exception):
    """Collaborator 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ServiceUnreachableError(CollaboratorError):
    """外部服务不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, service_url: str, original_error: Exception) -> None:
        """
        Args:
            service_url: 尝试连接的服务地址
            original_error: 原始异常
        """
        super().__init__(
            f"外部服务不可达: {service_url} -- {original_error}",
            recoverable=True,
        )
        self.service_url = service_url
        self.original_error = original_error


class ResponseFormatError(CollaboratorError):
    """外部服务响应为空或无法解析"""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message, recoverable=True)
        self.raw = raw
