"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 API 层或 CLI 层做统一捕获与用户提示。

分类：
- ValidationError: 缺少必需输入（如空问题），映射为 4xx。
- UpstreamError: LLM 或 Wikipedia 调用失败，由上层降级为合法结果。
- TransportError: 中继流在传输途中中断。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_QUERY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、missing 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数校验失败。"""


class ConfigError(BusinessError):
    """启动配置缺失或无效。"""


class UpstreamError(BusinessError):
    """上游服务（LLM / Wikipedia）调用失败。"""


class NetworkError(UpstreamError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(UpstreamError):
    """第三方 API 返回非 2xx 或流中出现 error 事件。"""


class RateLimitError(UpstreamError):
    """Provider 限流错误（本项目不做自动重试）。"""


class TransportError(BusinessError):
    """中继事件流在完成前中断。"""
