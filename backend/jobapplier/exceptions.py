"""
业务异常体系

调用方只会看到 ServiceError 的子类：
- ValidationError：输入不合法，调用方可自行修正
- PreconditionError：输入合法但当前状态不允许（未结构化、provider 未配置、生成结果为空）
- NotFoundError：实体不存在
- AuthorizationError：归属不匹配，对外与 NotFoundError 完全一致，避免泄露存在性
- DependencyError：外部 provider / 存储调用失败
- InternalServiceError：未预期异常，对外只暴露通用信息
"""

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceError(Exception):
    """业务异常基类

    message 是内部描述（写日志）；public_message 是对外信息。
    expose_message=True 的子类直接把 message 作为对外信息。
    """

    public_code = "service_error"
    default_message = "请求处理失败"
    expose_message = False

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        if self.expose_message:
            return self.message
        return self.default_message

    def to_public(self) -> dict:
        """对外暴露的错误结构"""
        return {"code": self.public_code, "message": self.public_message}


class ValidationError(ServiceError):
    public_code = "validation_error"
    default_message = "请求参数不合法"
    expose_message = True


class PreconditionError(ServiceError):
    public_code = "precondition_failed"
    default_message = "当前状态不允许该操作"
    expose_message = True


class NotFoundError(ServiceError):
    public_code = "not_found"
    default_message = "资源不存在"


class AuthorizationError(NotFoundError):
    """归属不匹配；继承 NotFoundError，public_code / public_message 与其相同"""


class DependencyError(ServiceError):
    public_code = "dependency_failed"
    default_message = "依赖服务暂时不可用，请稍后重试"


class InternalServiceError(ServiceError):
    public_code = "internal_error"
    default_message = "内部错误，请稍后重试"


def service_boundary(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    编排层边界装饰器

    - ServiceError 原样抛出（已识别的错误，由调用方翻译为具体信号）
    - 其他 Exception 记录完整堆栈和关联 ID 后，转换为 InternalServiceError，
      不向调用方暴露内部信息
    - asyncio.CancelledError 属于 BaseException，不拦截

    Args:
        operation: 操作名，写入日志便于关联
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except ServiceError as e:
                logger.warning("%s 失败 [%s]: %s", operation, e.public_code, e.message)
                raise
            except Exception:
                context = {k: v for k, v in kwargs.items() if k.endswith("_id")}
                logger.exception("%s 出现未预期异常 context=%s args=%s", operation, context, _ids_from_args(args))
                raise InternalServiceError() from None
        return wrapper
    return decorator


def _ids_from_args(args: tuple) -> list:
    # 跳过 self，只保留 int 类的标识参数，避免把文件字节写进日志
    return [a for a in args[1:] if isinstance(a, int)]
