"""
重试机制模块

基于 Tenacity 库提供指数退避重试功能。
状态检查核心本身不重试, 重试策略由调用方 (CLI 等) 按需叠加。
"""

import logging

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from .errors import is_backing_unavailable_error

logger = logging.getLogger(__name__)


def retry_on_backing_unavailable(
    max_attempts: int = 3,
    wait_min: float = 1,
    wait_max: float = 10,
):
    """控制面不可达时的重试装饰器

    只对 is_backing_unavailable_error 认可的异常重试,
    其余异常 (逻辑错误、权限错误) 直接抛出

    Args:
        max_attempts: 最大尝试次数 (默认 3)
        wait_min: 最小等待时间 (秒, 默认 1)
        wait_max: 最大等待时间 (秒, 默认 10)

    Returns:
        装饰器函数 (同时支持同步和异步函数)

    Example:
        @retry_on_backing_unavailable(max_attempts=5)
        async def fetch_status(checker, name):
            return await checker.get_status(name)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=wait_min, max=wait_max),
        retry=retry_if_exception(is_backing_unavailable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
