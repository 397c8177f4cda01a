"""
Tenacity 重试装饰器模块

为搜索引擎 I/O 提供指数退避重试。只重试连接类的瞬时错误，
文档被拒绝（4xx）之类的错误直接抛出。
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import ConnectionTimeout
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

F = TypeVar("F")

# 搜索引擎瞬时错误
TRANSIENT_SEARCH_ERRORS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    ESConnectionError,
    ConnectionTimeout,
)


def create_retry_decorator(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    exponential_base: int = 2,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    """
    创建自定义重试装饰器

    Args:
        max_attempts: 最大重试次数（默认：3）
        min_wait: 最小等待时间（秒）（默认：1.0）
        max_wait: 最大等待时间（秒）（默认：10.0）
        exponential_base: 指数退避基数（默认：2）
        exceptions: 需要重试的异常类型元组

    Returns:
        重试装饰器函数

    Example:
        ```python
        @create_retry_decorator(max_attempts=5, min_wait=2.0)
        async def send(body: bytes) -> dict:
            return await client.bulk(operations=body)
        ```
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait,
            max=max_wait,
            exp_base=exponential_base,
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

