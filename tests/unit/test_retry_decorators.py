"""
Tenacity 重试装饰器单元测试

测试 catalog_search/utils/retry_decorators.py 模块的功能。
"""

import pytest
from elasticsearch import ConnectionError as ESConnectionError

from catalog_search.utils.retry_decorators import TRANSIENT_SEARCH_ERRORS, create_retry_decorator


class TestRetryDecorator:
    """测试基础重试装饰器"""

    @pytest.mark.asyncio
    async def test_async_function_success_on_first_try(self):
        """测试异步函数第一次尝试就成功"""

        @create_retry_decorator(max_attempts=3, min_wait=0, max_wait=0)
        async def always_succeed() -> str:
            return "success"

        result = await always_succeed()
        assert result == "success"

    @pytest.mark.asyncio
    async def test_async_function_retry_until_success(self):
        """测试异步函数重试后成功"""
        attempts = [0]

        @create_retry_decorator(max_attempts=3, min_wait=0, max_wait=0)
        async def fail_twice_then_succeed() -> str:
            attempts[0] += 1
            if attempts[0] < 3:
                raise ConnectionError("临时错误")
            return "success after retries"

        result = await fail_twice_then_succeed()
        assert result == "success after retries"
        assert attempts[0] == 3

    @pytest.mark.asyncio
    async def test_async_function_max_attempts_exceeded(self):
        """测试异步函数超过最大重试次数"""

        @create_retry_decorator(max_attempts=2, min_wait=0, max_wait=0)
        async def always_fail() -> str:
            raise ConnectionError("持续错误")

        with pytest.raises(ConnectionError, match="持续错误"):
            await always_fail()

    @pytest.mark.asyncio
    async def test_async_function_specific_exception_only(self):
        """测试只对特定异常类型重试"""
        attempts = [0]

        @create_retry_decorator(
            max_attempts=3,
            min_wait=0,
            max_wait=0,
            exceptions=(ValueError,),  # 只重试 ValueError
        )
        async def fail_with_different_errors() -> str:
            attempts[0] += 1
            if attempts[0] == 1:
                raise ValueError("可重试错误")
            if attempts[0] == 2:
                raise TypeError("不可重试错误")
            return "success"

        # TypeError 不会重试，直接抛出
        with pytest.raises(TypeError, match="不可重试错误"):
            await fail_with_different_errors()
        assert attempts[0] == 2

    def test_sync_function_retry_until_success(self):
        """测试同步函数重试后成功"""
        attempts = [0]

        @create_retry_decorator(max_attempts=3, min_wait=0, max_wait=0)
        def fail_twice_then_succeed() -> str:
            attempts[0] += 1
            if attempts[0] < 3:
                raise ConnectionError("临时错误")
            return "success after retries"

        result = fail_twice_then_succeed()
        assert result == "success after retries"
        assert attempts[0] == 3


class TestTransientSearchErrors:
    """测试搜索引擎瞬时错误重试"""

    @pytest.mark.asyncio
    async def test_elasticsearch_connection_error_is_retried(self):
        """测试 elasticsearch 连接错误会重试"""
        attempts = [0]

        @create_retry_decorator(max_attempts=2, min_wait=0, max_wait=0, exceptions=TRANSIENT_SEARCH_ERRORS)
        async def bulk() -> dict:
            attempts[0] += 1
            if attempts[0] == 1:
                raise ESConnectionError("connection refused")
            return {"errors": False, "items": []}

        assert await bulk() == {"errors": False, "items": []}
        assert attempts[0] == 2

    @pytest.mark.asyncio
    async def test_document_errors_are_not_retried(self):
        """测试文档错误不重试"""
        attempts = [0]

        @create_retry_decorator(max_attempts=3, min_wait=0, max_wait=0, exceptions=TRANSIENT_SEARCH_ERRORS)
        async def index() -> dict:
            attempts[0] += 1
            raise ValueError("mapper_parsing_exception")

        with pytest.raises(ValueError):
            await index()
        assert attempts[0] == 1
