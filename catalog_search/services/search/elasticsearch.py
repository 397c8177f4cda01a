"""Elasticsearch 客户端封装

提供异步 Elasticsearch 客户端，支持：
- 已序列化字节文档的单条与批量索引（不再经过 JSON 树序列化）
- 文档删除
- 搜索
- 索引前缀隔离

使用示例:
    ```python
    from catalog_search.services.search.elasticsearch import get_elasticsearch_client

    es = await get_elasticsearch_client()

    outcome = await es.index_raw("content", "42", b'{"name":"Hello"}')
    if not outcome.accepted:
        print(outcome.error)

    results = await es.search("content", {"query": {"match_all": {}}})
    ```
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from elasticsearch import AsyncElasticsearch

from catalog_search.observability.logging import get_logger
from catalog_search.utils.retry_decorators import TRANSIENT_SEARCH_ERRORS, create_retry_decorator

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexOutcome:
    """单个文档的索引结果

    Attributes:
        document_id: 文档 ID
        accepted: 是否被接受
        error: 拒绝原因
    """

    document_id: str | None
    accepted: bool
    error: str | None = None


# ============== Elasticsearch 客户端 ==============


class ElasticsearchClient:
    """Elasticsearch 异步客户端封装

    文档以字节形式提交，请求失败时记录日志并返回拒绝结果，连接类瞬时错误按配置重试。
    """

    def __init__(
        self,
        hosts: str | list[str] | None = None,
        username: str | None = None,
        password: str | None = None,
        api_key: str | None = None,
        index_prefix: str = "",
        verify_certs: bool = True,
        max_retries: int = 3,
        retry_min_wait: float = 0.5,
        retry_max_wait: float = 10.0,
        **kwargs,
    ):
        """初始化 Elasticsearch 客户端

        Args:
            hosts: Elasticsearch 主机地址，支持多个
            username: 用户名
            password: 密码
            api_key: API Key（替代用户名密码）
            index_prefix: 索引前缀
            verify_certs: 是否验证证书
            max_retries: 瞬时错误最大尝试次数
            retry_min_wait: 最小退避时间（秒）
            retry_max_wait: 最大退避时间（秒）
            **kwargs: 其他 elasticsearch-py 参数
        """
        self.hosts = hosts or ["http://localhost:9200"]
        self.username = username
        self.password = password
        self.api_key = api_key
        self.index_prefix = index_prefix
        self.verify_certs = verify_certs
        self._client: AsyncElasticsearch | None = None
        self._extra_kwargs = kwargs
        self._send = create_retry_decorator(
            max_attempts=max_retries,
            min_wait=retry_min_wait,
            max_wait=retry_max_wait,
            exceptions=TRANSIENT_SEARCH_ERRORS,
        )(self._perform)

    async def connect(self) -> None:
        """连接 Elasticsearch（幂等）"""
        if self._client is not None:
            return

        if self.api_key:
            auth = {"api_key": self.api_key}
        elif self.username and self.password:
            auth = {"basic_auth": (self.username, self.password)}
        else:
            auth = {}

        try:
            self._client = AsyncElasticsearch(
                hosts=self.hosts,
                verify_certs=self.verify_certs,
                **auth,
                **self._extra_kwargs,
            )

            info = await self._client.info()
            logger.info(
                "elasticsearch_connected",
                cluster_name=info.get("cluster_name"),
                version=info.get("version", {}).get("number"),
            )

        except Exception as e:
            logger.error("elasticsearch_connect_failed", error=str(e))
            raise

    async def close(self) -> None:
        """关闭客户端连接"""
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("elasticsearch_closed")

    @property
    def client(self) -> AsyncElasticsearch:
        """获取底层客户端（确保已连接）"""
        if self._client is None:
            raise RuntimeError("Elasticsearch client is not connected. Call connect() first.")
        return self._client

    async def _perform(self, method: Callable[..., Awaitable[Any]], **params: Any) -> Any:
        return await method(**params)

    def resolve_index(self, index: str) -> str:
        """解析索引名称（添加前缀）"""
        if self.index_prefix and not index.startswith(self.index_prefix):
            return f"{self.index_prefix}_{index}"
        return index

    # ============== 文档操作 ==============

    async def index_raw(
        self,
        index: str,
        id: str | None,
        body: bytes,
        pipeline: str | None = None,
        refresh: bool = False,
    ) -> IndexOutcome:
        """索引已序列化的单个文档

        Args:
            index: 索引名称
            id: 文档 ID（None 自动生成）
            body: JSON 对象字节
            pipeline: ingest 管道
            refresh: 是否立即刷新

        Returns:
            IndexOutcome
        """
        resolved_index = self.resolve_index(index)
        params: dict[str, Any] = {"index": resolved_index, "id": id, "document": body, "refresh": refresh}
        if pipeline:
            params["pipeline"] = pipeline

        try:
            response = await self._send(self.client.index, **params)

            doc_id = response.get("_id", id)
            logger.debug("document_indexed", index=resolved_index, id=doc_id)
            return IndexOutcome(document_id=doc_id, accepted=True)

        except Exception as e:
            logger.error("document_index_failed", index=resolved_index, id=id, error=str(e))
            return IndexOutcome(document_id=id, accepted=False, error=str(e))

    async def bulk_raw(
        self,
        operations: Sequence[bytes],
        refresh: bool = False,
    ) -> list[IndexOutcome]:
        """提交已序列化的批量操作

        Args:
            operations: NDJSON 行（动作行与文档行交替）
            refresh: 是否立即刷新

        Returns:
            每个动作的 IndexOutcome（与提交顺序一致）
        """
        if not operations:
            return []

        try:
            response = await self._send(self.client.bulk, operations=list(operations), refresh=refresh)

        except Exception as e:
            logger.error("bulk_index_failed", error=str(e))
            return [IndexOutcome(document_id=None, accepted=False, error=str(e))]

        outcomes = []
        for item in response.get("items", []):
            result = next(iter(item.values()), {})
            error = result.get("error")
            status = result.get("status", 500)
            if error or status >= 300:
                reason = error.get("reason") if isinstance(error, dict) else error
                outcomes.append(IndexOutcome(
                    document_id=result.get("_id"),
                    accepted=False,
                    error=str(reason or f"status {status}"),
                ))
            else:
                outcomes.append(IndexOutcome(document_id=result.get("_id"), accepted=True))

        failed = sum(1 for outcome in outcomes if not outcome.accepted)
        logger.info("bulk_index_completed", success=len(outcomes) - failed, failed=failed)
        return outcomes

    async def delete_document(
        self,
        index: str,
        id: str,
        refresh: bool = False,
    ) -> bool:
        """删除文档"""
        try:
            resolved_index = self.resolve_index(index)
            await self.client.delete(index=resolved_index, id=id, refresh=refresh)
            logger.debug("document_deleted", index=resolved_index, id=id)
            return True

        except Exception as e:
            logger.error("document_delete_failed", index=index, id=id, error=str(e))
            return False

    # ============== 搜索操作 ==============

    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        """执行搜索

        Args:
            index: 索引名称
            body: 搜索请求体（query/aggs/from/size 等）

        Returns:
            搜索结果（失败时返回空结果）
        """
        try:
            resolved_index = self.resolve_index(index)
            response = await self._send(self.client.search, index=resolved_index, body=body)

            logger.debug(
                "search_executed",
                index=resolved_index,
                hits=len(response.get("hits", {}).get("hits", [])),
            )
            return response

        except Exception as e:
            logger.error("search_failed", index=index, error=str(e))
            return {"hits": {"hits": [], "total": {"value": 0}}}


# ============== 全局客户端实例 ==============

_client: ElasticsearchClient | None = None


def create_elasticsearch_client(settings: Any = None) -> ElasticsearchClient:
    """根据配置创建客户端（未连接）"""
    if settings is None:
        from catalog_search.config.settings import get_settings

        settings = get_settings()

    return ElasticsearchClient(
        hosts=settings.elasticsearch_hosts,
        username=settings.elasticsearch_username,
        password=settings.elasticsearch_password,
        api_key=settings.elasticsearch_api_key,
        index_prefix=settings.elasticsearch_index_prefix,
        verify_certs=settings.elasticsearch_verify_certs,
        max_retries=settings.index_max_retries,
        retry_min_wait=settings.index_retry_min_wait,
        retry_max_wait=settings.index_retry_max_wait,
    )


async def get_elasticsearch_client() -> ElasticsearchClient:
    """获取 Elasticsearch 客户端实例（单例）"""
    global _client

    if _client is None:
        client = create_elasticsearch_client()
        await client.connect()
        _client = client

    return _client


async def close_elasticsearch_client() -> None:
    """关闭全局客户端"""
    global _client
    if _client is not None:
        await _client.close()
        _client = None


# ============== 上下文管理器 ==============


@asynccontextmanager
async def elasticsearch_context(settings: Any = None) -> AsyncIterator[ElasticsearchClient]:
    """Elasticsearch 上下文管理器

    Args:
        settings: 配置（None 使用全局配置）

    Yields:
        ElasticsearchClient 实例
    """
    client = create_elasticsearch_client(settings)
    try:
        await client.connect()
        yield client
    finally:
        await client.close()
