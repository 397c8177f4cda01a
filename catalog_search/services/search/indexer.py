"""内容索引器

把内容对象经 DocumentAugmentor 序列化后提交到 Elasticsearch，支持单条与批量索引。
单个文档序列化失败（如修饰器异常）只会拒绝该文档，不影响同批其他文档，
失败文档的任何字节都不会提交。

使用示例:
    ```python
    from catalog_search.services.search.indexer import create_content_indexer

    indexer = await create_content_indexer(relations=relation_repo, contents=content_repo)

    report = await indexer.index_many(contents)
    for outcome in report.rejected:
        print(outcome.document_id, outcome.error)
    ```
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from catalog_search.models.content import Content, ContentRef, MediaContent
from catalog_search.models.relations import ContentStore, RelationGraphSource
from catalog_search.observability.logging import get_logger
from catalog_search.services.indexing.ancestors import AncestorResolver
from catalog_search.services.indexing.augmentor import DocumentAugmentor, SerializedDocument
from catalog_search.services.indexing.builtin import default_modifiers
from catalog_search.services.indexing.exclusion import PropertyFilterPolicy
from catalog_search.services.indexing.modifiers import IndexingModifier, ModifierPipeline
from catalog_search.services.indexing.serializer import ContentSerializer
from catalog_search.services.search.elasticsearch import ElasticsearchClient, IndexOutcome

logger = get_logger(__name__)


@dataclass
class IndexReport:
    """索引结果汇总"""

    outcomes: list[IndexOutcome] = field(default_factory=list)

    @property
    def success(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.accepted)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.success

    @property
    def rejected(self) -> list[IndexOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.accepted]

    def extend(self, outcomes: Iterable[IndexOutcome]) -> None:
        self.outcomes.extend(outcomes)


class ContentIndexer:
    """内容索引器"""

    def __init__(
        self,
        client: ElasticsearchClient,
        augmentor: DocumentAugmentor,
        index: str = "content",
        media_pipeline: str | None = None,
        bulk_size: int = 500,
        concurrency: int = 8,
        default_refresh: bool = False,
    ):
        """初始化内容索引器

        Args:
            client: Elasticsearch 客户端
            augmentor: 文档增强序列化器
            index: 目标索引
            media_pipeline: 媒体文件使用的 ingest 管道
            bulk_size: 每批提交的文档数
            concurrency: 并发序列化的文档数
            default_refresh: 是否默认立即刷新
        """
        self.client = client
        self.augmentor = augmentor
        self.index = index
        self.media_pipeline = media_pipeline
        self.bulk_size = bulk_size
        self.concurrency = concurrency
        self.default_refresh = default_refresh

    # ============== 序列化 ==============

    def secondary_process_for(self, content: Content) -> str | None:
        """内容需要的二次处理（ingest 管道）"""
        if isinstance(content, MediaContent) and content.binary_data is not None:
            return self.media_pipeline
        return None

    def serialize(self, content: Content) -> SerializedDocument:
        """序列化内容

        Raises:
            ModifierError: 修饰器处理失败
        """
        return self.augmentor.serialize(content, self.secondary_process_for(content))

    # ============== 单文档操作 ==============

    async def index_content(self, content: Content, refresh: bool | None = None) -> IndexReport:
        """索引单个内容（含兄弟文档）

        Args:
            content: 内容对象
            refresh: 是否立即刷新

        Returns:
            IndexReport（第一个结果为主文档）
        """
        refresh = refresh if refresh is not None else self.default_refresh
        report = IndexReport()

        document, rejection = self._try_serialize(content)
        if document is None:
            report.extend([rejection])
            return report

        report.extend([await self.client.index_raw(
            index=self.index,
            id=document.document_id,
            body=document.body,
            pipeline=document.pipeline,
            refresh=refresh,
        )])

        for sibling in document.siblings:
            report.extend([await self.client.index_raw(
                index=sibling.index or self.index,
                id=sibling.document_id,
                body=sibling.body,
                refresh=refresh,
            )])

        return report

    async def delete_content(self, ref: ContentRef, refresh: bool | None = None) -> bool:
        """删除内容对应的文档"""
        refresh = refresh if refresh is not None else self.default_refresh
        return await self.client.delete_document(self.index, str(ref), refresh=refresh)

    # ============== 批量操作 ==============

    async def index_many(self, contents: Iterable[Content], refresh: bool | None = None) -> IndexReport:
        """批量索引内容

        文档在线程池中并发序列化，再按 bulk_size 分批提交。

        Args:
            contents: 内容对象
            refresh: 是否立即刷新

        Returns:
            IndexReport（序列化失败的文档也计入拒绝结果）
        """
        refresh = refresh if refresh is not None else self.default_refresh
        semaphore = asyncio.Semaphore(self.concurrency)

        async def serialize(content: Content) -> tuple[SerializedDocument | None, IndexOutcome | None]:
            async with semaphore:
                return await asyncio.to_thread(self._try_serialize, content)

        results = await asyncio.gather(*(serialize(content) for content in contents))

        report = IndexReport()
        documents: list[SerializedDocument] = []
        for document, rejection in results:
            if document is None:
                report.extend([rejection])
            else:
                documents.append(document)

        for start in range(0, len(documents), self.bulk_size):
            batch = documents[start:start + self.bulk_size]
            report.extend(await self._send_batch(batch, refresh))

        logger.info(
            "content_batch_indexed",
            index=self.index,
            success=report.success,
            failed=report.failed,
        )
        return report

    def build_bulk_operations(self, documents: Iterable[SerializedDocument]) -> list[bytes]:
        """构建 bulk NDJSON 行（文档字节原样写入，不重新序列化）"""
        operations: list[bytes] = []

        for document in documents:
            action: dict[str, Any] = {"_index": self.client.resolve_index(self.index), "_id": document.document_id}
            if document.pipeline:
                action["pipeline"] = document.pipeline
            operations.append(_action_line(action))
            operations.append(document.body)

            for sibling in document.siblings:
                operations.append(_action_line({
                    "_index": self.client.resolve_index(sibling.index or self.index),
                    "_id": sibling.document_id,
                }))
                operations.append(sibling.body)

        return operations

    # ============== 私有方法 ==============

    def _try_serialize(self, content: Content) -> tuple[SerializedDocument | None, IndexOutcome | None]:
        try:
            return self.serialize(content), None
        except Exception as e:
            logger.error(
                "document_serialize_failed",
                content_id=str(content.content_link),
                name=content.name,
                error=str(e),
            )
            return None, IndexOutcome(document_id=str(content.content_link), accepted=False, error=str(e))

    async def _send_batch(self, batch: list[SerializedDocument], refresh: bool) -> list[IndexOutcome]:
        expected = [
            document_id
            for document in batch
            for document_id in (document.document_id, *(sibling.document_id for sibling in document.siblings))
        ]

        outcomes = await self.client.bulk_raw(self.build_bulk_operations(batch), refresh=refresh)
        if len(outcomes) == len(expected):
            return outcomes

        # 整个请求失败时，本批所有文档都视为拒绝
        error = next((outcome.error for outcome in outcomes if outcome.error), "bulk request failed")
        return [IndexOutcome(document_id=document_id, accepted=False, error=error) for document_id in expected]


def _action_line(action: dict[str, Any]) -> bytes:
    return json.dumps({"index": action}, separators=(",", ":")).encode("utf-8")


# ============== 便捷函数 ==============


def build_augmentor(
    relations: RelationGraphSource,
    contents: ContentStore,
    modifiers: Iterable[IndexingModifier] | None = None,
    settings: Any = None,
) -> DocumentAugmentor:
    """组装默认的文档增强序列化器

    Args:
        relations: 关系数据源
        contents: 内容存储
        modifiers: 修饰器（None 使用内置修饰器）
        settings: 配置（None 使用全局配置）

    Returns:
        DocumentAugmentor 实例
    """
    if modifiers is None:
        modifiers = default_modifiers(AncestorResolver(relations, contents))

    serializer = ContentSerializer(PropertyFilterPolicy.from_settings(settings))
    return DocumentAugmentor(serializer=serializer, pipeline=ModifierPipeline(modifiers))


async def create_content_indexer(
    relations: RelationGraphSource,
    contents: ContentStore,
    client: ElasticsearchClient | None = None,
    modifiers: Iterable[IndexingModifier] | None = None,
    settings: Any = None,
) -> ContentIndexer:
    """创建内容索引器

    Args:
        relations: 关系数据源
        contents: 内容存储
        client: Elasticsearch 客户端（None 则使用全局实例）
        modifiers: 修饰器（None 使用内置修饰器）
        settings: 配置（None 使用全局配置）

    Returns:
        ContentIndexer 实例
    """
    if settings is None:
        from catalog_search.config.settings import get_settings

        settings = get_settings()

    if client is None:
        from catalog_search.services.search.elasticsearch import get_elasticsearch_client

        client = await get_elasticsearch_client()

    return ContentIndexer(
        client,
        build_augmentor(relations, contents, modifiers, settings),
        index=settings.index_name,
        media_pipeline=settings.media_pipeline,
        bulk_size=settings.index_bulk_size,
        concurrency=settings.index_concurrency,
        default_refresh=settings.index_refresh,
    )
