"""文档增强序列化

流程：
1. 用 ContentSerializer 序列化基础对象（紧凑 JSON，结尾即右花括号）
2. 非内容对象或未配置修饰器时，直接返回基础字节
3. 否则执行修饰器管道，把贡献的片段按字节拼入仍处于"打开"状态的基础对象；
   没有任何贡献时返回未修改的基础字节

拼接不对任何一侧做反序列化，只裁掉一个首/尾花括号后连接。

使用示例:
    ```python
    augmentor = DocumentAugmentor(
        serializer=ContentSerializer(),
        pipeline=ModifierPipeline(default_modifiers(resolver)),
    )
    document = augmentor.serialize(page)
    await client.index_raw("content", document.document_id, document.body)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from catalog_search.models.content import Content
from catalog_search.observability.logging import get_logger
from catalog_search.services.indexing.modifiers import ModifierArgs, ModifierPipeline
from catalog_search.services.indexing.serializer import ContentSerializer, splice_json_objects

logger = get_logger(__name__)


@dataclass(frozen=True)
class SiblingDocument:
    """与主文档一同索引的独立文档"""

    document_id: str
    body: bytes
    index: str | None = None


@dataclass(frozen=True)
class SerializedDocument:
    """序列化后的文档

    Attributes:
        document_id: 文档 ID（非内容对象为 None）
        body: JSON 对象字节
        pipeline: ingest 管道（二次处理标识）
        siblings: 兄弟文档
    """

    document_id: str | None
    body: bytes
    pipeline: str | None = None
    siblings: tuple[SiblingDocument, ...] = ()


class DocumentAugmentor:
    """文档增强序列化器

    只持有不可变配置，可并发调用。
    """

    def __init__(
        self,
        serializer: ContentSerializer | None = None,
        pipeline: ModifierPipeline | None = None,
    ):
        """初始化增强序列化器

        Args:
            serializer: 基础序列化器
            pipeline: 修饰器管道（None 表示不做增强）
        """
        self.serializer = serializer or ContentSerializer()
        self.pipeline = pipeline

    def serialize(self, data: Any, secondary_process_id: str | None = None) -> SerializedDocument:
        """序列化文档

        Args:
            data: 待序列化对象
            secondary_process_id: 二次处理标识（如 ingest 管道 ID）

        Returns:
            SerializedDocument

        Raises:
            ModifierError: 修饰器处理失败
        """
        base = self.serializer.dumps(data)

        if not isinstance(data, Content):
            return SerializedDocument(document_id=None, body=base, pipeline=secondary_process_id)

        document_id = str(data.content_link)
        if not self.pipeline:
            return SerializedDocument(document_id=document_id, body=base, pipeline=secondary_process_id)

        args = self.pipeline.run(data, secondary_process_id)
        body = splice_json_objects(base, [self.serializer.dumps(item) for item in args.additional_items])

        logger.debug(
            "document_augmented",
            content_id=document_id,
            fragments=len(args.additional_items),
            siblings=len(args.sibling_documents),
            size=len(body),
        )

        return SerializedDocument(
            document_id=document_id,
            body=body,
            pipeline=secondary_process_id,
            siblings=self._serialize_siblings(args),
        )

    def dumps(self, data: Any, secondary_process_id: str | None = None) -> bytes:
        """序列化并只返回主文档字节"""
        return self.serialize(data, secondary_process_id).body

    def _serialize_siblings(self, args: ModifierArgs) -> tuple[SiblingDocument, ...]:
        return tuple(
            SiblingDocument(
                document_id=sibling.document_id,
                body=self.serializer.dumps(sibling.document),
                index=sibling.index,
            )
            for sibling in args.sibling_documents
        )
