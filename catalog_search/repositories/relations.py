"""关系仓储（内存实现）

按 source 与 target 双向索引关系边。配置内容存储后，
对非商品目录内容的关系查询会抛出 NotRelationCapableError。
"""

from collections import defaultdict
from collections.abc import Iterable

from catalog_search.models.content import CatalogContent, ContentRef
from catalog_search.models.relations import (
    ContentStore,
    NotRelationCapableError,
    RelationEdge,
    RelationKind,
)
from catalog_search.observability.logging import get_logger

logger = get_logger(__name__)


class RelationRepository:
    """关系仓储"""

    def __init__(
        self,
        edges: Iterable[RelationEdge] = (),
        contents: ContentStore | None = None,
    ) -> None:
        """初始化关系仓储

        Args:
            edges: 初始关系边
            contents: 内容存储（用于判断引用是否支持关系查询）
        """
        self._contents = contents
        self._by_source: dict[tuple[ContentRef, RelationKind], list[RelationEdge]] = defaultdict(list)
        self._by_target: dict[tuple[ContentRef, RelationKind], list[RelationEdge]] = defaultdict(list)

        for edge in edges:
            self.add(edge)

    def add(self, edge: RelationEdge) -> None:
        """添加关系边（重复添加会被忽略）"""
        bucket = self._by_source[(edge.source, edge.kind)]
        if edge in bucket:
            return
        bucket.append(edge)
        self._by_target[(edge.target, edge.kind)].append(edge)

    def add_variant(self, product: ContentRef, variant: ContentRef) -> None:
        """登记变体归属的商品"""
        self.add(RelationEdge(source=product, target=variant, kind=RelationKind.VARIANT_OF))

    def add_child(self, child: ContentRef, parent: ContentRef) -> None:
        """登记子节点与父节点的层级关系"""
        self.add(RelationEdge(source=child, target=parent, kind=RelationKind.CHILD_OF))

    def get_relations_by_source(self, ref: ContentRef, kind: RelationKind) -> list[RelationEdge]:
        self._ensure_relation_capable(ref, kind)
        return list(self._by_source.get((ref, kind), ()))

    def get_relations_by_target(self, ref: ContentRef, kind: RelationKind) -> list[RelationEdge]:
        self._ensure_relation_capable(ref, kind)
        return list(self._by_target.get((ref, kind), ()))

    def __len__(self) -> int:
        return sum(len(edges) for edges in self._by_source.values())

    def _ensure_relation_capable(self, ref: ContentRef, kind: RelationKind) -> None:
        if self._contents is None:
            return

        content = self._contents.get(ref)
        if not isinstance(content, CatalogContent):
            logger.debug("relation_lookup_not_applicable", ref=str(ref), kind=kind.value)
            raise NotRelationCapableError(ref, kind)
