"""祖先解析

为任意内容计算全部祖先引用（所属分类、所属商品），用于按分类范围检索。

关系来源：
- VARIANT_OF: 变体 -> 商品（source=商品，target=变体，按 target 查询）
- CHILD_OF: 子节点 -> 父节点（source=子节点，target=父节点，按 source 查询）
- 结构父链接: 节点没有建模的层级关系时，回退到内容自身的 parent_link

假设商品不会嵌套在其他商品下；变体既可挂在商品下，也可直接挂在分类下。
"""

from __future__ import annotations

from catalog_search.models.content import Content, ContentRef, NodeContent, VariationContent
from catalog_search.models.relations import (
    ContentStore,
    NotRelationCapableError,
    RelationEdge,
    RelationGraphSource,
    RelationKind,
)
from catalog_search.observability.logging import get_logger

logger = get_logger(__name__)


class AncestorResolver:
    """祖先解析器

    无实例级可变状态，可并发、可重入调用；每次调用返回新的集合，不做缓存。
    """

    def __init__(self, relations: RelationGraphSource, contents: ContentStore):
        """初始化祖先解析器

        Args:
            relations: 关系数据源
            contents: 内容存储（用于结构父链接回退）
        """
        self._relations = relations
        self._contents = contents

    def get_ancestors(self, content: Content) -> set[ContentRef]:
        """获取内容的全部祖先引用

        Args:
            content: 内容对象

        Returns:
            去重后的祖先引用集合（不含内容自身）
        """
        start = content.content_link
        ancestors: set[ContentRef] = set()
        visited: set[ContentRef] = set()

        if isinstance(content, VariationContent):
            for edge in self._product_relations(start):
                product = edge.source
                if product.is_empty:
                    continue
                ancestors.add(product)
                self._resolve_chain(product, False, ancestors, visited)

        self._resolve_chain(start, False, ancestors, visited)

        ancestors.discard(start)
        logger.debug("ancestors_resolved", content_id=str(start), count=len(ancestors))
        return ancestors

    def _resolve_chain(
        self,
        ref: ContentRef,
        check_parent_link: bool,
        ancestors: set[ContentRef],
        visited: set[ContentRef],
    ) -> None:
        """沿 CHILD_OF 关系递归收集祖先

        visited 记录已展开的引用，保证任意图形状（包括环）都能终止。
        """
        if ref in visited:
            return
        visited.add(ref)

        try:
            edges = self._relations.get_relations_by_source(ref, RelationKind.CHILD_OF)
        except NotRelationCapableError:
            logger.debug("relation_chain_stopped", ref=str(ref))
            return

        found = False
        for edge in edges or ():
            parent = edge.target
            if parent.is_empty:
                continue
            found = True
            ancestors.add(parent)
            self._resolve_chain(parent, True, ancestors, visited)

        if check_parent_link and not found:
            node = self._contents.get(ref)
            if not isinstance(node, NodeContent):
                return

            parent = node.parent_link
            if parent.is_empty or parent in ancestors:
                return

            ancestors.add(parent)
            self._resolve_chain(parent, True, ancestors, visited)

    def _product_relations(self, variant: ContentRef) -> list[RelationEdge]:
        try:
            edges = self._relations.get_relations_by_target(variant, RelationKind.VARIANT_OF)
        except NotRelationCapableError:
            logger.debug("relation_lookup_not_applicable", ref=str(variant), kind=RelationKind.VARIANT_OF.value)
            return []
        return [edge for edge in edges or () if edge.kind == RelationKind.VARIANT_OF]
