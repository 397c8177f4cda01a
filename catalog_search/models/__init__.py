"""数据模型"""

from catalog_search.models.content import (
    INDEX_IGNORE_KEY,
    Blob,
    CatalogContent,
    Content,
    ContentArea,
    ContentRef,
    ContentTypeDefinition,
    Culture,
    IndexIgnore,
    MediaContent,
    NodeContent,
    PageContent,
    ProductContent,
    PropertyDataCollection,
    VariationContent,
)
from catalog_search.models.injection import Injected
from catalog_search.models.relations import (
    ContentStore,
    NotRelationCapableError,
    RelationEdge,
    RelationGraphSource,
    RelationKind,
)

__all__ = [
    # 内容
    "ContentRef",
    "Content",
    "PageContent",
    "MediaContent",
    "CatalogContent",
    "NodeContent",
    "ProductContent",
    "VariationContent",
    # 值类型
    "Blob",
    "ContentArea",
    "ContentTypeDefinition",
    "Culture",
    "PropertyDataCollection",
    "IndexIgnore",
    "INDEX_IGNORE_KEY",
    "Injected",
    # 关系
    "RelationKind",
    "RelationEdge",
    "RelationGraphSource",
    "ContentStore",
    "NotRelationCapableError",
]
