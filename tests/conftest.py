"""测试配置"""

import pytest

from catalog_search.models import (
    CatalogContent,
    ContentRef,
    NodeContent,
    PageContent,
    ProductContent,
    VariationContent,
)
from catalog_search.repositories import ContentRepository, RelationRepository
from catalog_search.services.indexing import AncestorResolver


def ref(id: int) -> ContentRef:
    return ContentRef(id=id)


@pytest.fixture
def content_repo():
    """目录内容

    结构::

        root(1, 目录根)
        └── electronics(2, 分类)
            └── cameras(3, 分类)
                ├── camera(10, 商品)
                │   └── camera-black(100, 变体)
                └── lens-kit(101, 直接挂在分类下的变体)
        about(50, 页面)
    """
    return ContentRepository([
        CatalogContent(content_link=ref(1), name="Catalog", code="catalog"),
        NodeContent(content_link=ref(2), name="Electronics", parent_link=ref(1), code="electronics"),
        NodeContent(content_link=ref(3), name="Cameras", parent_link=ref(2), code="cameras"),
        ProductContent(content_link=ref(10), name="Camera", parent_link=ref(3), code="camera"),
        VariationContent(content_link=ref(100), name="Camera Black", parent_link=ref(10), code="camera-black"),
        VariationContent(content_link=ref(101), name="Lens Kit", parent_link=ref(3), code="lens-kit"),
        PageContent(content_link=ref(50), name="About", parent_link=ref(1), page_name="about"),
    ])


@pytest.fixture
def relation_repo(content_repo):
    """目录关系（cameras 与 electronics 之间未建模关系，依赖结构父链接）"""
    relations = RelationRepository(contents=content_repo)
    relations.add_variant(product=ref(10), variant=ref(100))
    relations.add_child(child=ref(10), parent=ref(3))
    relations.add_child(child=ref(101), parent=ref(3))
    return relations


@pytest.fixture
def resolver(relation_repo, content_repo):
    """祖先解析器"""
    return AncestorResolver(relation_repo, content_repo)
