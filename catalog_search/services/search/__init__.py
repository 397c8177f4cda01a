"""搜索模块

模块结构:
- elasticsearch: Elasticsearch 客户端封装
- indexer: 内容索引器
- query: 查询构建器
- service: 内容搜索服务
"""

from catalog_search.services.search.elasticsearch import (
    ElasticsearchClient,
    IndexOutcome,
    close_elasticsearch_client,
    create_elasticsearch_client,
    elasticsearch_context,
    get_elasticsearch_client,
)
from catalog_search.services.search.indexer import (
    ContentIndexer,
    IndexReport,
    build_augmentor,
    create_content_indexer,
)
from catalog_search.services.search.query import (
    AggregationBucket,
    QueryBuilder,
    SearchResponse,
    SearchResult,
    parse_terms_aggregation,
)
from catalog_search.services.search.service import (
    ContentSearchService,
    SearchHit,
    SearchHitList,
)

__all__ = [
    # Elasticsearch 客户端
    "ElasticsearchClient",
    "IndexOutcome",
    "create_elasticsearch_client",
    "get_elasticsearch_client",
    "close_elasticsearch_client",
    "elasticsearch_context",
    # 内容索引
    "ContentIndexer",
    "IndexReport",
    "build_augmentor",
    "create_content_indexer",
    # 查询构建
    "QueryBuilder",
    "SearchResult",
    "SearchResponse",
    "AggregationBucket",
    "parse_terms_aggregation",
    # 搜索服务
    "ContentSearchService",
    "SearchHit",
    "SearchHitList",
]
