"""内容搜索服务

在索引文档之上提供快速检索：
- 全文检索（分析字段 + 媒体文件提取内容）
- 按内容类型过滤（基于 search_types 字段）
- 按根节点范围过滤（基于 search_ancestors 字段）
- 分页与类型聚合

使用示例:
    ```python
    service = ContentSearchService(es, content_repo)
    results = await service.get_search_hits(
        "camera",
        page=1,
        page_size=20,
        search_roots=[ContentRef(id=12)],
        include_types=[ProductContent, VariationContent],
    )
    for hit in results.hits:
        print(hit.title, hit.summary)
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from catalog_search.models.content import Content, ContentRef
from catalog_search.models.relations import ContentStore
from catalog_search.observability.logging import get_logger
from catalog_search.services.indexing import fields
from catalog_search.services.indexing.builtin import SearchHitDescription, search_type_names
from catalog_search.services.search.elasticsearch import ElasticsearchClient
from catalog_search.services.search.query import (
    AggregationBucket,
    QueryBuilder,
    SearchResponse,
    SearchResult,
    parse_terms_aggregation,
)

logger = get_logger(__name__)

TYPES_AGGREGATION = "types"

DEFAULT_TEXT_FIELDS = [
    fields.ANALYZED_FIELDS,
    fields.MEDIA_CONTENTS_TEXT,
    fields.MEDIA_CONTENTS_TYPE,
]


@dataclass
class SearchHit:
    """搜索命中"""

    id: ContentRef
    title: str
    summary: str = ""
    url: str | None = None


@dataclass
class SearchHitList:
    """一页搜索命中"""

    hits: list[SearchHit]
    total_hits: int
    page: int
    page_size: int
    type_facets: list[AggregationBucket] = field(default_factory=list)
    response: SearchResponse | None = None


class ContentSearchService:
    """内容搜索服务"""

    def __init__(
        self,
        client: ElasticsearchClient,
        contents: ContentStore,
        index: str = "content",
        default_page_size: int = 10,
        url_resolver: Callable[[ContentRef], str | None] | None = None,
    ):
        """初始化搜索服务

        Args:
            client: Elasticsearch 客户端
            contents: 内容存储（用于加载命中内容）
            index: 索引名称
            default_page_size: 默认每页大小
            url_resolver: 内容 URL 解析
        """
        self.client = client
        self.contents = contents
        self.index = index
        self.default_page_size = default_page_size
        self.url_resolver = url_resolver

    async def get_search_hits(
        self,
        search_text: str,
        page: int = 1,
        page_size: int | None = None,
        search_roots: Iterable[ContentRef] | None = None,
        include_types: Iterable[type[Content]] | None = None,
        exclude_types: Iterable[type[Content]] | None = None,
        build_search_hit: Callable[[SearchResult], SearchHit | None] | None = None,
    ) -> SearchHitList:
        """全文检索

        Args:
            search_text: 查询文本
            page: 页码（小于 1 视为 1）
            page_size: 每页大小（小于 1 使用默认值）
            search_roots: 只返回这些节点及其后代
            include_types: 包含的内容类型（None 表示全部内容）
            exclude_types: 排除的内容类型
            build_search_hit: 自定义命中构建（默认 default_build_search_hit）

        Returns:
            SearchHitList
        """
        query = QueryBuilder().simple_query_string(
            search_text,
            fields=DEFAULT_TEXT_FIELDS,
            analyzer="default",
        )
        return await self.get_search_hits_for_query(
            query,
            page=page,
            page_size=page_size,
            search_roots=search_roots,
            include_types=include_types,
            exclude_types=exclude_types,
            build_search_hit=build_search_hit,
        )

    async def get_search_hits_for_query(
        self,
        query: QueryBuilder,
        page: int = 1,
        page_size: int | None = None,
        search_roots: Iterable[ContentRef] | None = None,
        include_types: Iterable[type[Content]] | None = None,
        exclude_types: Iterable[type[Content]] | None = None,
        build_search_hit: Callable[[SearchResult], SearchHit | None] | None = None,
    ) -> SearchHitList:
        """使用已构建的查询检索（参数含义同 get_search_hits）"""
        page = page if page >= 1 else 1
        page_size = page_size if page_size and page_size >= 1 else self.default_page_size
        build_search_hit = build_search_hit or self.default_build_search_hit
        query = query.copy()

        included = [type_name(tp) for tp in (include_types or [Content])]
        excluded = [type_name(tp) for tp in (exclude_types or [])]

        query.terms(fields.SEARCH_TYPES, included)
        if excluded:
            query.exclude_terms(fields.SEARCH_TYPES, excluded)

        roots = [str(ref) for ref in (search_roots or [])]
        if roots:
            query.filter({
                "bool": {
                    "should": [
                        {"terms": {fields.ANCESTORS: roots}},
                        {"ids": {"values": roots}},
                    ],
                    "minimum_should_match": 1,
                }
            })

        body = (
            query.paginate(page, page_size)
            .source(includes=[fields.SEARCH_DESCRIPTION])
            .terms_aggregation(TYPES_AGGREGATION, fields.SEARCH_TYPES)
            .build()
        )

        response = SearchResponse.from_es_response(await self.client.search(self.index, body))

        hits = []
        for result in response.hits:
            hit = build_search_hit(result)
            if hit is not None:
                hits.append(hit)

        logger.info(
            "search_hits_built",
            index=self.index,
            page=page,
            page_size=page_size,
            total=response.total,
            returned=len(hits),
        )

        return SearchHitList(
            hits=hits,
            total_hits=response.total,
            page=page,
            page_size=page_size,
            type_facets=parse_terms_aggregation(response.aggregations, TYPES_AGGREGATION),
            response=response,
        )

    def default_build_search_hit(self, result: SearchResult) -> SearchHit | None:
        """默认命中构建

        摘要优先使用索引中的 search_description，其次使用内容自身的摘要。
        命中对应的内容已不存在时跳过。
        """
        ref = ContentRef.try_parse(result.id)
        content = self.contents.get(ref) if ref is not None else None
        if content is None:
            logger.warning("search_hit_content_missing", id=result.id)
            return None

        summary = _stored_description(result.source)
        if summary is None and isinstance(content, SearchHitDescription):
            summary = content.search_description

        return SearchHit(
            id=content.content_link,
            title=content.name,
            summary=summary or "",
            url=self.url_resolver(content.content_link) if self.url_resolver else None,
        )


def type_name(content_type: type[Content]) -> str:
    """内容类型在 search_types 字段中的名称"""
    return search_type_names(content_type)[0]


def _stored_description(source: dict[str, Any]) -> str | None:
    value = source.get(fields.SEARCH_DESCRIPTION)
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value) if value else None
