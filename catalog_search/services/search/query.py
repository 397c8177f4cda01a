"""查询构建器

提供流式 API 构建 Elasticsearch 查询。

使用示例:
    ```python
    from catalog_search.services.search.query import QueryBuilder

    query = (QueryBuilder()
        .simple_query_string("camera", fields=["*.analyzed"])
        .terms("search_ancestors", ["12", "40"])
        .paginate(page=2, page_size=10)
        .terms_aggregation("types", "search_types")
        .build())
    ```
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Self

# ============== 查询 DSL 构建 ==============


class QueryBuilder:
    """Elasticsearch 查询构建器"""

    def __init__(self) -> None:
        self._must: list[dict[str, Any]] = []
        self._should: list[dict[str, Any]] = []
        self._must_not: list[dict[str, Any]] = []
        self._filter: list[dict[str, Any]] = []
        self._aggregations: dict[str, dict[str, Any]] = {}
        self._source: bool | list[str] | dict[str, Any] | None = None
        self._size: int | None = None
        self._from_: int = 0

    # ============== 布尔查询 ==============

    def must(self, query: dict[str, Any]) -> Self:
        """添加 MUST 子句（必须匹配）"""
        self._must.append(query)
        return self

    def should(self, query: dict[str, Any]) -> Self:
        """添加 SHOULD 子句（可选匹配）"""
        self._should.append(query)
        return self

    def must_not(self, query: dict[str, Any]) -> Self:
        """添加 MUST_NOT 子句（必须不匹配）"""
        self._must_not.append(query)
        return self

    def filter(self, query: dict[str, Any]) -> Self:
        """添加 FILTER 子句（过滤，不计分）"""
        self._filter.append(query)
        return self

    # ============== 基础查询 ==============

    def term(self, field: str, value: Any) -> Self:
        """添加 term 查询（精确匹配）"""
        return self.filter({"term": {field: value}})

    def terms(self, field: str, values: list[Any]) -> Self:
        """添加 terms 查询（多值精确匹配）"""
        return self.filter({"terms": {field: values}})

    def exclude_terms(self, field: str, values: list[Any]) -> Self:
        """排除字段命中任一值的文档"""
        return self.must_not({"terms": {field: values}})

    def simple_query_string(
        self,
        query: str,
        fields: list[str] | None = None,
        analyzer: str | None = None,
    ) -> Self:
        """添加 simple_query_string 查询（安全版本）

        Args:
            query: 查询字符串
            fields: 字段列表
            analyzer: 分析器

        Returns:
            self
        """
        params: dict[str, Any] = {"query": query}
        if fields:
            params["fields"] = fields
        if analyzer:
            params["analyzer"] = analyzer

        return self.must({"simple_query_string": params})

    # ============== 分页与返回字段 ==============

    def paginate(self, page: int, page_size: int) -> Self:
        """设置分页

        Args:
            page: 页码（从 1 开始）
            page_size: 每页大小

        Returns:
            self
        """
        self._from_ = (page - 1) * page_size
        self._size = page_size
        return self

    def source(
        self,
        includes: list[str] | None = None,
        excludes: list[str] | None = None,
    ) -> Self:
        """配置返回字段"""
        if includes is not None and excludes is not None:
            self._source = {"includes": includes, "excludes": excludes}
        elif includes:
            self._source = includes
        elif excludes:
            self._source = {"excludes": excludes}
        else:
            self._source = False

        return self

    # ============== 聚合 ==============

    def terms_aggregation(self, name: str, field: str, size: int = 10) -> Self:
        """添加 terms 聚合"""
        self._aggregations[name] = {"terms": {"field": field, "size": size}}
        return self

    # ============== 构建 ==============

    def copy(self) -> QueryBuilder:
        """复制构建器（子句与聚合互不共享）"""
        return copy.deepcopy(self)

    def build(self) -> dict[str, Any]:
        """构建查询 DSL

        Returns:
            查询字典
        """
        query: dict[str, Any] = {}

        if self._must or self._should or self._must_not or self._filter:
            bool_query: dict[str, Any] = {}
            if self._must:
                bool_query["must"] = self._must
            if self._should:
                bool_query["should"] = self._should
            if self._must_not:
                bool_query["must_not"] = self._must_not
            if self._filter:
                bool_query["filter"] = self._filter

            query["bool"] = bool_query
        else:
            query["match_all"] = {}

        body: dict[str, Any] = {"query": query}

        if self._aggregations:
            body["aggs"] = self._aggregations
        if self._source is not None:
            body["_source"] = self._source
        if self._size is not None:
            body["size"] = self._size
        if self._from_ > 0:
            body["from"] = self._from_

        return body


# ============== 搜索结果类 ==============


@dataclass
class SearchResult:
    """搜索结果

    Attributes:
        id: 文档 ID
        score: 相关度分数
        source: 文档内容
        index: 索引名称
    """
    id: str
    score: float
    source: dict[str, Any]
    index: str | None = None


@dataclass
class SearchResponse:
    """搜索响应"""

    hits: list[SearchResult]
    total: int
    aggregations: dict[str, Any] = field(default_factory=dict)
    took: int = 0

    @classmethod
    def from_es_response(cls, response: dict[str, Any]) -> SearchResponse:
        """从 Elasticsearch 响应构建"""
        hits_info = response.get("hits", {})

        hits = [
            SearchResult(
                id=hit.get("_id", ""),
                score=hit.get("_score") or 0.0,
                source=hit.get("_source", {}),
                index=hit.get("_index"),
            )
            for hit in hits_info.get("hits", [])
        ]

        total_info = hits_info.get("total", {})
        total = total_info.get("value", len(hits)) if isinstance(total_info, dict) else int(total_info)

        return cls(
            hits=hits,
            total=total,
            aggregations=response.get("aggregations") or {},
            took=response.get("took", 0),
        )


@dataclass
class AggregationBucket:
    """聚合桶"""

    key: str | int | float | None
    doc_count: int = 0


def parse_terms_aggregation(aggregations: dict[str, Any], name: str) -> list[AggregationBucket]:
    """解析 terms 聚合结果"""
    buckets = aggregations.get(name, {}).get("buckets", [])
    return [
        AggregationBucket(key=bucket.get("key"), doc_count=bucket.get("doc_count", 0))
        for bucket in buckets
    ]
