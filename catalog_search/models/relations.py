"""关系模型与外部数据源接口

关系方向约定：
- VARIANT_OF: source=商品, target=变体（按 target 索引查询）
- CHILD_OF: source=子节点, target=父节点（按 source 索引查询）
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from catalog_search.models.content import Content, ContentRef


class RelationKind(str, Enum):
    """关系类型"""

    VARIANT_OF = "variant_of"
    CHILD_OF = "child_of"


@dataclass(frozen=True)
class RelationEdge:
    """有向关系边"""

    source: ContentRef
    target: ContentRef
    kind: RelationKind


class NotRelationCapableError(Exception):
    """引用所指内容不支持关系查询（非目录内容类型）"""

    def __init__(self, ref: ContentRef, kind: RelationKind):
        self.ref = ref
        self.kind = kind
        super().__init__(f"content {ref} cannot hold {kind.value} relations")


@runtime_checkable
class RelationGraphSource(Protocol):
    """关系数据源"""

    def get_relations_by_target(self, ref: ContentRef, kind: RelationKind) -> Iterable[RelationEdge]:
        ...

    def get_relations_by_source(self, ref: ContentRef, kind: RelationKind) -> Iterable[RelationEdge]:
        ...


@runtime_checkable
class ContentStore(Protocol):
    """只读内容存储"""

    def get(self, ref: ContentRef) -> Content | None:
        ...
