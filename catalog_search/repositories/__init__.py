"""仓储层模块

提供关系与内容数据源的内存实现。
"""

from catalog_search.repositories.contents import ContentRepository
from catalog_search.repositories.relations import RelationRepository

__all__ = [
    "ContentRepository",
    "RelationRepository",
]
