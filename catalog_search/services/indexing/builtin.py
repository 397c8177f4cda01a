"""内置修饰器

- AncestorsModifier: 写入祖先引用，支撑按分类范围检索
- SearchTypesModifier: 写入内容类型层级，支撑类型过滤
- SearchDescriptionModifier: 写入搜索结果摘要
- MediaContentsModifier: 为 ingest attachment 管道写入媒体文件内容
"""

from __future__ import annotations

import base64
from typing import Protocol, runtime_checkable

from catalog_search.models.content import Content, MediaContent
from catalog_search.services.indexing import fields
from catalog_search.services.indexing.ancestors import AncestorResolver
from catalog_search.services.indexing.modifiers import IndexingModifier, ModifierArgs


@runtime_checkable
class SearchHitDescription(Protocol):
    """提供搜索结果摘要的内容"""

    search_description: str | None


class AncestorsModifier:
    """写入祖先引用（按引用排序，保证输出稳定）"""

    def __init__(self, resolver: AncestorResolver):
        self._resolver = resolver

    def process(self, args: ModifierArgs) -> None:
        ancestors = self._resolver.get_ancestors(args.content)
        args.add_item(fields.ANCESTORS, [str(ref) for ref in sorted(ancestors)])


class SearchTypesModifier:
    """写入内容类型层级的完整类名"""

    def process(self, args: ModifierArgs) -> None:
        args.add_item(fields.SEARCH_TYPES, search_type_names(type(args.content)))


class SearchDescriptionModifier:
    def process(self, args: ModifierArgs) -> None:
        if not isinstance(args.content, SearchHitDescription):
            return
        description = args.content.search_description
        if description:
            args.add_item(fields.SEARCH_DESCRIPTION, description)


class MediaContentsModifier:
    """媒体文件走 ingest 管道时，写入 base64 编码的文件内容"""

    def process(self, args: ModifierArgs) -> None:
        content = args.content
        if not args.secondary_process_id or not isinstance(content, MediaContent):
            return
        if content.binary_data is None:
            return

        data = content.binary_data.read()
        if data:
            args.add_item(fields.MEDIA_CONTENTS, base64.b64encode(data).decode("ascii"))


def search_type_names(content_type: type) -> list[str]:
    """内容类型及其全部 Content 基类的完整类名"""
    return [
        f"{klass.__module__}.{klass.__qualname__}"
        for klass in content_type.__mro__
        if isinstance(klass, type) and issubclass(klass, Content)
    ]


def default_modifiers(resolver: AncestorResolver) -> list[IndexingModifier]:
    """内置修饰器（固定顺序）"""
    return [
        AncestorsModifier(resolver),
        SearchTypesModifier(),
        SearchDescriptionModifier(),
        MediaContentsModifier(),
    ]
