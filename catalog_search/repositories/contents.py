"""内容仓储（内存实现）"""

from collections.abc import Iterable, Iterator

from catalog_search.models.content import Content, ContentRef


class ContentRepository:
    """按引用保存内容的只读存储"""

    def __init__(self, contents: Iterable[Content] = ()) -> None:
        self._items: dict[ContentRef, Content] = {}
        for content in contents:
            self.save(content)

    def save(self, content: Content) -> None:
        self._items[content.content_link] = content

    def get(self, ref: ContentRef) -> Content | None:
        """获取内容，不存在时返回 None"""
        return self._items.get(ref)

    def __contains__(self, ref: object) -> bool:
        return ref in self._items

    def __iter__(self) -> Iterator[Content]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)
