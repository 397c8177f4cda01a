"""延迟注入包装器

Injected[T] 持有一个服务工厂，在首次访问时解析服务实例。
内容模型上此类字段只在运行时使用，不写入索引文档。
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic_core import core_schema

T = TypeVar("T")

_UNRESOLVED = object()


class Injected(Generic[T]):
    """延迟解析的服务

    使用示例:
        ```python
        class PageWithLoader(PageContent):
            loader: Injected[ContentStore] | None = None

        page.loader = Injected(lambda: container.resolve(ContentStore))
        page.loader.service.get(ref)
        ```
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._service: Any = _UNRESOLVED

    @property
    def service(self) -> T:
        """获取服务实例（首次访问时解析）"""
        if self._service is _UNRESOLVED:
            self._service = self._factory()
        return self._service

    @property
    def is_resolved(self) -> bool:
        return self._service is not _UNRESOLVED

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.is_instance_schema(cls)
