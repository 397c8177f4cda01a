"""索引修饰器管道

修饰器在文档序列化时为主文档追加字段，或产生独立的兄弟文档。
管道按注册顺序依次执行；任一修饰器失败即终止该文档的索引，
不会把不完整的文档交给搜索引擎。

使用示例:
    ```python
    class PriceModifier:
        def process(self, args: ModifierArgs) -> None:
            if isinstance(args.content, VariationContent):
                args.add_item("price_band", band_of(args.content.price))

    pipeline = ModifierPipeline([PriceModifier()])
    args = pipeline.run(content)
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from catalog_search.models.content import Content
from catalog_search.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SiblingContribution:
    """修饰器贡献的兄弟文档

    Attributes:
        document_id: 文档 ID
        document: 文档内容（映射或已序列化的 JSON 对象字节）
        index: 目标索引（None 表示与主文档相同）
    """

    document_id: str
    document: Mapping[str, Any] | bytes
    index: str | None = None


@dataclass
class ModifierArgs:
    """单次文档序列化的修饰器参数

    additional_items 与 sibling_documents 只增不减，修饰器之间不能撤销彼此的贡献。
    """

    content: Content
    secondary_process_id: str | None = None
    _items: list[Mapping[str, Any] | bytes] = field(default_factory=list, repr=False)
    _siblings: list[SiblingContribution] = field(default_factory=list, repr=False)

    @property
    def additional_items(self) -> tuple[Mapping[str, Any] | bytes, ...]:
        return tuple(self._items)

    @property
    def sibling_documents(self) -> tuple[SiblingContribution, ...]:
        return tuple(self._siblings)

    def add_item(self, name: str, value: Any) -> None:
        """追加单个字段"""
        self._items.append({name: value})

    def add_fragment(self, fragment: Mapping[str, Any] | bytes) -> None:
        """追加一个 JSON 对象片段（映射或已序列化字节）"""
        if not isinstance(fragment, (Mapping, bytes)):
            raise TypeError(f"fragment must be a mapping or bytes, got {type(fragment).__name__}")
        self._items.append(fragment)

    def add_sibling(
        self,
        document_id: str,
        document: Mapping[str, Any] | bytes,
        index: str | None = None,
    ) -> None:
        """追加独立的兄弟文档"""
        self._siblings.append(SiblingContribution(document_id=document_id, document=document, index=index))


@runtime_checkable
class IndexingModifier(Protocol):
    """索引修饰器"""

    def process(self, args: ModifierArgs) -> None:
        ...


class ModifierError(Exception):
    """修饰器处理内容失败"""

    def __init__(self, modifier: IndexingModifier, content: Content, original_error: Exception):
        self.modifier_name = modifier_name(modifier)
        self.content_id = str(content.content_link)
        self.content_name = content.name
        self.original_error = original_error
        super().__init__(
            f"{self.modifier_name} failed to process content ID {self.content_id} "
            f"with name {self.content_name}!"
        )


def modifier_name(modifier: Any) -> str:
    """修饰器的完整类名"""
    klass = type(modifier)
    return f"{klass.__module__}.{klass.__qualname__}"


class ModifierPipeline:
    """修饰器管道"""

    def __init__(self, modifiers: Iterable[IndexingModifier] = ()):
        self._modifiers: tuple[IndexingModifier, ...] = tuple(modifiers)

    @property
    def modifiers(self) -> tuple[IndexingModifier, ...]:
        return self._modifiers

    def __len__(self) -> int:
        return len(self._modifiers)

    def __bool__(self) -> bool:
        return bool(self._modifiers)

    def run(self, content: Content, secondary_process_id: str | None = None) -> ModifierArgs:
        """按注册顺序执行全部修饰器

        Args:
            content: 内容对象
            secondary_process_id: 二次处理标识（如 ingest 管道 ID）

        Returns:
            收集了全部贡献的 ModifierArgs

        Raises:
            ModifierError: 任一修饰器抛出异常
        """
        args = ModifierArgs(content=content, secondary_process_id=secondary_process_id)

        for modifier in self._modifiers:
            try:
                modifier.process(args)
            except Exception as e:
                error = ModifierError(modifier, content, e)
                logger.error(
                    "modifier_failed",
                    modifier=error.modifier_name,
                    content_id=error.content_id,
                    error=str(e),
                )
                raise error from e

        return args
