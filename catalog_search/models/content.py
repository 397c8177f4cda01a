"""内容模型

定义索引所需的内容引用与内容类型层级：
- ContentRef: 内容引用（类似外键，可比较、可哈希）
- Content 及其子类: 页面、媒体、商品目录节点/商品/变体
- 不参与索引的值类型（富文本区域、语言信息、属性集合、二进制等）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_serializer

# 字段级忽略标记在 json_schema_extra 中使用的键
INDEX_IGNORE_KEY = "index_ignore"


class IndexIgnore:
    """索引忽略标记

    用于 Annotated 元数据，被标记的字段不会写入索引文档::

        secret: Annotated[str, IndexIgnore()] = ""
    """

    def __repr__(self) -> str:
        return "IndexIgnore()"


# ============== 内容引用 ==============


class ContentRef(BaseModel):
    """内容引用

    字符串形式为 ``<id>``、``<id>_<work_id>`` 或 ``<id>_<work_id>_<provider>``。
    id 为 0 表示空引用。
    """

    model_config = ConfigDict(frozen=True)

    EMPTY: ClassVar[ContentRef]

    id: int
    work_id: int = 0
    provider: str = ""

    @property
    def is_empty(self) -> bool:
        return self.id <= 0

    @property
    def sort_key(self) -> tuple[int, int, str]:
        return (self.id, self.work_id, self.provider)

    def __str__(self) -> str:
        if self.provider:
            return f"{self.id}_{self.work_id}_{self.provider}"
        if self.work_id:
            return f"{self.id}_{self.work_id}"
        return str(self.id)

    def __lt__(self, other: ContentRef) -> bool:
        if not isinstance(other, ContentRef):
            return NotImplemented
        return self.sort_key < other.sort_key

    @model_serializer
    def serialize_ref(self) -> str:
        return str(self)

    @classmethod
    def parse(cls, text: str) -> ContentRef:
        """解析字符串形式的内容引用

        Args:
            text: 引用字符串

        Returns:
            ContentRef 实例

        Raises:
            ValueError: 格式不合法
        """
        parts = str(text).strip().split("_", 2)
        try:
            ref_id = int(parts[0])
            work_id = int(parts[1]) if len(parts) > 1 and parts[1] else 0
        except ValueError as e:
            raise ValueError(f"invalid content reference: {text!r}") from e

        provider = parts[2] if len(parts) > 2 else ""
        if ref_id < 0 or work_id < 0:
            raise ValueError(f"invalid content reference: {text!r}")

        return cls(id=ref_id, work_id=work_id, provider=provider)

    @classmethod
    def try_parse(cls, text: str | None) -> ContentRef | None:
        """解析内容引用，失败时返回 None"""
        if not text:
            return None
        try:
            return cls.parse(text)
        except ValueError:
            return None


ContentRef.EMPTY = ContentRef(id=0)


# ============== 不参与索引的值类型 ==============


class PropertyDataCollection:
    """原始属性集合（CMS 内部属性包）"""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __len__(self) -> int:
        return len(self._values)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)


@dataclass(frozen=True)
class Culture:
    """语言/区域信息"""

    name: str

    @property
    def is_invariant(self) -> bool:
        return self.name == ""


@dataclass(frozen=True)
class ContentTypeDefinition:
    """内容类型定义"""

    id: int
    name: str


@dataclass(frozen=True)
class Blob:
    """二进制数据（媒体文件内容）"""

    data: bytes
    uri: str = ""

    def read(self) -> bytes:
        return self.data


@dataclass
class ContentArea:
    """富文本内容区域，引用一组子内容块"""

    items: list[ContentRef] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.items)


# ============== 内容类型 ==============


class Content(BaseModel):
    """内容基类"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content_link: ContentRef
    name: str
    parent_link: ContentRef = ContentRef.EMPTY
    language: str | None = None

    content_type: ContentTypeDefinition | None = None
    property_data: PropertyDataCollection | None = None
    master_language: Culture | None = None
    existing_languages: list[Culture] = []

    @property
    def document_id(self) -> str:
        return str(self.content_link)


class PageContent(Content):
    """页面内容"""

    page_name: str = ""
    url_segment: str | None = None
    main_body: str | None = None
    main_content_area: ContentArea | None = None
    default_mvc_controller: str | None = None


class MediaContent(Content):
    """媒体内容（图片、文档等）"""

    mime_type: str | None = None
    thumbnail: Blob | None = None
    binary_data: Blob | None = None


class CatalogContent(Content):
    """商品目录内容基类"""

    code: str = ""
    display_name: str | None = None


class NodeContent(CatalogContent):
    """目录节点（分类）"""


class ProductContent(CatalogContent):
    """商品"""

    brand: str | None = None


class VariationContent(CatalogContent):
    """商品变体（SKU）"""

    price: float | None = None
