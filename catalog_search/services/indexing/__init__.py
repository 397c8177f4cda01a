"""索引模块

模块结构:
- ancestors: 祖先解析
- exclusion: 属性过滤策略
- serializer: 基础序列化与字节拼接
- modifiers: 修饰器管道
- builtin: 内置修饰器
- augmentor: 文档增强序列化
"""

from catalog_search.services.indexing.ancestors import AncestorResolver
from catalog_search.services.indexing.augmentor import (
    DocumentAugmentor,
    SerializedDocument,
    SiblingDocument,
)
from catalog_search.services.indexing.builtin import (
    AncestorsModifier,
    MediaContentsModifier,
    SearchDescriptionModifier,
    SearchHitDescription,
    SearchTypesModifier,
    default_modifiers,
    search_type_names,
)
from catalog_search.services.indexing.exclusion import (
    PropertyFilterPolicy,
    PropertyMember,
    is_generic_family_member,
)
from catalog_search.services.indexing.modifiers import (
    IndexingModifier,
    ModifierArgs,
    ModifierError,
    ModifierPipeline,
    SiblingContribution,
)
from catalog_search.services.indexing.serializer import (
    ContentSerializer,
    MalformedDocumentError,
    MalformedFragmentError,
    SpliceError,
    splice_json_objects,
)

__all__ = [
    # 祖先解析
    "AncestorResolver",
    # 属性过滤
    "PropertyFilterPolicy",
    "PropertyMember",
    "is_generic_family_member",
    # 序列化
    "ContentSerializer",
    "splice_json_objects",
    "SpliceError",
    "MalformedDocumentError",
    "MalformedFragmentError",
    # 修饰器
    "IndexingModifier",
    "ModifierArgs",
    "ModifierError",
    "ModifierPipeline",
    "SiblingContribution",
    "AncestorsModifier",
    "SearchTypesModifier",
    "SearchDescriptionModifier",
    "SearchHitDescription",
    "MediaContentsModifier",
    "default_modifiers",
    "search_type_names",
    # 文档增强
    "DocumentAugmentor",
    "SerializedDocument",
    "SiblingDocument",
]
