"""属性过滤策略

决定模型上哪些声明的属性不写入索引文档。规则（任一命中即排除）：
- 字段带有 IndexIgnore 标记（沿声明类型的 MRO 查找声明，不依赖运行时实例）
- 字段名（或序列化别名）大小写不敏感地命中保留名
- 字段名与内置修饰器写入的字段同名（避免文档中出现重复键）
- 字段名包含路径分隔符 "."
- 字段声明类型在排除类型列表中，或属于 Injected[...] 泛型族

分类结果按类型缓存，只在首次构建时计算。
"""

from __future__ import annotations

import threading
import types
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from catalog_search.models.content import (
    INDEX_IGNORE_KEY,
    Blob,
    ContentArea,
    ContentTypeDefinition,
    Culture,
    IndexIgnore,
    PropertyDataCollection,
)
from catalog_search.models.injection import Injected
from catalog_search.services.indexing import fields
from catalog_search.observability.logging import get_logger

logger = get_logger(__name__)

PATH_SEPARATOR = "."

DEFAULT_EXCLUDED_TYPES: tuple[Any, ...] = (
    PropertyDataCollection,
    ContentArea,
    Culture,
    list[Culture],
    ContentTypeDefinition,
    Blob,
)

DEFAULT_RESERVED_NAMES: tuple[str, ...] = ("page_name", "default_mvc_controller")

DEFERRED_WRAPPERS: tuple[type, ...] = (Injected,)


@dataclass(frozen=True)
class PropertyMember:
    """模型上声明的一个属性

    Attributes:
        owner: 声明所在的模型类型
        name: 属性名
        serialized_name: 写入文档时使用的键
        annotation: 声明类型
        metadata: Annotated 元数据
        json_schema_extra: 字段附加信息
        is_computed: 是否为 computed_field
    """

    owner: type
    name: str
    serialized_name: str
    annotation: Any
    metadata: tuple[Any, ...] = ()
    json_schema_extra: Any = None
    is_computed: bool = False


class PropertyFilterPolicy:
    """属性过滤策略"""

    def __init__(
        self,
        excluded_types: Iterable[Any] = DEFAULT_EXCLUDED_TYPES,
        reserved_names: Iterable[str] = DEFAULT_RESERVED_NAMES,
        deferred_wrappers: Iterable[type] = DEFERRED_WRAPPERS,
        modifier_fields: Iterable[str] = fields.MODIFIER_FIELDS,
    ):
        """初始化过滤策略

        Args:
            excluded_types: 排除的声明类型（支持参数化泛型，如 list[Culture]）
            reserved_names: 保留属性名（大小写不敏感）
            deferred_wrappers: 延迟注入包装器泛型，任意类型参数都会被排除
            modifier_fields: 由修饰器写入的字段名，始终排除且不受 reserved_names 配置影响
        """
        self._excluded_keys = frozenset(_type_key(tp) for tp in excluded_types)
        self._reserved_names = frozenset(name.lower() for name in (*reserved_names, *modifier_fields))
        self._deferred_wrappers = tuple(deferred_wrappers)

        self._cache: dict[type, tuple[tuple[PropertyMember, bool], ...]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any = None) -> PropertyFilterPolicy:
        """根据配置构建过滤策略"""
        if settings is None:
            from catalog_search.config.settings import get_settings

            settings = get_settings()
        return cls(reserved_names=settings.excluded_property_names)

    # ============== 分类 ==============

    def should_exclude(self, member: PropertyMember) -> bool:
        """判断属性是否排除"""
        if self._is_marked(member):
            return True

        for name in {member.name, member.serialized_name}:
            if name.lower() in self._reserved_names or PATH_SEPARATOR in name:
                return True

        declared = _unwrap_optional(member.annotation)
        if _type_key(declared) in self._excluded_keys:
            return True

        return any(is_generic_family_member(wrapper, declared) for wrapper in self._deferred_wrappers)

    def members(self, model_type: type[BaseModel]) -> tuple[PropertyMember, ...]:
        """获取类型上声明的全部属性（按声明顺序）"""
        return tuple(member for member, _ in self._classify(model_type))

    def included_members(self, model_type: type[BaseModel]) -> tuple[PropertyMember, ...]:
        """获取会写入文档的属性"""
        return tuple(member for member, excluded in self._classify(model_type) if not excluded)

    def excluded_names(self, model_type: type[BaseModel]) -> frozenset[str]:
        """获取被排除的属性名"""
        return frozenset(member.name for member, excluded in self._classify(model_type) if excluded)

    # ============== 私有方法 ==============

    def _classify(self, model_type: type[BaseModel]) -> tuple[tuple[PropertyMember, bool], ...]:
        cached = self._cache.get(model_type)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._cache.get(model_type)
            if cached is None:
                cached = tuple(
                    (member, self.should_exclude(member)) for member in _declared_members(model_type)
                )
                self._cache[model_type] = cached
                logger.debug(
                    "property_mapping_built",
                    model=model_type.__qualname__,
                    excluded=[member.name for member, excluded in cached if excluded],
                )
        return cached

    def _is_marked(self, member: PropertyMember) -> bool:
        if _carries_marker(member.metadata, member.json_schema_extra):
            return True

        # 子类（例如运行时代理类型）重新声明字段时可能丢失标记，沿 MRO 查找基类声明
        for klass in member.owner.__mro__[1:]:
            if not _is_model_class(klass):
                continue
            info = klass.model_fields.get(member.name) or klass.model_computed_fields.get(member.name)
            if info is not None and _carries_marker(
                getattr(info, "metadata", ()), getattr(info, "json_schema_extra", None)
            ):
                return True
        return False


def is_generic_family_member(generic: type, candidate: Any) -> bool:
    """判断类型是否属于某个泛型族（忽略类型参数）

    同时匹配参数化别名（Injected[int]）与其子类（class X(Injected[int])）。
    """
    candidate = get_origin(candidate) or candidate
    if not isinstance(candidate, type):
        return False

    for klass in candidate.__mro__:
        if klass is object:
            break
        if klass is generic:
            return True
        if any(get_origin(base) is generic for base in getattr(klass, "__orig_bases__", ())):
            return True
    return False


def _declared_members(model_type: type[BaseModel]) -> list[PropertyMember]:
    members = []
    for name, info in model_type.model_fields.items():
        members.append(
            PropertyMember(
                owner=model_type,
                name=name,
                serialized_name=info.serialization_alias or info.alias or name,
                annotation=info.annotation,
                metadata=tuple(info.metadata),
                json_schema_extra=info.json_schema_extra,
            )
        )
    for name, info in model_type.model_computed_fields.items():
        members.append(
            PropertyMember(
                owner=model_type,
                name=name,
                serialized_name=info.alias or name,
                annotation=info.return_type,
                json_schema_extra=info.json_schema_extra,
                is_computed=True,
            )
        )
    return members


def _carries_marker(metadata: Iterable[Any], json_schema_extra: Any) -> bool:
    for item in metadata:
        if isinstance(item, IndexIgnore) or item is IndexIgnore:
            return True
    return isinstance(json_schema_extra, dict) and bool(json_schema_extra.get(INDEX_IGNORE_KEY))


def _is_model_class(klass: type) -> bool:
    return isinstance(klass, type) and issubclass(klass, BaseModel) and klass is not BaseModel


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _type_key(annotation: Any) -> Any:
    """归一化类型用于比较，typing.List[X] 与 list[X] 视为相同"""
    if get_origin(annotation) is typing.Annotated:
        annotation = get_args(annotation)[0]
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    return (origin, tuple(_type_key(arg) for arg in get_args(annotation)))
