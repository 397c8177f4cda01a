"""基础文档序列化与字节拼接

ContentSerializer 按属性过滤策略把内容对象序列化为紧凑 JSON（无多余空白，
结尾即右花括号）。splice_json_objects 在字节层面把若干 JSON 对象片段拼入
基础文档，不做反序列化：

    base      = b'{"id":1}'
    fragments = [b'{"extra":"y"}']
    result    = b'{"id":1,"extra":"y"}'
"""

from __future__ import annotations

import io
import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from catalog_search.models.content import ContentRef
from catalog_search.services.indexing.exclusion import PropertyFilterPolicy

OPEN_BRACE = b"{"
CLOSE_BRACE = b"}"
FIELD_SEPARATOR = b","
WHITESPACE = b" \t\r\n"


class SpliceError(ValueError):
    """字节拼接失败"""


class MalformedDocumentError(SpliceError):
    """基础文档不是 JSON 对象"""


class MalformedFragmentError(SpliceError):
    """片段不是 JSON 对象"""


class ContentSerializer:
    """内容序列化器

    模型只输出策略允许的属性，嵌套模型同样适用；其余值交给
    pydantic_core 转换为 JSON 兼容类型。
    """

    def __init__(self, policy: PropertyFilterPolicy | None = None):
        self.policy = policy or PropertyFilterPolicy()

    def to_document(self, value: Any) -> Any:
        """转换为 JSON 兼容结构（NaN 与无穷大写为 null）"""
        if isinstance(value, ContentRef):
            return str(value)
        if isinstance(value, BaseModel):
            return {
                member.serialized_name: self.to_document(getattr(value, member.name))
                for member in self.policy.included_members(type(value))
            }
        if isinstance(value, Mapping):
            return {str(key): self.to_document(item) for key, item in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_document(item) for item in value]
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return to_jsonable_python(value)

    def dumps(self, value: Any) -> bytes:
        """序列化为紧凑 JSON 字节"""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return json.dumps(
            self.to_document(value),
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        ).encode("utf-8")


def splice_json_objects(base: bytes, fragments: Iterable[bytes]) -> bytes:
    """把 JSON 对象片段的字段拼入基础 JSON 对象

    Args:
        base: 基础 JSON 对象
        fragments: JSON 对象片段

    Returns:
        拼接后的 JSON 对象；没有非空片段时原样返回 base

    Raises:
        MalformedDocumentError: base 不是 JSON 对象
        MalformedFragmentError: 片段不是 JSON 对象
    """
    head = _open_object(base)
    bodies = [body for body in (_object_body(fragment) for fragment in fragments) if body]
    if not bodies:
        return base

    buffer = io.BytesIO()
    buffer.write(head)
    if head.strip(WHITESPACE) != OPEN_BRACE:
        buffer.write(FIELD_SEPARATOR)
    for position, body in enumerate(bodies):
        if position:
            buffer.write(FIELD_SEPARATOR)
        buffer.write(body)
    buffer.write(CLOSE_BRACE)
    return buffer.getvalue()


def _open_object(document: bytes) -> bytes:
    """返回去掉结尾右花括号的文档（向后扫描，容忍结尾空白）"""
    end = len(document.rstrip(WHITESPACE))
    start = len(document) - len(document.lstrip(WHITESPACE))
    if end - start < 2 or document[start:start + 1] != OPEN_BRACE or document[end - 1:end] != CLOSE_BRACE:
        raise MalformedDocumentError("base document is not a JSON object")
    return document[:end - 1]


def _object_body(fragment: bytes) -> bytes:
    """返回片段去掉首尾花括号后的字段部分"""
    stripped = fragment.strip(WHITESPACE)
    if len(stripped) < 2 or stripped[:1] != OPEN_BRACE or stripped[-1:] != CLOSE_BRACE:
        raise MalformedFragmentError(f"fragment is not a JSON object: {fragment[:40]!r}")
    return stripped[1:-1].strip(WHITESPACE)
