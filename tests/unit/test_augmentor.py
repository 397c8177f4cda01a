"""
文档增强序列化单元测试

测试 catalog_search/services/indexing/augmentor.py 模块的功能。
"""

import json

import pytest

from catalog_search.models import Blob, Content, ContentRef, MediaContent, NodeContent, PageContent
from catalog_search.services.indexing import (
    ContentSerializer,
    DocumentAugmentor,
    ModifierArgs,
    ModifierError,
    ModifierPipeline,
    default_modifiers,
)


class FixedSerializer(ContentSerializer):
    """内容对象固定序列化为给定字节"""

    def __init__(self, base: bytes):
        super().__init__()
        self.base = base

    def dumps(self, value):
        if isinstance(value, Content):
            return self.base
        return super().dumps(value)


class ExtraModifier:
    def process(self, args: ModifierArgs) -> None:
        args.add_item("extra", "y")


class FieldModifier:
    def __init__(self, name: str, value):
        self.name = name
        self.value = value

    def process(self, args: ModifierArgs) -> None:
        args.add_item(self.name, self.value)


class SilentModifier:
    def process(self, args: ModifierArgs) -> None:
        pass


class PriceSiblingModifier:
    def process(self, args: ModifierArgs) -> None:
        args.add_sibling(f"{args.content.content_link}-price", {"price": 10, "currency": "SEK"}, index="prices")


class FailingModifier:
    def process(self, args: ModifierArgs) -> None:
        raise KeyError("missing")


def node(id: int = 1, name: str = "x") -> NodeContent:
    return NodeContent(content_link=ContentRef(id=id), name=name)


class TestDocumentAugmentor:
    """测试文档增强序列化"""

    def test_without_pipeline_returns_base_bytes(self):
        """测试未配置修饰器时与基础序列化逐字节一致"""
        serializer = FixedSerializer(b'{"id":1,"name":"x"}')

        for pipeline in (None, ModifierPipeline()):
            document = DocumentAugmentor(serializer, pipeline).serialize(node())
            assert document.body == b'{"id":1,"name":"x"}'
            assert document.document_id == "1"
            assert document.siblings == ()

    def test_single_modifier(self):
        """测试单个修饰器追加字段"""
        augmentor = DocumentAugmentor(FixedSerializer(b'{"id":1}'), ModifierPipeline([ExtraModifier()]))

        assert augmentor.dumps(node()) == b'{"id":1,"extra":"y"}'

    def test_modifiers_without_contributions(self):
        """测试修饰器没有贡献时返回未修改的基础字节"""
        augmentor = DocumentAugmentor(FixedSerializer(b'{"id":1}'), ModifierPipeline([SilentModifier()]))

        assert augmentor.dumps(node()) == b'{"id":1}'

    def test_multiple_modifiers_union_of_fields(self):
        """测试多个修饰器的字段合并"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline([
            FieldModifier("a", 1),
            FieldModifier("b", [ContentRef(id=2), ContentRef(id=3, work_id=1)]),
            FieldModifier("c", {"nested": "相机"}),
        ]))
        content = node(id=9, name="Cameras")

        document = json.loads(augmentor.dumps(content))

        assert document == {
            **json.loads(ContentSerializer().dumps(content)),
            "a": 1,
            "b": ["2", "3_1"],
            "c": {"nested": "相机"},
        }

    def test_empty_base_object(self):
        """测试基础对象为空"""
        augmentor = DocumentAugmentor(FixedSerializer(b"{}"), ModifierPipeline([ExtraModifier()]))

        assert augmentor.dumps(node()) == b'{"extra":"y"}'

    def test_base_with_trailing_whitespace(self):
        """测试基础字节结尾带空白"""
        augmentor = DocumentAugmentor(FixedSerializer(b'{"id":1}\n'), ModifierPipeline([ExtraModifier()]))

        assert json.loads(augmentor.dumps(node())) == {"id": 1, "extra": "y"}

    def test_non_content_bypasses_modifiers(self):
        """测试非内容对象不经过修饰器"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline([FailingModifier()]))

        document = augmentor.serialize({"id": 1, "name": "x"})

        assert document.body == b'{"id":1,"name":"x"}'
        assert document.document_id is None

    def test_modifier_failure_propagates(self):
        """测试修饰器失败时不产生文档"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline([ExtraModifier(), FailingModifier()]))

        with pytest.raises(ModifierError) as exc_info:
            augmentor.serialize(node(id=4, name="Lenses"))

        assert "failed to process content ID 4 with name Lenses!" in str(exc_info.value)

    def test_siblings_are_serialized(self):
        """测试兄弟文档单独序列化"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline([PriceSiblingModifier()]))

        document = augmentor.serialize(node(id=12))

        assert document.body == ContentSerializer().dumps(node(id=12))
        assert len(document.siblings) == 1
        sibling = document.siblings[0]
        assert sibling.document_id == "12-price"
        assert sibling.body == b'{"price":10,"currency":"SEK"}'
        assert sibling.index == "prices"

    def test_secondary_process_id_is_kept(self):
        """测试二次处理标识写入结果"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline([ExtraModifier()]))

        assert augmentor.serialize(node(), "attachment").pipeline == "attachment"


class TestDefaultPipeline:
    """测试内置修饰器组合"""

    def test_variant_document(self, resolver, content_repo):
        """测试变体文档包含祖先与类型字段"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline(default_modifiers(resolver)))

        document = json.loads(augmentor.dumps(content_repo.get(ContentRef(id=100))))

        assert document["content_link"] == "100"
        assert document["search_ancestors"] == ["1", "2", "3", "10"]
        assert document["search_types"][0] == "catalog_search.models.content.VariationContent"
        assert "search_media_contents" not in document

    def test_media_document(self, resolver):
        """测试媒体文档写入文件内容但不输出二进制属性"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline(default_modifiers(resolver)))
        media = MediaContent(content_link=ContentRef(id=70), name="manual.pdf", binary_data=Blob(b"data"))

        document = json.loads(augmentor.dumps(media, "attachment"))

        assert document["search_media_contents"] == "ZGF0YQ=="
        assert "binary_data" not in document
        assert document["search_ancestors"] == []

    def test_every_field_appears_once(self, resolver, content_repo):
        """测试每个字段只出现一次"""
        augmentor = DocumentAugmentor(pipeline=ModifierPipeline(default_modifiers(resolver)))

        body = augmentor.dumps(content_repo.get(ContentRef(id=10)))

        for name in (b'"search_ancestors"', b'"search_types"', b'"content_link"'):
            assert body.count(name) == 1

    def test_plain_description_field_appears_once(self, resolver):
        """测试模型上同名的摘要属性不会与修饰器字段重复"""

        class NewsPage(PageContent):
            search_description: str | None = None

        augmentor = DocumentAugmentor(pipeline=ModifierPipeline(default_modifiers(resolver)))
        page = NewsPage(content_link=ContentRef(id=80), name="Launch", search_description="Product launch")

        body = augmentor.dumps(page)

        assert body.count(b'"search_description"') == 1
        assert json.loads(body)["search_description"] == "Product launch"
