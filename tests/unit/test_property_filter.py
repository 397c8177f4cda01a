"""
属性过滤策略单元测试

测试 catalog_search/services/indexing/exclusion.py 模块的功能。
"""

from typing import Annotated, List, Optional
from unittest.mock import patch

from pydantic import BaseModel, ConfigDict, Field, computed_field

from catalog_search.models import (
    Blob,
    ContentArea,
    ContentRef,
    ContentTypeDefinition,
    Culture,
    IndexIgnore,
    Injected,
    MediaContent,
    PageContent,
    PropertyDataCollection,
)
from catalog_search.services.indexing import PropertyFilterPolicy, PropertyMember, is_generic_family_member


class Catalog:
    """测试用服务"""


class CatalogLoader(Injected[Catalog]):
    """Injected 的具体子类"""


class Article(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    title: str = ""
    tags: list[str] = []
    parent: ContentRef = ContentRef.EMPTY
    secret: Annotated[str, IndexIgnore()] = ""
    internal_note: str = Field(default="", json_schema_extra={"index_ignore": True})
    PAGE_NAME: str = ""
    meta_value: str = Field(default="", alias="meta.value")
    area: ContentArea | None = None
    culture: Optional[Culture] = None
    cultures: list[Culture] = []
    legacy_cultures: List[Culture] = []
    properties: PropertyDataCollection | None = None
    definition: ContentTypeDefinition | None = None
    attachment: Blob | None = None
    loader: Injected[Catalog] | None = None
    catalog_loader: CatalogLoader | None = None


class ProxiedArticle(Article):
    """重新声明字段、丢失标记的子类（模拟运行时代理类型）"""

    secret: str = ""


class Summary(BaseModel):
    name: str = ""

    @computed_field
    @property
    def slug(self) -> str:
        return self.name.lower()

    @computed_field(json_schema_extra={"index_ignore": True})
    @property
    def checksum(self) -> str:
        return str(hash(self.name))


def member(name: str, annotation=str, **kwargs) -> PropertyMember:
    return PropertyMember(
        owner=kwargs.pop("owner", Article),
        name=name,
        serialized_name=kwargs.pop("serialized_name", name),
        annotation=annotation,
        **kwargs,
    )


class TestPropertyFilterPolicy:
    """测试属性排除规则"""

    def setup_method(self):
        self.policy = PropertyFilterPolicy()

    def test_excluded_names(self):
        """测试模型上被排除的属性"""
        assert self.policy.excluded_names(Article) == {
            "secret",
            "internal_note",
            "PAGE_NAME",
            "meta_value",
            "area",
            "culture",
            "cultures",
            "legacy_cultures",
            "properties",
            "definition",
            "attachment",
            "loader",
            "catalog_loader",
        }

    def test_included_members_keep_declaration_order(self):
        """测试保留的属性按声明顺序返回"""
        names = [m.name for m in self.policy.included_members(Article)]

        assert names == ["title", "tags", "parent"]

    def test_plain_property_is_included(self):
        """测试普通属性不被排除"""
        assert self.policy.should_exclude(member("display")) is False

    def test_marker_annotation(self):
        """测试 Annotated 标记"""
        assert self.policy.should_exclude(member("display", metadata=(IndexIgnore(),))) is True

    def test_marker_in_json_schema_extra(self):
        """测试字段附加信息中的标记"""
        assert self.policy.should_exclude(member("display", json_schema_extra={"index_ignore": True})) is True
        assert self.policy.should_exclude(member("display", json_schema_extra={"index_ignore": False})) is False

    def test_marker_found_on_base_declaration(self):
        """测试子类重新声明后仍能沿 MRO 找到基类上的标记"""
        assert "secret" in self.policy.excluded_names(ProxiedArticle)

    def test_reserved_names_case_insensitive(self):
        """测试保留名大小写不敏感"""
        assert self.policy.should_exclude(member("page_name")) is True
        assert self.policy.should_exclude(member("Page_Name")) is True
        assert self.policy.should_exclude(member("DEFAULT_MVC_CONTROLLER")) is True

    def test_modifier_field_names(self):
        """测试与修饰器字段同名的属性始终排除"""
        policy = PropertyFilterPolicy(reserved_names=[])

        for name in ("search_ancestors", "search_types", "search_description", "search_media_contents"):
            assert policy.should_exclude(member(name)) is True
        assert policy.should_exclude(member("description", serialized_name="Search_Description")) is True
        assert policy.should_exclude(member("search_summary")) is False

    def test_dotted_names(self):
        """测试包含路径分隔符的属性名"""
        assert self.policy.should_exclude(member("a.b")) is True
        assert self.policy.should_exclude(member("meta_value", serialized_name="meta.value")) is True

    def test_excluded_types(self):
        """测试排除类型"""
        for annotation in (PropertyDataCollection, ContentArea, Culture, ContentTypeDefinition, Blob):
            assert self.policy.should_exclude(member("value", annotation)) is True

    def test_parameterized_excluded_type(self):
        """测试参数化类型按类型参数匹配"""
        assert self.policy.should_exclude(member("value", list[Culture])) is True
        assert self.policy.should_exclude(member("value", List[Culture])) is True
        assert self.policy.should_exclude(member("value", list[str])) is False

    def test_optional_excluded_type(self):
        """测试可选声明会先去掉 None"""
        assert self.policy.should_exclude(member("value", Culture | None)) is True
        assert self.policy.should_exclude(member("value", Optional[Blob])) is True
        assert self.policy.should_exclude(member("value", Culture | Blob)) is False

    def test_deferred_wrapper_any_type_argument(self):
        """测试 Injected 任意类型参数都会被排除"""
        assert self.policy.should_exclude(member("value", Injected[Catalog])) is True
        assert self.policy.should_exclude(member("value", Injected[int])) is True
        assert self.policy.should_exclude(member("value", Injected)) is True

    def test_deferred_wrapper_subclass(self):
        """测试 Injected 的子类同样被排除"""
        assert self.policy.should_exclude(member("value", CatalogLoader)) is True

    def test_unrelated_generic_is_included(self):
        """测试无关泛型不被排除"""
        assert self.policy.should_exclude(member("value", dict[str, int])) is False

    def test_computed_fields(self):
        """测试 computed_field 同样参与过滤"""
        assert self.policy.excluded_names(Summary) == {"checksum"}
        assert [m.name for m in self.policy.included_members(Summary)] == ["name", "slug"]

    def test_custom_reserved_names(self):
        """测试自定义保留名"""
        policy = PropertyFilterPolicy(reserved_names=["title"])

        assert "title" in policy.excluded_names(Article)
        assert "PAGE_NAME" not in policy.excluded_names(Article)

    def test_classification_is_cached(self):
        """测试分类结果按类型缓存"""
        with patch.object(self.policy, "should_exclude", wraps=self.policy.should_exclude) as spy:
            first = self.policy.members(Summary)
            second = self.policy.members(Summary)

        assert first == second
        assert spy.call_count == 3


class TestContentModels:
    """测试内置内容类型的过滤结果"""

    def test_page_content(self):
        """测试页面内容"""
        excluded = PropertyFilterPolicy().excluded_names(PageContent)

        assert {
            "page_name",
            "default_mvc_controller",
            "main_content_area",
            "property_data",
            "content_type",
            "master_language",
            "existing_languages",
        } <= excluded
        assert "main_body" not in excluded

    def test_media_content(self):
        """测试媒体内容不直接输出二进制"""
        excluded = PropertyFilterPolicy().excluded_names(MediaContent)

        assert {"thumbnail", "binary_data"} <= excluded
        assert "mime_type" not in excluded


class TestGenericFamily:
    """测试泛型族判断"""

    def test_parameterized_alias(self):
        """测试参数化别名"""
        assert is_generic_family_member(Injected, Injected[str]) is True

    def test_subclass(self):
        """测试子类"""
        assert is_generic_family_member(Injected, CatalogLoader) is True

    def test_unrelated(self):
        """测试无关类型"""
        assert is_generic_family_member(Injected, str) is False
        assert is_generic_family_member(Injected, list[str]) is False
        assert is_generic_family_member(Injected, "Injected") is False
