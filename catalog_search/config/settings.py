"""配置管理

支持多源配置，优先级从高到低：
1. 环境变量（CATALOG_SEARCH_*）
2. YAML 配置文件（conf.yaml）
3. 默认值

环境变量命名规范：
- CATALOG_SEARCH_ELASTICSEARCH_HOSTS='["http://es:9200"]'
- CATALOG_SEARCH_INDEX_NAME
- CATALOG_SEARCH_MEDIA_PIPELINE
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

# YAML 配置文件路径
CONFIG_FILE = Path(os.getenv("CATALOG_SEARCH_CONFIG_FILE", "conf.yaml"))


class Environment(str, Enum):
    """环境类型"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"

    @property
    def is_production(self) -> bool:
        return self == Environment.PRODUCTION


def detect_environment() -> Environment:
    """检测当前环境"""
    env = os.getenv("CATALOG_SEARCH_ENV", os.getenv("ENVIRONMENT", "development"))
    try:
        return Environment(env)
    except ValueError:
        return Environment.DEVELOPMENT


class Settings(BaseSettings):
    """应用配置"""

    app_name: str = "Catalog Search"
    environment: Environment = Field(default_factory=detect_environment)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    elasticsearch_hosts: list[str] = ["http://localhost:9200"]
    elasticsearch_username: str | None = None
    elasticsearch_password: str | None = None
    elasticsearch_api_key: str | None = None
    elasticsearch_index_prefix: str = ""
    elasticsearch_verify_certs: bool = True

    index_name: str = "content"
    media_pipeline: str | None = "attachment"  # 媒体文件走 ingest attachment 管道
    index_bulk_size: int = 500
    index_concurrency: int = 8
    index_refresh: bool = False

    index_max_retries: int = 3
    index_retry_min_wait: float = 0.5
    index_retry_max_wait: float = 10.0

    excluded_property_names: list[str] = ["page_name", "default_mvc_controller"]

    search_page_size: int = 10

    model_config = SettingsConfigDict(
        env_prefix="catalog_search_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("index_bulk_size", "index_concurrency", "search_page_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("media_pipeline")
    @classmethod
    def validate_media_pipeline(cls, v: str | None) -> str | None:
        """空字符串表示禁用管道"""
        return v or None

    @property
    def is_production(self) -> bool:
        return self.environment.is_production

    def model_post_init(self, __context) -> None:
        """初始化后处理"""
        if self.is_production and self.log_format == "console":
            self.log_format = "json"


def _load_yaml_config() -> dict[str, Any]:
    """从 YAML 文件加载配置

    Returns:
        配置字典，文件不存在时返回空字典
    """
    if not CONFIG_FILE.exists():
        return {}

    try:
        with open(CONFIG_FILE, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        # YAML 解析失败时返回空字典，让环境变量生效
        return {}


def _env_overridden(field_name: str) -> bool:
    prefix = Settings.model_config.get("env_prefix", "")
    return f"{prefix}{field_name}".upper() in {key.upper() for key in os.environ}


_settings: Settings | None = None


def get_settings() -> Settings:
    """获取配置实例（单例）

    Returns:
        Settings 实例
    """
    global _settings
    if _settings is None:
        yaml_config = _load_yaml_config()

        # 环境变量优先于 YAML
        init_values = {
            key: value
            for key, value in yaml_config.items()
            if key in Settings.model_fields and not _env_overridden(key)
        }
        _settings = Settings(**init_values)
    return _settings


def reload_settings() -> Settings:
    """重新加载配置

    Returns:
        新的 Settings 实例
    """
    global _settings
    _settings = None
    return get_settings()
