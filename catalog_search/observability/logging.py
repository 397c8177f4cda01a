"""日志配置

使用 structlog 实现结构化日志，可通过上下文变量（bind_context）
把同一批次的索引日志关联起来。
"""

import logging
import sys

import structlog


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    log_format: str = "console",
) -> None:
    """配置 structlog

    Args:
        environment: 运行环境（production 强制输出 JSON）
        log_level: 日志级别
        log_format: 输出格式（json/console）
    """
    is_production = environment == "production"
    should_json = log_format == "json" or is_production

    if should_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings() -> None:
    """根据应用配置初始化日志"""
    from catalog_search.config.settings import get_settings

    settings = get_settings()
    configure_logging(
        environment=settings.environment.value,
        log_level=settings.log_level,
        log_format=settings.log_format,
    )


def get_logger(name: str | None = None, **kwargs) -> structlog.stdlib.BoundLogger:
    """获取日志记录器

    Args:
        name: 日志记录器名称（通常使用 __name__）
        **kwargs: 额外的上下文变量

    Returns:
        BoundLogger 实例

    Examples:
        ```python
        log = get_logger(__name__)
        log.info("document_indexed", index="content", id="42")
        ```
    """
    if name:
        kwargs["name"] = name
    return structlog.get_logger(**kwargs)


def bind_context(**kwargs) -> None:
    """绑定上下文变量（当前协程/线程内的所有日志自动包含）"""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """清空所有上下文变量"""
    structlog.contextvars.clear_contextvars()
