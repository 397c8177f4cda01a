"""工具模块"""

from catalog_search.utils.retry_decorators import TRANSIENT_SEARCH_ERRORS, create_retry_decorator

__all__ = [
    "TRANSIENT_SEARCH_ERRORS",
    "create_retry_decorator",
]
