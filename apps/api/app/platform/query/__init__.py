from app.platform.query.builder import (
    ListQuery,
    SortConfig,
    TenantQueryBuilder,
    contains_pattern,
    escape_like,
    in_ids,
    optional_equals,
    optional_range,
    optional_search,
    parse_date_filter,
)
from app.platform.query.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page, PageRequest, total_pages

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "ListQuery",
    "Page",
    "PageRequest",
    "SortConfig",
    "TenantQueryBuilder",
    "contains_pattern",
    "escape_like",
    "in_ids",
    "optional_equals",
    "optional_range",
    "optional_search",
    "parse_date_filter",
    "total_pages",
]
