"""Tenant-scoped filter/sort/paginate query construction.

Every statement produced here carries an equality predicate on the owning
tenant column. User input only ever reaches SQL as bound parameters; sort
columns are resolved through an allow-list and never interpolated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from types import MappingProxyType
from typing import Any, Literal

from sqlalchemy import Select, String, cast, false, func, literal, or_, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from app.platform.errors import InvalidSortField, InvalidSortOrder, ValidationError
from app.platform.query.pagination import PageRequest


SortOrder = Literal["asc", "desc"]
_SORT_ORDERS: frozenset[str] = frozenset({"asc", "desc"})
_LIKE_ESCAPE = "\\"


@dataclass(frozen=True, slots=True, eq=False)
class SortConfig:
    """Allow-list of sortable fields for one resource type.

    ``fields`` maps external (API) names to columns. ``tie_breaker`` is
    appended to every ordering so that paging through equal sort keys is
    stable between requests.
    """

    fields: Mapping[str, ColumnElement[Any]]
    default_field: str
    tie_breaker: ColumnElement[Any]
    default_order: SortOrder = "asc"

    def __post_init__(self) -> None:
        if self.default_field not in self.fields:
            raise ValueError(f"default sort field {self.default_field!r} is not in the allow-list")
        if self.default_order not in _SORT_ORDERS:
            raise ValueError(f"default sort order {self.default_order!r} is invalid")
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def resolve_field(self, sort_by: str | None) -> ColumnElement[Any]:
        if not sort_by:
            return self.fields[self.default_field]
        column = self.fields.get(sort_by)
        if column is None:
            raise InvalidSortField(sort_by)
        return column

    def resolve_order(self, sort_order: str | None) -> SortOrder:
        if not sort_order:
            return self.default_order
        if sort_order not in _SORT_ORDERS:
            raise InvalidSortOrder(sort_order)
        return sort_order  # type: ignore[return-value]

    def order_by(self, sort_by: str | None, sort_order: str | None) -> list[ColumnElement[Any]]:
        column = self.resolve_field(sort_by)
        direction = self.resolve_order(sort_order)
        primary = column.asc() if direction == "asc" else column.desc()
        clauses: list[ColumnElement[Any]] = [primary]
        if column is not self.tie_breaker:
            clauses.append(self.tie_breaker.asc())
        return clauses


def escape_like(value: str) -> str:
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )


def contains_pattern(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return f"%{escape_like(trimmed)}%"


def optional_search(value: str | None, *columns: ColumnElement[Any]) -> ColumnElement[bool]:
    """Case-insensitive substring match over ``columns``; unconditionally true when ``value`` is blank."""

    if not columns:
        raise ValueError("optional_search requires at least one column")
    param = literal(contains_pattern(value), String())
    matches = [column.ilike(param, escape=_LIKE_ESCAPE) for column in columns]
    return or_(cast(param, String()).is_(None), *matches)


def optional_equals(column: ColumnElement[Any], value: Any) -> ColumnElement[bool]:
    param = literal(value, column.type)
    return or_(cast(param, column.type).is_(None), column == param)


def optional_range(
    column: ColumnElement[Any],
    lower: Any = None,
    upper: Any = None,
    *,
    type_: TypeEngine[Any] | None = None,
    upper_inclusive: bool = False,
) -> ColumnElement[bool]:
    """Range predicate ``lower <= column < upper`` where each bound may be absent."""

    bound_type = type_ if type_ is not None else column.type
    lower_param = literal(lower, bound_type)
    upper_param = literal(upper, bound_type)
    upper_match = column <= upper_param if upper_inclusive else column < upper_param
    return or_(cast(lower_param, bound_type).is_(None), column >= lower_param) & or_(
        cast(upper_param, bound_type).is_(None), upper_match
    )


def parse_date_filter(value: str | None, *, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime filter value.

    A bare date used as an upper bound covers the whole day.
    """

    if value is None or not value.strip():
        return None
    raw = value.strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("invalid date format") from None

    if len(raw) == 10:
        parsed = datetime.combine(parsed.date(), time.max if end_of_day else time.min)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True, slots=True, eq=False)
class ListQuery:
    count: Select[Any]
    page: Select[Any]


@dataclass(frozen=True, slots=True, eq=False)
class TenantQueryBuilder:
    """Builds the count and page statements for one tenant-owned model."""

    model: type[Any]
    sort: SortConfig
    tenant_attribute: str = "tenant_id"
    _tenant_column: ColumnElement[Any] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        column = getattr(self.model, self.tenant_attribute, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no tenant column {self.tenant_attribute!r}")
        object.__setattr__(self, "_tenant_column", column)

    def tenant_predicate(self, tenant_id: str) -> ColumnElement[bool]:
        if not tenant_id:
            raise ValidationError("tenant id is required")
        return self._tenant_column == tenant_id

    def scoped(self, tenant_id: str, base: Select[Any] | None = None) -> Select[Any]:
        stmt = base if base is not None else select(self.model)
        return stmt.where(self.tenant_predicate(tenant_id))

    def build(
        self,
        tenant_id: str,
        *,
        filters: Iterable[ColumnElement[bool]] = (),
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: PageRequest | None = None,
    ) -> ListQuery:
        # Resolve ordering first so an invalid sort never reaches the store.
        ordering = self.sort.order_by(sort_by, sort_order)
        request = page or PageRequest()

        filtered = self.scoped(tenant_id).where(*filters)
        count_stmt = select(func.count()).select_from(filtered.order_by(None).subquery())
        page_stmt = filtered.order_by(*ordering).limit(request.limit).offset(request.offset)
        return ListQuery(count=count_stmt, page=page_stmt)


def in_ids(column: ColumnElement[Any], values: Sequence[Any]) -> ColumnElement[bool]:
    if not values:
        return false()
    return column.in_(list(values))
