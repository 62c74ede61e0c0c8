"""
Tenant-scoped query building.

Builders here produce an abstract ``QuerySpec``: a list of predicates, an
ordering and a page window. ``sitecms.utils.pagination.apply_query_spec``
turns it into SQL. A spec cannot exist without a site id and the site
predicate always comes first.
"""

import enum
from dataclasses import dataclass, field
from typing import Any

from sitecms.config import settings
from sitecms.exceptions import ValidationError
from sitecms.models.content import ContentStatus

STATUS_ANY = "all"


class Op(str, enum.Enum):
    EQ = "eq"
    IN = "in"
    # case-insensitive substring over one or more fields
    SEARCH = "search"
    # equality on a key inside a JSON column, field is "column.key"
    JSON_EQ = "json_eq"
    # JSON array column contains a scalar
    CONTAINS = "contains"


@dataclass(frozen=True)
class Predicate:
    field: str | tuple[str, ...]
    op: Op
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = True


DEFAULT_SORT = (SortKey("created_at"), SortKey("id"))


@dataclass(frozen=True)
class QuerySpec:
    site_id: str
    filters: tuple[Predicate, ...] = ()
    sort: tuple[SortKey, ...] = DEFAULT_SORT
    limit: int = settings.pagination_default_limit
    skip: int = 0

    def __post_init__(self):
        if not self.site_id or not isinstance(self.site_id, str):
            raise ValueError("QuerySpec requires a site_id")

    @property
    def predicates(self) -> tuple[Predicate, ...]:
        return (Predicate("site_id", Op.EQ, self.site_id),) + self.filters


@dataclass
class ContentFilters:
    status: str | None = None
    search: str | None = None
    search_data: bool = True
    field_matches: dict[str, Any] = field(default_factory=dict)
    limit: int | None = None
    skip: int | None = None


def clamp_pagination(limit: int | None, skip: int | None) -> tuple[int, int]:
    """Limit defaults to 20 and is clamped to 1..100; skip is never negative."""
    if limit is None:
        limit = settings.pagination_default_limit
    limit = max(1, min(int(limit), settings.pagination_max_limit))
    skip = max(0, int(skip or 0))
    return limit, skip


def _search_predicate(term: str | None, fields: tuple[str, ...]) -> Predicate | None:
    if term is None:
        return None
    term = term.strip()
    if not term:
        return None
    return Predicate(fields, Op.SEARCH, term)


def _parse_status(status: str | None) -> ContentStatus | None:
    if status is None or status == STATUS_ANY:
        return None
    try:
        return ContentStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid status '{status}'", field="status") from None


def build_content_query(
    site_id: str,
    content_type_id: str | None = None,
    filters: ContentFilters | None = None,
    *,
    is_admin: bool = False,
) -> QuerySpec:
    """
    Build the query for a content listing.

    Public callers only ever see published items, whatever status they ask
    for. Admins get the requested status, or every status when none (or
    ``all``) is given.
    """
    filters = filters or ContentFilters()
    predicates: list[Predicate] = []

    if content_type_id:
        predicates.append(Predicate("content_type_id", Op.EQ, content_type_id))

    if is_admin:
        status = _parse_status(filters.status)
        if status is not None:
            predicates.append(Predicate("status", Op.EQ, status))
    else:
        predicates.append(Predicate("status", Op.EQ, ContentStatus.PUBLISHED))

    search_fields = ("title", "data") if filters.search_data else ("title",)
    search = _search_predicate(filters.search, search_fields)
    if search:
        predicates.append(search)

    for key, value in filters.field_matches.items():
        if isinstance(value, (dict, list)):
            raise ValidationError(f"Cannot filter on non-scalar value for '{key}'", field=key)
        predicates.append(Predicate(f"data.{key}", Op.JSON_EQ, value))

    limit, skip = clamp_pagination(filters.limit, filters.skip)
    return QuerySpec(site_id=site_id, filters=tuple(predicates), limit=limit, skip=skip)


def build_tenant_query(
    site_id: str,
    *,
    equals: dict[str, Any] | None = None,
    contains: dict[str, Any] | None = None,
    search: str | None = None,
    search_fields: tuple[str, ...] = ("title",),
    limit: int | None = None,
    skip: int | None = None,
) -> QuerySpec:
    """Generic site-scoped listing used for submissions and media."""
    predicates: list[Predicate] = []

    for name, value in (equals or {}).items():
        if value is not None:
            predicates.append(Predicate(name, Op.EQ, value))

    for name, value in (contains or {}).items():
        if value is not None:
            predicates.append(Predicate(name, Op.CONTAINS, value))

    predicate = _search_predicate(search, search_fields)
    if predicate:
        predicates.append(predicate)

    limit, skip = clamp_pagination(limit, skip)
    return QuerySpec(site_id=site_id, filters=tuple(predicates), limit=limit, skip=skip)
