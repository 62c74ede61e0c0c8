"""
Pagination Utilities

Translates a ``QuerySpec`` into a SQLAlchemy statement and fetches one page
of results together with the total match count.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Query
from sqlalchemy import JSON, String, asc, cast, desc, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.services.query_builder import Op, Predicate, QuerySpec
from sitecms.utils.sanitize import escape_like

logger = logging.getLogger(__name__)


@dataclass
class Page:
    items: list
    total: int
    limit: int
    skip: int

    @property
    def has_more(self) -> bool:
        return self.skip + len(self.items) < self.total

    def meta(self) -> dict[str, Any]:
        return {"total": self.total, "limit": self.limit, "skip": self.skip, "hasMore": self.has_more}


def _column(model, name: str):
    try:
        return getattr(model, name)
    except AttributeError:
        raise ValueError(f"{model.__name__} has no column '{name}'") from None


def _json_key_clause(model, dotted: str, value: Any):
    column_name, _, key = dotted.partition(".")
    element = _column(model, column_name)[key]
    if value is None:
        return element.as_string().is_(None)
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


def _search_clause(model, fields: str | tuple[str, ...], term: str):
    if isinstance(fields, str):
        fields = (fields,)
    pattern = f"%{escape_like(term)}%"
    clauses = []
    for name in fields:
        column = _column(model, name)
        if isinstance(column.expression.type, JSON):
            column = cast(column, String)
        clauses.append(column.ilike(pattern, escape="\\"))
    return or_(*clauses)


def predicate_to_clause(model, predicate: Predicate):
    if predicate.op == Op.EQ:
        return _column(model, predicate.field) == predicate.value
    if predicate.op == Op.IN:
        return _column(model, predicate.field).in_(predicate.value)
    if predicate.op == Op.SEARCH:
        return _search_clause(model, predicate.field, predicate.value)
    if predicate.op == Op.JSON_EQ:
        return _json_key_clause(model, predicate.field, predicate.value)
    if predicate.op == Op.CONTAINS:
        needle = escape_like(json.dumps(predicate.value))
        return cast(_column(model, predicate.field), String).like(f"%{needle}%", escape="\\")
    raise ValueError(f"Unsupported operator {predicate.op}")


def apply_query_spec(stmt, model, spec: QuerySpec, paginate: bool = True):
    """Apply predicates, ordering and the page window of ``spec`` to ``stmt``."""
    for predicate in spec.predicates:
        stmt = stmt.where(predicate_to_clause(model, predicate))

    if paginate:
        for key in spec.sort:
            column = _column(model, key.field)
            stmt = stmt.order_by(desc(column) if key.descending else asc(column))
        stmt = stmt.offset(spec.skip).limit(spec.limit)
    return stmt


async def get_total_count(db: AsyncSession, model, spec: QuerySpec) -> int:
    """Count every row matching ``spec`` regardless of the page window."""
    query = apply_query_spec(select(func.count(model.id)), model, spec, paginate=False)
    result = await db.execute(query)
    return result.scalar() or 0


async def fetch_page(db: AsyncSession, model, spec: QuerySpec) -> Page:
    result = await db.execute(apply_query_spec(select(model), model, spec))
    items = list(result.scalars().all())
    total = await get_total_count(db, model, spec)
    return Page(items=items, total=total, limit=spec.limit, skip=spec.skip)


class PaginationParams:
    """
    FastAPI dependency for pagination parameters.

    Out-of-range values are clamped by the query builder rather than
    rejected, so the query parameters carry no bounds here.

    Usage:
        @router.get("/items")
        async def list_items(pagination: PaginationParams = Depends()):
            ...
    """

    def __init__(
        self,
        limit: int | None = Query(default=None, description="Number of items to return (max 100)"),
        skip: int | None = Query(default=None, description="Number of items to skip"),
        offset: int | None = Query(default=None, description="Alias for skip"),
    ):
        self.limit = limit
        self.skip = skip if skip is not None else offset
