"""
Tests for tenant-scoped query specs and their SQL rendering
"""

import pytest
from datetime import datetime

from sqlalchemy import insert, select

from sitecms.exceptions import ValidationError
from sitecms.models.content import Content, ContentStatus
from sitecms.services.query_builder import (
    ContentFilters,
    Op,
    Predicate,
    QuerySpec,
    build_content_query,
    build_tenant_query,
    clamp_pagination,
)
from sitecms.utils.pagination import apply_query_spec, fetch_page


class TestQuerySpec:
    def test_site_id_is_required(self):
        with pytest.raises(ValueError):
            QuerySpec(site_id="")

    def test_site_predicate_comes_first(self):
        spec = QuerySpec(site_id="site-a", filters=(Predicate("status", Op.EQ, ContentStatus.DRAFT),))
        first = spec.predicates[0]
        assert (first.field, first.op, first.value) == ("site_id", Op.EQ, "site-a")
        assert len(spec.predicates) == 2


class TestPublicContentQuery:
    def test_public_is_forced_to_published(self):
        spec = build_content_query("site-a", "team", ContentFilters(status="draft"))
        statuses = [p.value for p in spec.predicates if p.field == "status"]
        assert statuses == [ContentStatus.PUBLISHED]

    def test_public_ignores_all(self):
        spec = build_content_query("site-a", "team", ContentFilters(status="all"))
        assert [p.value for p in spec.predicates if p.field == "status"] == [ContentStatus.PUBLISHED]


class TestAdminContentQuery:
    def test_admin_gets_requested_status(self):
        spec = build_content_query("site-a", "team", ContentFilters(status="archived"), is_admin=True)
        assert [p.value for p in spec.predicates if p.field == "status"] == [ContentStatus.ARCHIVED]

    def test_admin_without_status_sees_everything(self):
        spec = build_content_query("site-a", "team", ContentFilters(), is_admin=True)
        assert not [p for p in spec.predicates if p.field == "status"]

    def test_admin_invalid_status(self):
        with pytest.raises(ValidationError):
            build_content_query("site-a", "team", ContentFilters(status="deleted"), is_admin=True)


class TestContentFilters:
    def test_search_covers_title_and_data_by_default(self):
        spec = build_content_query("site-a", "team", ContentFilters(search=" sam "))
        search = [p for p in spec.predicates if p.op == Op.SEARCH]
        assert search[0].field == ("title", "data")
        assert search[0].value == "sam"

    def test_search_title_only(self):
        spec = build_content_query("site-a", "team", ContentFilters(search="sam", search_data=False))
        assert [p.field for p in spec.predicates if p.op == Op.SEARCH] == [("title",)]

    def test_blank_search_is_dropped(self):
        spec = build_content_query("site-a", "team", ContentFilters(search="   "))
        assert not [p for p in spec.predicates if p.op == Op.SEARCH]

    def test_field_match(self):
        spec = build_content_query("site-a", "team", ContentFilters(field_matches={"role": "Engineer"}))
        assert Predicate("data.role", Op.JSON_EQ, "Engineer") in spec.predicates

    def test_non_scalar_field_match(self):
        with pytest.raises(ValidationError):
            build_content_query("site-a", "team", ContentFilters(field_matches={"role": ["a"]}))


class TestPagination:
    @pytest.mark.parametrize(
        "limit,skip,expected",
        [
            (None, None, (20, 0)),
            (0, 0, (1, 0)),
            (500, 10, (100, 10)),
            (5, -3, (5, 0)),
        ],
    )
    def test_clamp(self, limit, skip, expected):
        assert clamp_pagination(limit, skip) == expected

    def test_tenant_query_drops_unset_filters(self):
        spec = build_tenant_query("site-a", equals={"status": None, "folder": "root"}, contains={"tags": None})
        assert [p.field for p in spec.predicates] == ["site_id", "folder"]


class TestSqlRendering:
    def test_site_filter_and_ordering_in_sql(self):
        spec = build_content_query("site-a", "team", ContentFilters(limit=5, skip=10))
        sql = str(apply_query_spec(select(Content), Content, spec))

        assert "content.site_id = " in sql
        assert "ORDER BY content.created_at DESC, content.id DESC" in sql
        assert "LIMIT" in sql and "OFFSET" in sql

    def test_unknown_column_is_rejected(self):
        spec = QuerySpec(site_id="site-a", filters=(Predicate("nope", Op.EQ, 1),))
        with pytest.raises(ValueError):
            apply_query_spec(select(Content), Content, spec)


class TestStablePaging:
    CREATED_AT = datetime(2024, 1, 1, 12, 0, 0)

    @pytest.fixture
    async def same_instant_rows(self, db):
        await db.execute(
            insert(Content),
            [
                {
                    "site_id": "site-a",
                    "content_type_id": "team",
                    "content_id": f"content_{n}",
                    "slug": f"member-{n}",
                    "title": f"Member {n}",
                    "data": {},
                    "status": ContentStatus.PUBLISHED,
                    "created_at": self.CREATED_AT,
                    "updated_at": self.CREATED_AT,
                }
                for n in range(6)
            ],
        )
        await db.commit()
        result = await db.execute(select(Content.id).where(Content.site_id == "site-a"))
        return sorted(result.scalars().all(), reverse=True)

    async def _page_ids(self, db, skip):
        spec = build_content_query("site-a", "team", ContentFilters(limit=2, skip=skip))
        page = await fetch_page(db, Content, spec)
        return [c.id for c in page.items]

    async def test_ties_on_created_at_page_without_gaps_or_overlap(self, db, same_instant_rows):
        first_pass = [await self._page_ids(db, skip) for skip in (0, 2, 4)]
        second_pass = [await self._page_ids(db, skip) for skip in (0, 2, 4)]

        assert first_pass == second_pass
        assert [i for page in first_pass for i in page] == same_instant_rows
        assert all(len(page) == 2 for page in first_pass)

    async def test_last_page_reports_no_more(self, db, same_instant_rows):
        spec = build_content_query("site-a", "team", ContentFilters(limit=2, skip=4))
        page = await fetch_page(db, Content, spec)
        assert page.meta() == {"total": 6, "limit": 2, "skip": 4, "hasMore": False}
