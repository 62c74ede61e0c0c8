"""
Tests for the content store: create, update with revisions and diffs,
pending drafts, deletes and revision restore
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from sitecms.exceptions import (
    ContentNotFoundError,
    ContentValidationError,
    DuplicateResourceError,
    InvalidStatusTransitionError,
    VersionConflictError,
)
from sitecms.models.content import ContentStatus
from sitecms.models.revision import Revision
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.content import ContentCreate, ContentUpdate
from sitecms.services import content_service

SITE_ID = "site-a"


@pytest.fixture
def events():
    with patch("sitecms.services.webhook_service.trigger_event", new_callable=AsyncMock) as mock:
        yield mock


def fired(mock) -> list[WebhookEvent]:
    return [call.args[2] for call in mock.await_args_list]


async def revision_count(db, content_id: str) -> int:
    result = await db.execute(select(func.count(Revision.id)).where(Revision.content_id == content_id))
    return result.scalar()


async def make_member(db, title="Sam Lee", status=ContentStatus.DRAFT, **data):
    payload = ContentCreate(title=title, status=status, data={"name": "Sam", "role": "Engineer", **data})
    return await content_service.create_content(db, SITE_ID, "team", payload, actor="user_1")


class TestCreate:
    async def test_create_assigns_ids_and_slug(self, db, default_types, events):
        content = await make_member(db)

        assert content.content_id.startswith("content_")
        assert content.slug == "sam-lee"
        assert content.version == 1
        assert content.published_at is None
        assert fired(events) == [WebhookEvent.CONTENT_CREATED]

    async def test_created_published(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)

        assert content.published_at is not None
        assert fired(events) == [WebhookEvent.CONTENT_PUBLISHED]

    async def test_slugs_are_unique_per_site(self, db, default_types, events):
        first = await make_member(db, title="Solar Farm")
        second = await make_member(db, title="Solar Farm")
        third = await make_member(db, title="Solar Farm")

        assert [first.slug, second.slug, third.slug] == ["solar-farm", "solar-farm-2", "solar-farm-3"]

    async def test_slug_falls_back_to_content_id(self, db, default_types, events):
        content = await make_member(db, title="!!!")
        assert content.slug == content.content_id

    async def test_explicit_slug_taken(self, db, default_types, events):
        await make_member(db, title="Solar Farm")
        payload = ContentCreate(title="Other", slug="Solar Farm", data={"name": "Sam", "role": "Engineer"})

        with pytest.raises(DuplicateResourceError):
            await content_service.create_content(db, SITE_ID, "team", payload)

    async def test_missing_required_field(self, db, default_types, events):
        payload = ContentCreate(title="Sam", data={"name": "Sam"})

        with pytest.raises(ContentValidationError) as exc_info:
            await content_service.create_content(db, SITE_ID, "team", payload)

        assert exc_info.value.errors == [{"field": "role", "message": "Role is required"}]
        assert events.await_count == 0

    async def test_unknown_keys_dropped_and_rich_text_cleaned(self, db, default_types, events):
        content = await make_member(db, description="<p>Hi</p><script>alert(1)</script>", shoeSize=44)

        assert "shoeSize" not in content.data
        assert "<script>" not in content.data["description"]
        assert content.data["description"].startswith("<p>Hi</p>")

    async def test_create_records_initial_revision(self, db, default_types, events):
        content = await make_member(db)

        revisions = await content_service.list_revisions(db, SITE_ID, "team", content.content_id)
        assert len(revisions) == 1
        assert revisions[0].version == 1
        assert revisions[0].title == "Sam Lee"
        assert revisions[0].data == {"name": "Sam", "role": "Engineer"}
        assert revisions[0].changed_fields == ["data.name", "data.role"]
        assert revisions[0].changed_by == "user_1"

    async def test_unknown_content_type(self, db, default_types, events):
        from sitecms.exceptions import ContentTypeNotFoundError

        with pytest.raises(ContentTypeNotFoundError):
            await content_service.create_content(db, SITE_ID, "nope", ContentCreate(title="x"))


class TestUpdate:
    async def test_update_writes_revision_of_prior_state(self, db, default_types, events):
        content = await make_member(db)
        events.reset_mock()

        updated = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(data={"name": "Sam", "role": "Lead"}), "user_2"
        )

        assert updated.version == 2
        assert updated.data["role"] == "Lead"
        assert updated.updated_by == "user_2"

        revisions = await content_service.list_revisions(db, SITE_ID, "team", content.content_id)
        assert len(revisions) == 2
        assert revisions[0].data["role"] == "Engineer"
        assert revisions[0].version == 1
        assert revisions[0].changed_fields == ["data.role"]
        assert fired(events) == [WebhookEvent.CONTENT_UPDATED]
        assert events.await_args.args[3]["changedFields"] == ["data.role"]

    async def test_no_change_no_revision_no_webhook(self, db, default_types, events):
        content = await make_member(db)
        events.reset_mock()

        same = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(title="Sam Lee", data=dict(content.data))
        )

        assert same.version == 1
        assert await revision_count(db, content.content_id) == 1
        assert events.await_count == 0

    async def test_title_edit_keeps_slug(self, db, default_types, events):
        content = await make_member(db)
        updated = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(title="Samantha Lee")
        )
        assert updated.slug == "sam-lee"

    async def test_explicit_slug_change(self, db, default_types, events):
        content = await make_member(db)
        updated = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(slug="team-sam")
        )
        assert updated.slug == "team-sam"

    async def test_invalid_data_rejected(self, db, default_types, events):
        content = await make_member(db)

        with pytest.raises(ContentValidationError):
            await content_service.update_content(
                db, SITE_ID, "team", content.content_id, ContentUpdate(data={"name": "Sam", "order": "first"})
            )

    async def test_version_conflict(self, db, default_types, events):
        content = await make_member(db)

        with pytest.raises(VersionConflictError):
            await content_service.update_content(
                db, SITE_ID, "team", content.content_id, ContentUpdate(title="New", expected_version=7)
            )

    async def test_matching_version_is_accepted(self, db, default_types, events):
        content = await make_member(db)
        updated = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(title="New", expected_version=1)
        )
        assert updated.version == 2

    async def test_other_site_cannot_update(self, db, default_types, events):
        content = await make_member(db)

        with pytest.raises(ContentNotFoundError):
            await content_service.update_content(db, "site-b", "team", content.content_id, ContentUpdate(title="x"))


class TestStatusTransitions:
    async def test_publish_then_archive(self, db, default_types, events):
        content = await make_member(db)
        events.reset_mock()

        published = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.PUBLISHED)
        )
        assert published.published_at is not None

        archived = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.ARCHIVED)
        )
        assert archived.status == ContentStatus.ARCHIVED
        assert fired(events) == [WebhookEvent.CONTENT_PUBLISHED, WebhookEvent.CONTENT_ARCHIVED]

    async def test_archived_cannot_be_published_directly(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)
        await content_service.delete_content(db, SITE_ID, "team", content.content_id)

        with pytest.raises(InvalidStatusTransitionError):
            await content_service.update_content(
                db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.PUBLISHED)
            )

    async def test_archived_back_to_draft(self, db, default_types, events):
        content = await make_member(db)
        await content_service.delete_content(db, SITE_ID, "team", content.content_id)

        restored = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.DRAFT)
        )
        assert restored.status == ContentStatus.DRAFT


class TestPendingDrafts:
    async def test_draft_edit_keeps_live_version(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)

        pending = await content_service.update_content(
            db,
            SITE_ID,
            "team",
            content.content_id,
            ContentUpdate(status=ContentStatus.DRAFT, data={"name": "Sam", "role": "Lead"}),
        )

        assert pending.status == ContentStatus.PUBLISHED
        assert pending.has_draft is True
        assert pending.data["role"] == "Engineer"
        assert pending.draft_data["role"] == "Lead"

        public = await content_service.find_by_id(db, SITE_ID, "team", content.content_id)
        assert public.data["role"] == "Engineer"

    async def test_publishing_applies_pending_draft(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)
        await content_service.update_content(
            db,
            SITE_ID,
            "team",
            content.content_id,
            ContentUpdate(status=ContentStatus.DRAFT, title="Sam L.", data={"name": "Sam", "role": "Lead"}),
        )

        live = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.PUBLISHED)
        )

        assert live.title == "Sam L."
        assert live.data["role"] == "Lead"
        assert live.has_draft is False
        assert live.draft_data is None

    async def test_unchanged_draft_is_not_stored(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)
        events.reset_mock()

        same = await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(status=ContentStatus.DRAFT)
        )

        assert same.has_draft is False
        assert events.await_count == 0


class TestReads:
    async def test_public_cannot_find_drafts(self, db, default_types, events):
        content = await make_member(db)

        with pytest.raises(ContentNotFoundError):
            await content_service.find_by_id(db, SITE_ID, "team", content.content_id)

        found = await content_service.find_by_id(db, SITE_ID, "team", content.content_id, is_admin=True)
        assert found.id == content.id


class TestDelete:
    async def test_soft_delete_archives(self, db, default_types, events):
        content = await make_member(db, status=ContentStatus.PUBLISHED)
        events.reset_mock()

        archived = await content_service.delete_content(db, SITE_ID, "team", content.content_id)

        assert archived.status == ContentStatus.ARCHIVED
        assert await revision_count(db, content.content_id) == 2
        assert fired(events) == [WebhookEvent.CONTENT_ARCHIVED]

    async def test_hard_delete_removes_row_and_revisions(self, db, default_types, events):
        content = await make_member(db)
        await content_service.update_content(db, SITE_ID, "team", content.content_id, ContentUpdate(title="B"))
        events.reset_mock()

        result = await content_service.delete_content(db, SITE_ID, "team", content.content_id, hard=True)

        assert result is None
        assert await revision_count(db, content.content_id) == 0
        assert fired(events) == [WebhookEvent.CONTENT_DELETED]
        with pytest.raises(ContentNotFoundError):
            await content_service.find_by_id(db, SITE_ID, "team", content.content_id, is_admin=True)


class TestRevisions:
    async def test_restore_brings_back_title_and_data(self, db, default_types, events):
        content = await make_member(db, title="Version A")
        await content_service.update_content(
            db, SITE_ID, "team", content.content_id, ContentUpdate(title="Version B", data={"name": "Sam", "role": "Lead"})
        )
        revision = (await content_service.list_revisions(db, SITE_ID, "team", content.content_id))[0]

        restored = await content_service.restore_revision(
            db, SITE_ID, "team", content.content_id, revision.id, "user_1"
        )

        assert restored.title == "Version A"
        assert restored.data["role"] == "Engineer"
        assert restored.version == 3
        assert await revision_count(db, content.content_id) == 3

    async def test_revisions_are_newest_first(self, db, default_types, events):
        content = await make_member(db, title="One")
        for title in ("Two", "Three"):
            await content_service.update_content(db, SITE_ID, "team", content.content_id, ContentUpdate(title=title))

        revisions = await content_service.list_revisions(db, SITE_ID, "team", content.content_id)
        assert [r.title for r in revisions] == ["Two", "One", "One"]

    async def test_unknown_revision(self, db, default_types, events):
        from sitecms.exceptions import RevisionNotFoundError

        content = await make_member(db)
        with pytest.raises(RevisionNotFoundError):
            await content_service.restore_revision(db, SITE_ID, "team", content.content_id, 999)


class TestChangedFields:
    def test_diff_is_order_insensitive_for_nested_values(self):
        old = {"data.stats": {"a": 1, "b": 2}, "title": "x"}
        new = {"data.stats": {"b": 2, "a": 1}, "title": "y"}
        assert content_service.get_changed_fields(old, new) == ["title"]

    def test_added_and_removed_keys(self):
        assert content_service.get_changed_fields({"a": 1}, {"b": 1}) == ["a", "b"]
