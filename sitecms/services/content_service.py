"""
Content store.

Persists content documents for a site, validating them against their
content type, keeping an append-only revision history and notifying
webhooks when something actually changed.

Lifecycle: draft -> published -> archived. Saving a published item as a
draft parks the changes in a pending draft (``draft_title`` /
``draft_data``) while the published version stays live; publishing applies
the pending draft.
"""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.exceptions import (
    ContentNotFoundError,
    ContentValidationError,
    DuplicateResourceError,
    InvalidStatusTransitionError,
    RevisionNotFoundError,
    VersionConflictError,
)
from sitecms.models.content import Content, ContentStatus
from sitecms.models.content_type import ContentType, FieldType
from sitecms.models.revision import Revision
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.content import ContentCreate, ContentUpdate
from sitecms.services import webhook_service
from sitecms.services.content_type_service import get_content_type
from sitecms.services.query_builder import QuerySpec
from sitecms.services.validation import prune_unknown_fields, validate_content
from sitecms.utils.ids import generate_id
from sitecms.utils.pagination import Page, fetch_page
from sitecms.utils.sanitize import escape_like, sanitize_html, sanitize_plain_text
from sitecms.utils.slugify import slugify, unique_slug

logger = logging.getLogger(__name__)

# Target statuses reachable from each status. Staying put is always allowed.
# published -> draft is not a transition: it stores a pending draft instead.
ALLOWED_TRANSITIONS = {
    ContentStatus.DRAFT: {ContentStatus.PUBLISHED, ContentStatus.ARCHIVED},
    ContentStatus.PUBLISHED: {ContentStatus.ARCHIVED},
    ContentStatus.ARCHIVED: {ContentStatus.DRAFT},
}

STATUS_EVENTS = {
    ContentStatus.PUBLISHED: WebhookEvent.CONTENT_PUBLISHED,
    ContentStatus.ARCHIVED: WebhookEvent.CONTENT_ARCHIVED,
}


def get_changed_fields(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    """Keys whose JSON representation differs between ``old`` and ``new``."""
    changed = []
    for key in sorted(set(old) | set(new)):
        if json.dumps(old.get(key), sort_keys=True, default=str) != json.dumps(new.get(key), sort_keys=True, default=str):
            changed.append(key)
    return changed


def _tracked_state(title: str, slug: str, status: ContentStatus, data: dict) -> dict[str, Any]:
    state = {"title": title, "slug": slug, "status": ContentStatus(status).value}
    for key, value in (data or {}).items():
        state[f"data.{key}"] = value
    return state


def prepare_data(content_type: ContentType, data: dict | None) -> dict:
    """Validate, drop undeclared keys and sanitize rich text. Raises ContentValidationError."""
    result = validate_content(content_type, data)
    if not result.valid:
        raise ContentValidationError(result.error_dicts())

    cleaned = prune_unknown_fields(content_type, data)
    for definition in content_type.fields or []:
        value = cleaned.get(definition["fieldId"])
        if definition.get("type") == FieldType.RICHTEXT.value and isinstance(value, str):
            cleaned[definition["fieldId"]] = sanitize_html(value)
    return cleaned


async def _unique_slug_for(db: AsyncSession, site_id: str, base: str) -> str:
    stmt = select(Content.slug).where(
        Content.site_id == site_id,
        or_(Content.slug == base, Content.slug.like(f"{escape_like(base)}-%", escape="\\")),
    )
    result = await db.execute(stmt)
    return unique_slug(base, set(result.scalars().all()))


async def _explicit_slug(db: AsyncSession, site_id: str, requested: str, content_id: str | None = None) -> str:
    slug = slugify(requested)
    if not slug:
        raise ContentValidationError([{"field": "slug", "message": "Slug must contain letters or digits"}])
    stmt = select(Content.id).where(Content.site_id == site_id, Content.slug == slug)
    if content_id:
        stmt = stmt.where(Content.content_id != content_id)
    if (await db.execute(stmt)).first():
        raise DuplicateResourceError("Content", "slug", slug)
    return slug


def _snapshot(content: Content, changed_fields: list[str], actor: str | None) -> Revision:
    return Revision(
        site_id=content.site_id,
        content_id=content.content_id,
        content_type_id=content.content_type_id,
        version=content.version,
        title=content.title,
        slug=content.slug,
        status=ContentStatus(content.status).value,
        data=dict(content.data or {}),
        changed_fields=changed_fields,
        changed_by=actor,
    )


def _event_payload(content: Content, changed_fields: list[str] | None = None) -> dict[str, Any]:
    payload = {
        "contentId": content.content_id,
        "contentTypeId": content.content_type_id,
        "title": content.title,
        "slug": content.slug,
        "status": ContentStatus(content.status).value,
        "version": content.version,
    }
    if changed_fields is not None:
        payload["changedFields"] = changed_fields
    return payload


# ============================================================================
# Reads
# ============================================================================


async def find_by_id(
    db: AsyncSession,
    site_id: str,
    content_type_id: str,
    content_id: str,
    *,
    is_admin: bool = False,
) -> Content:
    """One content item; the public only ever finds published items."""
    stmt = select(Content).where(
        Content.site_id == site_id,
        Content.content_type_id == content_type_id,
        Content.content_id == content_id,
    )
    if not is_admin:
        stmt = stmt.where(Content.status == ContentStatus.PUBLISHED)
    content = (await db.execute(stmt)).scalars().first()
    if content is None:
        raise ContentNotFoundError(content_id)
    return content


async def find_many(db: AsyncSession, spec: QuerySpec) -> Page:
    return await fetch_page(db, Content, spec)


# ============================================================================
# Writes
# ============================================================================


async def create_content(
    db: AsyncSession,
    site_id: str,
    content_type_id: str,
    payload: ContentCreate,
    actor: str | None = None,
) -> Content:
    content_type = await get_content_type(db, site_id, content_type_id)
    data = prepare_data(content_type, payload.data)
    title = sanitize_plain_text(payload.title)
    content_id = generate_id("content")

    if payload.slug:
        slug = await _explicit_slug(db, site_id, payload.slug)
    else:
        slug = await _unique_slug_for(db, site_id, slugify(title) or content_id)

    status = ContentStatus(payload.status)
    content = Content(
        site_id=site_id,
        content_type_id=content_type_id,
        content_id=content_id,
        slug=slug,
        title=title,
        data=data,
        status=status,
        version=1,
        published_at=datetime.utcnow() if status == ContentStatus.PUBLISHED else None,
        created_by=actor,
        updated_by=actor,
    )
    db.add(content)
    db.add(_snapshot(content, [f"data.{key}" for key in sorted(data)], actor))
    await db.commit()
    await db.refresh(content)

    logger.info(f"Content {content_id} ({content_type_id}) created on site {site_id}")

    event = WebhookEvent.CONTENT_PUBLISHED if status == ContentStatus.PUBLISHED else WebhookEvent.CONTENT_CREATED
    await webhook_service.trigger_event(db, site_id, event, _event_payload(content))
    return content


async def _save_pending_draft(
    db: AsyncSession,
    content: Content,
    content_type: ContentType,
    payload: ContentUpdate,
    actor: str | None,
) -> Content:
    """Park edits to a published item without touching the live version."""
    current_title = content.draft_title if content.has_draft else content.title
    current_data = content.draft_data if content.has_draft else content.data

    new_title = sanitize_plain_text(payload.title) if payload.title is not None else current_title
    new_data = prepare_data(content_type, payload.data) if payload.data is not None else current_data

    changed = get_changed_fields(
        _tracked_state(current_title, content.slug, ContentStatus.DRAFT, current_data),
        _tracked_state(new_title, content.slug, ContentStatus.DRAFT, new_data),
    )
    if not changed:
        return content

    db.add(_snapshot(content, changed, actor))
    content.draft_title = new_title
    content.draft_data = new_data
    content.has_draft = True
    content.version += 1
    content.updated_by = actor
    await db.commit()
    await db.refresh(content)

    logger.info(f"Pending draft saved for content {content.content_id} on site {content.site_id}")
    await webhook_service.trigger_event(
        db, content.site_id, WebhookEvent.CONTENT_UPDATED, _event_payload(content, changed)
    )
    return content


async def update_content(
    db: AsyncSession,
    site_id: str,
    content_type_id: str,
    content_id: str,
    payload: ContentUpdate,
    actor: str | None = None,
) -> Content:
    """
    Apply an edit and/or status change.

    A revision of the prior state is written and webhooks fire only when at
    least one tracked field (title, slug, status or a data key) changed.
    """
    content = await find_by_id(db, site_id, content_type_id, content_id, is_admin=True)

    if payload.expected_version is not None and payload.expected_version != content.version:
        raise VersionConflictError(payload.expected_version, content.version)

    content_type = await get_content_type(db, site_id, content_type_id)
    current_status = ContentStatus(content.status)
    target_status = ContentStatus(payload.status) if payload.status is not None else current_status

    if current_status == ContentStatus.PUBLISHED and target_status == ContentStatus.DRAFT:
        return await _save_pending_draft(db, content, content_type, payload, actor)

    if target_status != current_status and target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidStatusTransitionError(current_status.value, target_status.value)

    # Publishing (or reverting to draft) applies a pending draft; archiving keeps it parked
    apply_draft = content.has_draft and target_status != ContentStatus.ARCHIVED
    base_title = content.draft_title if apply_draft else content.title
    base_data = content.draft_data if apply_draft else content.data

    new_title = sanitize_plain_text(payload.title) if payload.title is not None else base_title
    if payload.data is not None:
        new_data = prepare_data(content_type, payload.data)
    elif apply_draft:
        new_data = prepare_data(content_type, base_data)
    else:
        new_data = base_data

    new_slug = content.slug
    if payload.slug is not None and slugify(payload.slug) != content.slug:
        new_slug = await _explicit_slug(db, site_id, payload.slug, content_id=content_id)

    changed = get_changed_fields(
        _tracked_state(content.title, content.slug, current_status, content.data),
        _tracked_state(new_title, new_slug, target_status, new_data),
    )

    if not changed:
        if apply_draft:
            content.draft_title = None
            content.draft_data = None
            content.has_draft = False
            await db.commit()
            await db.refresh(content)
        return content

    db.add(_snapshot(content, changed, actor))

    content.title = new_title
    content.slug = new_slug
    content.data = new_data
    content.status = target_status
    if apply_draft:
        content.draft_title = None
        content.draft_data = None
        content.has_draft = False
    if target_status == ContentStatus.PUBLISHED and current_status != ContentStatus.PUBLISHED:
        content.published_at = datetime.utcnow()
    content.version += 1
    content.updated_by = actor

    await db.commit()
    await db.refresh(content)

    logger.info(f"Content {content_id} updated on site {site_id}: {', '.join(changed)}")

    event = STATUS_EVENTS.get(target_status) if target_status != current_status else None
    await webhook_service.trigger_event(
        db, site_id, event or WebhookEvent.CONTENT_UPDATED, _event_payload(content, changed)
    )
    return content


async def delete_content(
    db: AsyncSession,
    site_id: str,
    content_type_id: str,
    content_id: str,
    actor: str | None = None,
    hard: bool = False,
) -> Content | None:
    """
    Archive a content item, or remove it and its revisions when ``hard``.

    Returns the archived item, or None after a hard delete.
    """
    if not hard:
        return await update_content(
            db, site_id, content_type_id, content_id, ContentUpdate(status=ContentStatus.ARCHIVED), actor
        )

    content = await find_by_id(db, site_id, content_type_id, content_id, is_admin=True)
    payload = _event_payload(content)

    await db.execute(
        delete(Revision).where(Revision.site_id == site_id, Revision.content_id == content_id)
    )
    await db.delete(content)
    await db.commit()

    logger.info(f"Content {content_id} deleted from site {site_id}")
    await webhook_service.trigger_event(db, site_id, WebhookEvent.CONTENT_DELETED, payload)
    return None


# ============================================================================
# Revisions
# ============================================================================


async def list_revisions(db: AsyncSession, site_id: str, content_type_id: str, content_id: str) -> list[Revision]:
    await find_by_id(db, site_id, content_type_id, content_id, is_admin=True)
    result = await db.execute(
        select(Revision)
        .where(Revision.site_id == site_id, Revision.content_id == content_id)
        .order_by(Revision.created_at.desc(), Revision.id.desc())
    )
    return list(result.scalars().all())


async def restore_revision(
    db: AsyncSession,
    site_id: str,
    content_type_id: str,
    content_id: str,
    revision_id: int,
    actor: str | None = None,
) -> Content:
    """Bring back the title and data of a revision; the status is left alone."""
    result = await db.execute(
        select(Revision).where(
            Revision.id == revision_id,
            Revision.site_id == site_id,
            Revision.content_id == content_id,
        )
    )
    revision = result.scalars().first()
    if revision is None:
        raise RevisionNotFoundError(revision_id)

    content = await find_by_id(db, site_id, content_type_id, content_id, is_admin=True)
    # Restoring onto a published item goes live and drops any pending draft
    payload = ContentUpdate(title=revision.title, data=revision.data, status=ContentStatus(content.status))
    return await update_content(db, site_id, content_type_id, content_id, payload, actor)
