import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.exceptions import MediaNotFoundError
from sitecms.models.media import Media, MediaType
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.media import MediaCreate, MediaUpdate
from sitecms.services import webhook_service
from sitecms.services.query_builder import build_tenant_query
from sitecms.utils.ids import generate_id
from sitecms.utils.pagination import Page, fetch_page
from sitecms.utils.sanitize import sanitize_plain_text

logger = logging.getLogger(__name__)


def _clean_tags(tags: list[str]) -> list[str]:
    cleaned = (sanitize_plain_text(t).lower() for t in tags)
    return list(dict.fromkeys(t for t in cleaned if t))


async def register_media(db: AsyncSession, site_id: str, payload: MediaCreate, actor: str | None = None) -> Media:
    """Record an asset already stored elsewhere."""
    original_name = os.path.basename(payload.original_name.replace("\\", "/"))
    media = Media(
        site_id=site_id,
        media_id=generate_id("media"),
        name=sanitize_plain_text(payload.name or original_name) or original_name,
        original_name=original_name,
        type=payload.type,
        mime_type=payload.mime_type,
        size=payload.size,
        url=payload.url,
        thumbnail_url=payload.thumbnail_url,
        metadata_=payload.metadata.model_dump(by_alias=True, exclude_none=True),
        folder=payload.folder,
        tags=_clean_tags(payload.tags),
        alt=sanitize_plain_text(payload.alt),
        description=sanitize_plain_text(payload.description),
        uploaded_by=actor,
    )
    db.add(media)
    await db.commit()
    await db.refresh(media)

    logger.info(f"Media {media.media_id} registered for site {site_id}")
    await webhook_service.trigger_event(
        db, site_id, WebhookEvent.MEDIA_UPLOADED, {"mediaId": media.media_id, "url": media.url, "type": media.type}
    )
    return media


async def list_media(
    db: AsyncSession,
    site_id: str,
    media_type: MediaType | None = None,
    folder: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    skip: int | None = None,
) -> Page:
    spec = build_tenant_query(
        site_id,
        equals={"type": media_type, "folder": folder},
        contains={"tags": tag.lower() if tag else None},
        search=search,
        search_fields=("name", "original_name", "alt", "description"),
        limit=limit,
        skip=skip,
    )
    return await fetch_page(db, Media, spec)


async def get_media(db: AsyncSession, site_id: str, media_id: str) -> Media:
    result = await db.execute(select(Media).where(Media.site_id == site_id, Media.media_id == media_id))
    media = result.scalars().first()
    if media is None:
        raise MediaNotFoundError(media_id)
    return media


async def update_media(db: AsyncSession, site_id: str, media_id: str, payload: MediaUpdate) -> Media:
    media = await get_media(db, site_id, media_id)

    if payload.name is not None:
        media.name = sanitize_plain_text(payload.name)
    if payload.thumbnail_url is not None:
        media.thumbnail_url = payload.thumbnail_url
    if payload.metadata is not None:
        media.metadata_ = payload.metadata.model_dump(by_alias=True, exclude_none=True)
    if payload.folder is not None:
        media.folder = payload.folder
    if payload.tags is not None:
        media.tags = _clean_tags(payload.tags)
    if payload.alt is not None:
        media.alt = sanitize_plain_text(payload.alt)
    if payload.description is not None:
        media.description = sanitize_plain_text(payload.description)

    await db.commit()
    await db.refresh(media)
    logger.info(f"Media {media_id} updated on site {site_id}")
    return media


async def delete_media(db: AsyncSession, site_id: str, media_id: str) -> None:
    """Remove the record only; content that references the asset is left as is."""
    media = await get_media(db, site_id, media_id)
    await db.delete(media)
    await db.commit()

    logger.info(f"Media {media_id} deleted from site {site_id}")
    await webhook_service.trigger_event(db, site_id, WebhookEvent.MEDIA_DELETED, {"mediaId": media_id})
