"""
Website settings and the merged site-content document.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.exceptions import WebsiteNotFoundError
from sitecms.models.content import Content, ContentStatus
from sitecms.models.website import Website
from sitecms.schemas.website import WebsiteUpdate

logger = logging.getLogger(__name__)

SITE_CONTENT_TYPE_ID = "site-content"
DEFAULTS_SETTING = "siteContentDefaults"

# Keys every site-content document exposes, even before anything is published
BASE_SITE_CONTENT: dict[str, Any] = {
    "heroTitle": "",
    "heroSubtitle": "",
    "heroDescription": "",
    "heroImage": "",
    "heroButtons": [],
    "stats": [],
    "projectsTitle": "Featured Projects",
    "projectsSubtitle": "",
    "testimonialsTitle": "Client Testimonials",
    "testimonialsSubtitle": "",
    "contactTitle": "Get in Touch",
    "contactSubtitle": "",
    "ctaTitle": "",
    "ctaSubtitle": "",
}


async def find_website(db: AsyncSession, site_id: str) -> Website | None:
    result = await db.execute(select(Website).where(Website.site_id == site_id))
    return result.scalars().first()


async def get_website(db: AsyncSession, site_id: str) -> Website:
    website = await find_website(db, site_id)
    if website is None:
        raise WebsiteNotFoundError(site_id)
    return website


async def upsert_website(db: AsyncSession, site_id: str, payload: WebsiteUpdate) -> Website:
    """Create the site's settings row on first write, update it afterwards. ``settings`` keys are merged."""
    website = await find_website(db, site_id)
    if website is None:
        website = Website(site_id=site_id, name=payload.name or site_id, settings={})
        db.add(website)

    if payload.name is not None:
        website.name = payload.name
    if payload.domain is not None:
        website.domain = payload.domain
    if payload.settings is not None:
        website.settings = {**(website.settings or {}), **payload.settings}

    await db.commit()
    await db.refresh(website)
    logger.info(f"Website settings saved for site {site_id}")
    return website


def merge_site_content(defaults: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Stored values win unless they are empty."""
    merged = dict(defaults)
    for key, value in (data or {}).items():
        if value is None or value == "" or value == []:
            merged.setdefault(key, value)
            continue
        merged[key] = value
    return merged


async def get_site_content(db: AsyncSession, site_id: str, *, is_admin: bool = False) -> dict[str, Any]:
    """
    The site-content document merged over the site's defaults.

    The public gets the newest published entry. Site users preview the
    newest non-archived entry, including its pending draft.
    """
    stmt = select(Content).where(
        Content.site_id == site_id,
        Content.content_type_id == SITE_CONTENT_TYPE_ID,
    )
    if is_admin:
        stmt = stmt.where(Content.status != ContentStatus.ARCHIVED)
    else:
        stmt = stmt.where(Content.status == ContentStatus.PUBLISHED)
    stmt = stmt.order_by(Content.updated_at.desc(), Content.id.desc()).limit(1)
    content = (await db.execute(stmt)).scalars().first()

    website = await find_website(db, site_id)
    defaults = {**BASE_SITE_CONTENT, **((website.settings or {}).get(DEFAULTS_SETTING, {}) if website else {})}

    if content is None:
        return defaults

    data = content.draft_data if is_admin and content.has_draft else content.data
    return merge_site_content(defaults, data)
