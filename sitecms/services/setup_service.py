"""
Site bootstrap and maintenance tasks.

Everything here is idempotent so it can run on every deploy.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.models.content import Content
from sitecms.models.user import UserRole
from sitecms.models.website import Website
from sitecms.schemas.content_type import ContentTypeCreate
from sitecms.services import auth_service
from sitecms.services.content_type_service import create_content_type, find_content_type
from sitecms.utils.slugify import slugify, unique_slug

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPES = [
    {
        "contentTypeId": "projects",
        "name": "Projects",
        "description": "Portfolio projects",
        "fields": [
            {"fieldId": "client", "name": "Client", "type": "text", "required": True},
            {"fieldId": "location", "name": "Location", "type": "text"},
            {"fieldId": "projectSize", "name": "Project Size", "type": "text"},
            {"fieldId": "capacity", "name": "Capacity", "type": "text"},
            {"fieldId": "shortDescription", "name": "Short Description", "type": "textarea", "required": True},
            {"fieldId": "description", "name": "Description", "type": "richtext"},
            {"fieldId": "challenges", "name": "Challenges", "type": "textarea"},
            {"fieldId": "results", "name": "Results", "type": "textarea"},
            {"fieldId": "projectImage", "name": "Project Image", "type": "url"},
            {"fieldId": "gallery", "name": "Gallery", "type": "json"},
        ],
    },
    {
        "contentTypeId": "testimonials",
        "name": "Testimonials",
        "description": "Client testimonials",
        "fields": [
            {"fieldId": "quote", "name": "Quote", "type": "textarea", "required": True},
            {"fieldId": "authorName", "name": "Author Name", "type": "text", "required": True},
            {"fieldId": "authorTitle", "name": "Author Title", "type": "text", "required": True},
        ],
    },
    {
        "contentTypeId": "team",
        "name": "Team Members",
        "description": "People shown on the team page",
        "fields": [
            {"fieldId": "name", "name": "Name", "type": "text", "required": True},
            {"fieldId": "role", "name": "Role", "type": "text", "required": True},
            {"fieldId": "description", "name": "Description", "type": "richtext"},
            {"fieldId": "avatar", "name": "Avatar", "type": "image"},
            {"fieldId": "order", "name": "Display Order", "type": "number"},
        ],
    },
    {
        "contentTypeId": "site-content",
        "name": "Site Content",
        "description": "Editable copy for the home page",
        "fields": [
            {"fieldId": "heroTitle", "name": "Hero Title", "type": "text"},
            {"fieldId": "heroSubtitle", "name": "Hero Subtitle", "type": "textarea"},
            {"fieldId": "heroDescription", "name": "Hero Description", "type": "textarea"},
            {"fieldId": "heroImage", "name": "Hero Image", "type": "image"},
            {"fieldId": "heroButtons", "name": "Hero Buttons", "type": "json"},
            {"fieldId": "stats", "name": "Stats", "type": "json"},
            {"fieldId": "projectsTitle", "name": "Projects Title", "type": "text"},
            {"fieldId": "projectsSubtitle", "name": "Projects Subtitle", "type": "text"},
            {"fieldId": "testimonialsTitle", "name": "Testimonials Title", "type": "text"},
            {"fieldId": "testimonialsSubtitle", "name": "Testimonials Subtitle", "type": "text"},
            {"fieldId": "contactTitle", "name": "Contact Title", "type": "text"},
            {"fieldId": "contactSubtitle", "name": "Contact Subtitle", "type": "text"},
            {"fieldId": "ctaTitle", "name": "CTA Title", "type": "text"},
            {"fieldId": "ctaSubtitle", "name": "CTA Subtitle", "type": "text"},
        ],
    },
]


async def ensure_website(db: AsyncSession, site_id: str, name: str | None = None) -> Website:
    result = await db.execute(select(Website).where(Website.site_id == site_id))
    website = result.scalars().first()
    if website is None:
        website = Website(site_id=site_id, name=name or site_id, settings={})
        db.add(website)
        await db.commit()
        await db.refresh(website)
        logger.info(f"Website row created for site {site_id}")
    return website


async def ensure_admin_user(db: AsyncSession, site_id: str, email: str, password: str):
    """Create the site's admin account unless the email is already registered. Returns (user, created)."""
    existing = await auth_service.get_user_by_email(db, site_id, email)
    if existing is not None:
        logger.info(f"Admin user already exists for site {site_id}")
        return existing, False

    user = await auth_service.register_user(db, site_id, email, password, role=UserRole.ADMIN)
    return user, True


async def ensure_default_content_types(db: AsyncSession, site_id: str) -> list[str]:
    """Create the built-in content types that are missing. Returns the ids created."""
    created = []
    for definition in DEFAULT_CONTENT_TYPES:
        if await find_content_type(db, site_id, definition["contentTypeId"]):
            continue
        await create_content_type(db, site_id, ContentTypeCreate.model_validate(definition), is_system=True)
        created.append(definition["contentTypeId"])

    if created:
        logger.info(f"Created content types for site {site_id}: {', '.join(created)}")
    return created


async def backfill_content_slugs(db: AsyncSession, site_id: str | None = None) -> int:
    """
    Give every content row without a slug one derived from its title,
    falling back to its content id. Returns the number of rows fixed.
    """
    stmt = select(Content).where(or_(Content.slug.is_(None), Content.slug == ""))
    if site_id:
        stmt = stmt.where(Content.site_id == site_id)
    rows = list((await db.execute(stmt)).scalars().all())
    if not rows:
        return 0

    taken: dict[str, set[str]] = {}
    for content in rows:
        if content.site_id not in taken:
            result = await db.execute(
                select(Content.slug).where(Content.site_id == content.site_id, Content.slug != "")
            )
            taken[content.site_id] = {s for s in result.scalars().all() if s}

        site_slugs = taken[content.site_id]
        slug = unique_slug(slugify(content.title) or content.content_id, site_slugs)
        site_slugs.add(slug)
        content.slug = slug

    await db.commit()
    logger.info(f"Backfilled slugs for {len(rows)} content item(s)")
    return len(rows)
