import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.exceptions import (
    ConflictError,
    ContentTypeNotFoundError,
    DuplicateResourceError,
    InvalidOperationError,
    ValidationError,
)
from sitecms.models.content import Content
from sitecms.models.content_type import ContentType
from sitecms.schemas.content_type import ContentTypeCreate, ContentTypeField, ContentTypeUpdate
from sitecms.services.validation import validate_field_definitions

logger = logging.getLogger(__name__)


def _checked_definitions(fields: list[ContentTypeField]) -> list[dict]:
    definitions = [f.to_definition() for f in fields]
    result = validate_field_definitions(definitions)
    if not result.valid:
        raise ValidationError("Invalid field definitions", details={"errors": result.error_dicts()})
    return definitions


async def list_content_types(db: AsyncSession, site_id: str) -> list[ContentType]:
    result = await db.execute(
        select(ContentType).where(ContentType.site_id == site_id).order_by(ContentType.name, ContentType.id)
    )
    return list(result.scalars().all())


async def find_content_type(db: AsyncSession, site_id: str, content_type_id: str) -> ContentType | None:
    result = await db.execute(
        select(ContentType).where(
            ContentType.site_id == site_id,
            ContentType.content_type_id == content_type_id,
        )
    )
    return result.scalars().first()


async def get_content_type(db: AsyncSession, site_id: str, content_type_id: str) -> ContentType:
    content_type = await find_content_type(db, site_id, content_type_id)
    if content_type is None:
        raise ContentTypeNotFoundError(content_type_id)
    return content_type


async def create_content_type(
    db: AsyncSession, site_id: str, data: ContentTypeCreate, is_system: bool = False
) -> ContentType:
    definitions = _checked_definitions(data.fields)

    if await find_content_type(db, site_id, data.content_type_id):
        raise DuplicateResourceError("Content type", "contentTypeId", data.content_type_id)

    content_type = ContentType(
        site_id=site_id,
        content_type_id=data.content_type_id,
        name=data.name,
        description=data.description,
        fields=definitions,
        is_system=is_system,
    )
    db.add(content_type)
    await db.commit()
    await db.refresh(content_type)
    logger.info(f"Content type {data.content_type_id} created for site {site_id}")
    return content_type


async def update_content_type(
    db: AsyncSession, site_id: str, content_type_id: str, data: ContentTypeUpdate
) -> ContentType:
    """
    Update name, description or the whole field list.

    Existing content is not rewritten; it is checked against the new
    fields the next time it is saved.
    """
    content_type = await get_content_type(db, site_id, content_type_id)

    if data.name is not None:
        content_type.name = data.name
    if data.description is not None:
        content_type.description = data.description
    if data.fields is not None:
        content_type.fields = _checked_definitions(data.fields)

    await db.commit()
    await db.refresh(content_type)
    logger.info(f"Content type {content_type_id} updated for site {site_id}")
    return content_type


async def add_field(db: AsyncSession, site_id: str, content_type_id: str, field: ContentTypeField) -> ContentType:
    content_type = await get_content_type(db, site_id, content_type_id)

    if field.field_id in content_type.field_ids():
        raise DuplicateResourceError("Field", "fieldId", field.field_id)

    definitions = _checked_definitions([ContentTypeField.model_validate(f) for f in content_type.fields] + [field])
    # Reassign so the JSON column is flagged dirty
    content_type.fields = definitions

    await db.commit()
    await db.refresh(content_type)
    logger.info(f"Field {field.field_id} added to {content_type_id} on site {site_id}")
    return content_type


async def delete_content_type(db: AsyncSession, site_id: str, content_type_id: str) -> None:
    content_type = await get_content_type(db, site_id, content_type_id)

    if content_type.is_system:
        raise InvalidOperationError(
            f"Content type '{content_type_id}' is a system type and cannot be deleted",
            details={"content_type_id": content_type_id},
        )

    result = await db.execute(
        select(func.count(Content.id)).where(
            Content.site_id == site_id, Content.content_type_id == content_type_id
        )
    )
    if result.scalar():
        raise ConflictError(
            f"Content type '{content_type_id}' still has content",
            details={"content_type_id": content_type_id},
        )

    await db.delete(content_type)
    await db.commit()
    logger.info(f"Content type {content_type_id} deleted from site {site_id}")
