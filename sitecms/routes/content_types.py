"""
Content Type Routes

Schema management for a site's content types.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, require_site_admin, require_site_user
from sitecms.database import get_db
from sitecms.schemas.content_type import (
    ContentTypeCreate,
    ContentTypeField,
    ContentTypeResponse,
    ContentTypeUpdate,
)
from sitecms.services import content_type_service
from sitecms.services.validation import validate_content
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/content-types", tags=["Content Types"])


def _serialize(content_type) -> dict:
    return ContentTypeResponse.model_validate(content_type).to_api()


@router.get("")
async def list_content_types(site_id: str, db: AsyncSession = Depends(get_db)):
    content_types = await content_type_service.list_content_types(db, site_id)
    return success_response([_serialize(ct) for ct in content_types])


@router.post("", status_code=201)
async def create_content_type(
    site_id: str,
    body: ContentTypeCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    content_type = await content_type_service.create_content_type(db, site_id, body)
    return success_response(_serialize(content_type), message="Content type created", status_code=201)


@router.get("/{content_type_id}")
async def get_content_type(site_id: str, content_type_id: str, db: AsyncSession = Depends(get_db)):
    content_type = await content_type_service.get_content_type(db, site_id, content_type_id)
    return success_response(_serialize(content_type))


@router.put("/{content_type_id}")
async def update_content_type(
    site_id: str,
    content_type_id: str,
    body: ContentTypeUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    content_type = await content_type_service.update_content_type(db, site_id, content_type_id, body)
    return success_response(_serialize(content_type), message="Content type updated")


@router.delete("/{content_type_id}")
async def delete_content_type(
    site_id: str,
    content_type_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    await content_type_service.delete_content_type(db, site_id, content_type_id)
    return success_response(None, message="Content type deleted")


@router.post("/{content_type_id}/fields", status_code=201)
async def add_field(
    site_id: str,
    content_type_id: str,
    body: ContentTypeField,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    content_type = await content_type_service.add_field(db, site_id, content_type_id, body)
    return success_response(_serialize(content_type), message="Field added", status_code=201)


@router.post("/{content_type_id}/validate")
async def validate_payload(
    site_id: str,
    content_type_id: str,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    """Dry-run a content payload against the type without saving anything."""
    content_type = await content_type_service.get_content_type(db, site_id, content_type_id)
    result = validate_content(content_type, payload)
    return success_response({"valid": result.valid, "errors": result.error_dicts()})
