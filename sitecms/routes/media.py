"""
Media Routes

Media library records. Files live in external storage; these endpoints
keep the metadata the admin UI and the site need.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, require_site_user
from sitecms.database import get_db
from sitecms.models.media import MediaType
from sitecms.schemas.media import MediaCreate, MediaResponse, MediaUpdate
from sitecms.services import media_service
from sitecms.utils.pagination import PaginationParams
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/media", tags=["Media"])


def _serialize(media) -> dict:
    return MediaResponse.model_validate(media).to_api()


@router.get("")
async def list_media(
    site_id: str,
    type: Optional[MediaType] = Query(None),
    folder: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page = await media_service.list_media(
        db,
        site_id,
        media_type=type,
        folder=folder,
        tag=tag,
        search=search,
        limit=pagination.limit,
        skip=pagination.skip,
    )
    return success_response([_serialize(m) for m in page.items], pagination=page.meta())


@router.post("", status_code=201)
async def register_media(
    site_id: str,
    body: MediaCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    media = await media_service.register_media(db, site_id, body, principal.user_id)
    return success_response(_serialize(media), message="Media registered", status_code=201)


@router.get("/{media_id}")
async def get_media(site_id: str, media_id: str, db: AsyncSession = Depends(get_db)):
    media = await media_service.get_media(db, site_id, media_id)
    return success_response(_serialize(media))


@router.put("/{media_id}")
async def update_media(
    site_id: str,
    media_id: str,
    body: MediaUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    media = await media_service.update_media(db, site_id, media_id, body)
    return success_response(_serialize(media), message="Media updated")


@router.delete("/{media_id}")
async def delete_media(
    site_id: str,
    media_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    await media_service.delete_media(db, site_id, media_id)
    return success_response(None, message="Media deleted")
