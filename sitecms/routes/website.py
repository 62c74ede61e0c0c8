"""
Website Routes

Per-site settings and the merged site-content document the front end renders.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, get_site_viewer, require_site_admin
from sitecms.database import get_db
from sitecms.schemas.website import WebsiteResponse, WebsiteUpdate
from sitecms.services import site_service
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}", tags=["Website"])


@router.get("/website")
async def get_website(site_id: str, db: AsyncSession = Depends(get_db)):
    website = await site_service.get_website(db, site_id)
    return success_response(WebsiteResponse.model_validate(website).to_api())


@router.put("/website")
async def update_website(
    site_id: str,
    body: WebsiteUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    website = await site_service.upsert_website(db, site_id, body)
    return success_response(WebsiteResponse.model_validate(website).to_api(), message="Website updated")


@router.get("/site-content")
async def get_site_content(
    site_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[Principal] = Depends(get_site_viewer),
):
    data = await site_service.get_site_content(db, site_id, is_admin=viewer is not None)
    return success_response(data)
