"""
Content Routes

CRUD for content items of one content type, plus revision history.
Reads are public; a signed-in user of the site also sees drafts,
archived items and pending drafts.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, get_site_viewer, require_site_user
from sitecms.database import get_db
from sitecms.exceptions import AuthorizationError
from sitecms.models.user import UserRole
from sitecms.schemas.content import (
    AdminContentResponse,
    ContentCreate,
    ContentResponse,
    ContentUpdate,
    RevisionResponse,
)
from sitecms.services import content_service
from sitecms.services.content_type_service import get_content_type
from sitecms.services.query_builder import ContentFilters, build_content_query
from sitecms.utils.pagination import PaginationParams
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/content", tags=["Content"])

FIELD_FILTER_PREFIX = "data."


def _serialize(content, admin: bool) -> dict:
    schema = AdminContentResponse if admin else ContentResponse
    return schema.model_validate(content).to_api()


def _parse_filter_value(raw: str) -> Any:
    # JSON literals match typed values (3, true); anything else is a string
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def field_matches_from_query(request: Request) -> dict[str, Any]:
    """``?data.role=Engineer`` style query parameters, keyed by field id."""
    return {
        key[len(FIELD_FILTER_PREFIX):]: _parse_filter_value(value)
        for key, value in request.query_params.items()
        if key.startswith(FIELD_FILTER_PREFIX) and len(key) > len(FIELD_FILTER_PREFIX)
    }


@router.get("/{content_type_id}")
async def list_content(
    request: Request,
    site_id: str,
    content_type_id: str,
    status: Optional[str] = Query(None, description="draft, published, archived or all (site users only)"),
    search: Optional[str] = Query(None, max_length=200),
    q: Optional[str] = Query(None, max_length=200, description="Alias for search"),
    search_data: bool = Query(True, alias="searchData"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[Principal] = Depends(get_site_viewer),
):
    is_admin = viewer is not None
    await get_content_type(db, site_id, content_type_id)

    filters = ContentFilters(
        status=status,
        search=search or q,
        search_data=search_data,
        field_matches=field_matches_from_query(request),
        limit=pagination.limit,
        skip=pagination.skip,
    )
    spec = build_content_query(site_id, content_type_id, filters, is_admin=is_admin)
    page = await content_service.find_many(db, spec)
    return success_response([_serialize(c, is_admin) for c in page.items], pagination=page.meta())


@router.post("/{content_type_id}", status_code=201)
async def create_content(
    site_id: str,
    content_type_id: str,
    body: ContentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    content = await content_service.create_content(db, site_id, content_type_id, body, principal.user_id)
    return success_response(_serialize(content, True), message="Content created", status_code=201)


@router.get("/{content_type_id}/{content_id}")
async def get_content(
    site_id: str,
    content_type_id: str,
    content_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[Principal] = Depends(get_site_viewer),
):
    is_admin = viewer is not None
    content = await content_service.find_by_id(db, site_id, content_type_id, content_id, is_admin=is_admin)
    return success_response(_serialize(content, is_admin))


@router.put("/{content_type_id}/{content_id}")
async def update_content(
    site_id: str,
    content_type_id: str,
    content_id: str,
    body: ContentUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    content = await content_service.update_content(
        db, site_id, content_type_id, content_id, body, principal.user_id
    )
    return success_response(_serialize(content, True), message="Content updated")


@router.delete("/{content_type_id}/{content_id}")
async def delete_content(
    site_id: str,
    content_type_id: str,
    content_id: str,
    hard: bool = Query(False, description="Remove the item and its revisions instead of archiving"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    if hard and not principal.is_admin:
        raise AuthorizationError("Only admins can permanently delete content", required_role=UserRole.ADMIN.value)

    content = await content_service.delete_content(
        db, site_id, content_type_id, content_id, principal.user_id, hard=hard
    )
    if content is None:
        return success_response(None, message="Content deleted")
    return success_response(_serialize(content, True), message="Content archived")


@router.get("/{content_type_id}/{content_id}/revisions")
async def list_revisions(
    site_id: str,
    content_type_id: str,
    content_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    revisions = await content_service.list_revisions(db, site_id, content_type_id, content_id)
    return success_response([RevisionResponse.model_validate(r).to_api() for r in revisions])


@router.post("/{content_type_id}/{content_id}/revisions/{revision_id}/restore")
async def restore_revision(
    site_id: str,
    content_type_id: str,
    content_id: str,
    revision_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    content = await content_service.restore_revision(
        db, site_id, content_type_id, content_id, revision_id, principal.user_id
    )
    return success_response(_serialize(content, True), message="Revision restored")
