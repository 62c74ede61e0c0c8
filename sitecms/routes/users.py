"""
Site user administration: approving self-service signups and suspending
accounts. Admin only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, require_site_admin
from sitecms.database import get_db
from sitecms.schemas.auth import UserResponse
from sitecms.services import auth_service
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/users", tags=["Users"])


@router.get("")
async def list_users(
    site_id: str,
    active: Optional[bool] = Query(None, description="false lists signups awaiting approval"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    users = await auth_service.list_users(db, site_id, active=active)
    return success_response([UserResponse.model_validate(u).to_api() for u in users])


@router.post("/{user_id}/activate")
async def activate_user(
    site_id: str,
    user_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    user = await auth_service.set_user_active(db, site_id, user_id, True, principal.user_id)
    return success_response(UserResponse.model_validate(user).to_api(), message="User activated")


@router.post("/{user_id}/deactivate")
async def deactivate_user(
    site_id: str,
    user_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    user = await auth_service.set_user_active(db, site_id, user_id, False, principal.user_id)
    return success_response(UserResponse.model_validate(user).to_api(), message="User deactivated")
