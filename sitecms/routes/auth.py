import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.database import get_db
from sitecms.middleware.rate_limit import limiter
from sitecms.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserResponse
from sitecms.services import auth_service
from sitecms.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _set_auth_cookie(response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


@router.post("/login")
@limiter.limit(settings.login_rate_limit)
async def login(request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)):
    token, user = await auth_service.login(db, body.site_id, body.email, body.password)
    data = AuthResponse(
        token=token, user_id=user.user_id, site_id=user.site_id, email=user.email, role=user.role
    ).to_api()
    response = success_response(data, message="Login successful")
    _set_auth_cookie(response, token)
    return response


@router.post("/signup", status_code=201)
@limiter.limit(settings.login_rate_limit)
async def signup(request: Request, body: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Register an editor account. No token is issued until an admin approves it."""
    user = await auth_service.signup(db, body.site_id, body.email, body.password)
    return success_response(
        UserResponse.model_validate(user).to_api(),
        message="Account created. An administrator must approve it before you can sign in.",
        status_code=201,
    )


@router.post("/logout")
async def logout():
    response = success_response(None, message="Logged out")
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return response
