"""
Admin Routes

Entry points of the admin area. Everything under /admin except the login
page sits behind AdminGateMiddleware.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import verify_token
from sitecms.config import settings
from sitecms.database import get_db
from sitecms.exceptions import AuthenticationError
from sitecms.services import dashboard_service, site_service
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/login")
async def login_page(request: Request):
    """Tells the admin UI where to post credentials and whether a session already exists."""
    claims = verify_token(request.cookies.get(settings.auth_cookie_name))
    return success_response(
        {
            "loginEndpoint": "/api/auth/login",
            "authenticated": claims is not None,
            "siteId": claims["site_id"] if claims else None,
        }
    )


@router.get("/logout")
async def logout():
    response = success_response({"redirectTo": settings.admin_login_path}, message="Logged out")
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return response


@router.get("/dashboard")
async def dashboard(
    request: Request,
    period_days: int = Query(30, ge=1, le=365, alias="periodDays"),
    db: AsyncSession = Depends(get_db),
):
    claims = verify_token(request.cookies.get(settings.auth_cookie_name))
    if claims is None:
        raise AuthenticationError()
    site_id = claims["site_id"]

    website = await site_service.find_website(db, site_id)
    summary = await dashboard_service.get_site_summary(db, site_id, period_days=period_days)
    summary["siteId"] = site_id
    summary["siteName"] = website.name if website else site_id
    return success_response(summary)
