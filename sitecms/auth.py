import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.config import settings
from sitecms.database import get_db
from sitecms.exceptions import AuthenticationError, AuthorizationError
from sitecms.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return pwd_context.hash("not-a-real-password")


def burn_password_check(password: str) -> None:
    """Spend the same time as a real verify when there is no account to check against."""
    pwd_context.verify(password, _dummy_hash())


# ============================================================================
# Tokens
# ============================================================================


def create_access_token(user_id: str, site_id: str, expires_delta: Optional[timedelta] = None) -> str:
    if not user_id or not site_id:
        raise ValueError("Tokens need both a user id and a site id")

    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {"sub": user_id, "site_id": site_id, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: Optional[str]) -> Optional[dict]:
    """
    Decode a token and return its claims.

    Returns None for a missing, malformed, expired or wrongly signed token;
    never raises.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except JWTError:
        logger.info("Rejected invalid token")
        return None

    if not payload.get("sub") or not payload.get("site_id"):
        logger.info("Rejected token without subject or site claim")
        return None
    return payload


# ============================================================================
# Admin route gate
# ============================================================================


class GateDecision(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    REDIRECT_AND_CLEAR = "redirect_and_clear"


def is_admin_path(path: str) -> bool:
    return path == "/admin" or path.startswith("/admin/")


def evaluate_admin_gate(path: str, token: Optional[str]) -> GateDecision:
    """
    Decide what happens to a request for an admin page.

    Non-admin paths and the login page pass. A missing cookie redirects to
    the login page; a cookie that fails verification redirects and is
    cleared.
    """
    login_path = settings.admin_login_path
    if not is_admin_path(path) or path == login_path or path.startswith(login_path + "/"):
        return GateDecision.ALLOW
    if not token:
        return GateDecision.REDIRECT
    if verify_token(token) is None:
        return GateDecision.REDIRECT_AND_CLEAR
    return GateDecision.ALLOW


# ============================================================================
# API dependencies
# ============================================================================


@dataclass(frozen=True)
class Principal:
    user_id: str
    site_id: str
    role: Optional[UserRole] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def get_request_token(request: Request) -> Optional[str]:
    """Bearer header first, then the auth cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return request.cookies.get(settings.auth_cookie_name)


def get_optional_principal(request: Request) -> Optional[Principal]:
    """Principal from a valid token, or None for anonymous callers."""
    claims = verify_token(get_request_token(request))
    if claims is None:
        return None
    return Principal(user_id=claims["sub"], site_id=claims["site_id"])


async def _load_user(db: AsyncSession, principal: Principal) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.user_id == principal.user_id, User.site_id == principal.site_id)
    )
    return result.scalars().first()


async def require_site_user(
    site_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Authenticated, active user belonging to the site in the path."""
    if principal is None:
        raise AuthenticationError()
    if principal.site_id != site_id:
        logger.warning(f"Token for site {principal.site_id} used against site {site_id}")
        raise AuthorizationError("Token is not valid for this site")

    user = await _load_user(db, principal)
    if user is None or not user.active:
        raise AuthenticationError()
    return Principal(user_id=user.user_id, site_id=user.site_id, role=user.role)


async def require_site_admin(principal: Principal = Depends(require_site_user)) -> Principal:
    if not principal.is_admin:
        raise AuthorizationError(required_role=UserRole.ADMIN.value)
    return principal


async def get_site_viewer(
    site_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
) -> Optional[Principal]:
    """
    Resolve the caller of a public read endpoint.

    Returns the principal when a valid token for this site belongs to an
    active user; anyone else reads as the public.
    """
    if principal is None or principal.site_id != site_id:
        return None
    user = await _load_user(db, principal)
    if user is None or not user.active:
        return None
    return Principal(user_id=user.user_id, site_id=user.site_id, role=user.role)
