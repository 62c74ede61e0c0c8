import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.auth import burn_password_check, create_access_token, hash_password, verify_password
from sitecms.exceptions import (
    DuplicateResourceError,
    InvalidCredentialsError,
    InvalidOperationError,
    UserNotFoundError,
    ValidationError,
)
from sitecms.models.user import User, UserRole
from sitecms.utils.ids import generate_id

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_by_email(db: AsyncSession, site_id: str, email: str) -> User | None:
    result = await db.execute(
        select(User).where(User.site_id == site_id, User.email == normalize_email(email))
    )
    return result.scalars().first()


async def authenticate_user(db: AsyncSession, site_id: str, email: str, password: str) -> User:
    """
    Check credentials for a site.

    Unknown email, wrong password and inactive account all raise the same
    InvalidCredentialsError so callers cannot tell them apart.
    """
    user = await get_user_by_email(db, site_id, email)

    if user is None:
        burn_password_check(password)
        logger.info(f"Login failed for site {site_id}")
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password) or not user.active:
        logger.info(f"Login failed for site {site_id}")
        raise InvalidCredentialsError()

    return user


async def login(db: AsyncSession, site_id: str, email: str, password: str) -> tuple[str, User]:
    user = await authenticate_user(db, site_id, email, password)
    user.last_login_at = datetime.utcnow()
    await db.commit()
    logger.info(f"User {user.user_id} logged in to site {site_id}")
    return create_access_token(user.user_id, user.site_id), user


async def register_user(
    db: AsyncSession,
    site_id: str,
    email: str,
    password: str,
    role: UserRole = UserRole.EDITOR,
    active: bool = True,
) -> User:
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("Email and password are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", field="password"
        )

    if await get_user_by_email(db, site_id, email):
        raise DuplicateResourceError("User", "email", email)

    user = User(
        user_id=generate_id("user"),
        site_id=site_id,
        email=email,
        hashed_password=hash_password(password),
        role=role,
        active=active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Registered {role.value} {user.user_id} for site {site_id}")
    return user


async def signup(db: AsyncSession, site_id: str, email: str, password: str) -> User:
    """
    Self-service registration.

    The account is created inactive: it cannot sign in, and so cannot see
    unpublished content, until an admin of the site approves it.
    """
    user = await register_user(db, site_id, email, password, role=UserRole.EDITOR, active=False)
    logger.info(f"Signup {user.user_id} on site {site_id} awaiting approval")
    return user


async def list_users(db: AsyncSession, site_id: str, active: bool | None = None) -> list[User]:
    stmt = select(User).where(User.site_id == site_id)
    if active is not None:
        stmt = stmt.where(User.active.is_(active))
    result = await db.execute(stmt.order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, site_id: str, user_id: str) -> User:
    result = await db.execute(select(User).where(User.site_id == site_id, User.user_id == user_id))
    user = result.scalars().first()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def set_user_active(db: AsyncSession, site_id: str, user_id: str, active: bool, actor_id: str) -> User:
    """Approve (or suspend) an account of the site. Admins cannot suspend themselves."""
    user = await get_user(db, site_id, user_id)
    if not active and user.user_id == actor_id:
        raise InvalidOperationError("You cannot deactivate your own account")

    user.active = active
    await db.commit()
    await db.refresh(user)
    logger.info(f"User {user_id} on site {site_id} {'activated' if active else 'deactivated'} by {actor_id}")
    return user
