"""
Authentication service handling account registration and login.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.services.access_policy import ROLE_ADMIN, ROLE_USER
from app.core.config import get_settings
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError
from app.core.security import hash_password, verify_password, create_access_token
from app.core.logging import get_logger

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate, role: str = ROLE_USER) -> User:
    """
    Register a new account with a hashed password.
    Raises 409 if email or username already exists.
    """
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise ConflictError("Email already registered")

    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise ConflictError("Username already taken")

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=hash_password(user_data.password),
        role=role,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email, role=role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, str]:
    """
    Authenticate and return (JWT access token, role).
    Raises 401 on bad credentials and 403 when the requested role does not
    match the account.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise UnauthenticatedError("Invalid credentials or user not found!")

    if not user.is_active:
        raise ForbiddenError("Account is deactivated")

    if login_data.role and login_data.role != user.role:
        raise ForbiddenError(
            f"Login failed: Account is a '{user.role}' account, not a '{login_data.role}' account."
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    logger.info("user_logged_in", user_id=user.id, role=user.role)
    return token, user.role


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("Account not found.")
    return user


async def ensure_admin_account(db: AsyncSession) -> Optional[User]:
    """Create the configured bootstrap admin if it does not exist yet."""
    settings = get_settings()
    if not (settings.ADMIN_EMAIL and settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD):
        return None

    result = await db.execute(select(User).where(User.email == settings.ADMIN_EMAIL))
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    admin = User(
        email=settings.ADMIN_EMAIL,
        username=settings.ADMIN_USERNAME,
        hashed_password=hash_password(settings.ADMIN_PASSWORD),
        role=ROLE_ADMIN,
    )
    db.add(admin)
    await db.flush()
    logger.info("admin_bootstrapped", user_id=admin.id, email=admin.email)
    return admin
