"""
Identity provider: password hashing, JWT issuance and request authentication.

Passwords are hashed with argon2 (random salt per hash). Tokens are HS256
JWTs signed with the configured SECRET_KEY and carry the account id in
`sub` plus the account `role`.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_db
from app.models.user import User
from app.core.exceptions import UnauthenticatedError
from app.core.logging import get_logger
from app.services.access_policy import Action, CallerIdentity, ROLES, enforce

logger = get_logger(__name__)

_hasher = PasswordHasher()
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return _hasher.verify(hashed_password, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as e:
        logger.error("password_verification_error", error=str(e))
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> CallerIdentity:
    """Validate a bearer token and return the caller it was issued to."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("token_rejected", error=str(e))
        raise UnauthenticatedError("Invalid or expired token.")

    subject = payload.get("sub")
    role = payload.get("role")
    if subject is None or role not in ROLES:
        raise UnauthenticatedError("Invalid or expired token.")
    try:
        account_id = int(subject)
    except (TypeError, ValueError):
        raise UnauthenticatedError("Invalid or expired token.")

    return CallerIdentity(account_id=account_id, role=role)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CallerIdentity:
    """
    Authenticate the bearer token and confirm the account behind it still
    exists and is active. The role is taken from the account, not the token.
    """
    if credentials is None:
        raise UnauthenticatedError("No token provided.")
    identity = decode_access_token(credentials.credentials)

    user = await db.get(User, identity.account_id)
    if user is None or not user.is_active:
        logger.info("token_account_rejected", account_id=identity.account_id)
        raise UnauthenticatedError("Invalid or expired token.")
    return CallerIdentity(account_id=user.id, role=user.role)


def require(action: Action):
    """Dependency factory for endpoints gated on an admin-only action."""

    async def dependency(identity: CallerIdentity = Depends(get_current_identity)) -> CallerIdentity:
        enforce(identity, action)
        return identity

    return dependency
