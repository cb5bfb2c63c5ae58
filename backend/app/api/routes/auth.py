"""
Authentication endpoints: register, login and the current account.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.user import UserCreate, PrivilegedUserCreate, UserResponse, UserLogin, Token
from app.services.access_policy import Action, CallerIdentity
from app.services.auth_service import register_user, authenticate_user, get_user
from app.core.security import get_current_identity, require

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new rider account."""
    return await register_user(db, user_data)


@router.post("/admin/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_privileged(
    user_data: PrivilegedUserCreate,
    identity: CallerIdentity = Depends(require(Action.ACCOUNT_CREATE_PRIVILEGED)),
    db: AsyncSession = Depends(get_db),
):
    """Register an account with an explicit role. Admin only."""
    return await register_user(db, user_data, role=user_data.role)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token, role = await authenticate_user(db, login_data)
    return Token(access_token=token, role=role)


@router.get("/me", response_model=UserResponse)
async def me(
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, identity.account_id)
