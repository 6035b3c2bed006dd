"""
Authentication API routes.

A minimal identity boundary: the content engine only needs a verified
``(user_id, role)`` per request. New accounts are readers; staff roles are
granted out of band.
"""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user, password_hasher, token_service
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from core.domain.user import UserRole
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User, UserStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("register"))
async def register(
    request: Request,
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Register a new reader account.
    """
    result = await db.execute(select(User).where(User.email == register_data.email.lower()))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An account with this email already exists",
        )

    user = User(
        email=register_data.email.lower(),
        name=register_data.name,
        password_hash=password_hasher.hash(register_data.password),
        role=UserRole.STUDENT.value,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    await db.commit()

    logger.info("User registered: %s", user.id, extra={"actor_id": user.id})
    return user


@router.post("/login", response_model=TokenResponse)
@limiter.limit(get_rate_limit("login"))
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Authenticate user and return an access token.
    """
    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    if user:
        password_ok, upgraded_hash = password_hasher.verify_and_update(
            login_data.password, user.password_hash
        )
    else:
        password_ok, upgraded_hash = password_hasher.verify_decoy(login_data.password), None
    if not user or not password_ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )

    if upgraded_hash:
        user.password_hash = upgraded_hash
        logger.info("Password hash upgraded: %s", user.id, extra={"actor_id": user.id})
    user.last_login = datetime.now(UTC)
    await db.commit()

    return {
        "access_token": token_service.create_access_token(user.id, role=user.role),
        "token_type": "bearer",
        "expires_in": token_service.access_token_ttl_seconds,
    }


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Get current authenticated user profile.
    """
    return current_user
