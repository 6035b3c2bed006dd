"""
API dependencies for authentication and caller resolution.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.caller import ANONYMOUS, Authenticated, CallerContext
from core.security import PasswordHasher, TokenService
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User

token_service = TokenService(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
    access_token_expire_minutes=settings.jwt_access_token_expire_minutes,
    issuer=settings.jwt_issuer,
)

password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        return token or None
    return None


async def _user_for_token(db: AsyncSession, token: str) -> Optional[User]:
    payload = token_service.verify_access_token(token)
    if not payload:
        return None
    result = await db.execute(select(User).where(User.id == payload.sub))
    return result.scalar_one_or_none()


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.

    Raises 401 when the bearer token is missing, invalid, or names an
    unknown user, and 403 for suspended accounts.
    """
    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await _user_for_token(db, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )

    return user


async def get_caller(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> CallerContext:
    """
    Resolve the caller context for content operations.

    Missing or unusable credentials resolve to the anonymous caller; the
    services decide whether an operation needs more.
    """
    token = _bearer_token(authorization)
    if not token:
        return ANONYMOUS

    user = await _user_for_token(db, token)
    if not user or not user.is_active:
        return ANONYMOUS
    return Authenticated(user_id=user.id, role=user.role)


async def get_authenticated_caller(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Authenticated:
    """Caller context for endpoints that always need a signed-in user."""
    return Authenticated(user_id=current_user.id, role=current_user.role)
