"""FastAPI dependencies for dependency injection."""

import uuid
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from database.engine import get_db
from database.models.users import User


USER_ID_HEADER = "X-User-Id"


async def get_current_user_id(
    request: Request,
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> uuid.UUID:
    """
    Identity of the caller, as asserted by the authentication proxy in front
    of the service. Every query is scoped to this id.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity",
        )
    request.state.user_id = user_id
    return user_id


async def require_active_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Require the caller to have an active profile."""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No profile for this identity",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account",
        )
    return user

