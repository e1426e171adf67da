"""User profile endpoints for the calling identity."""

import uuid

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user_id, require_active_user
from api.schemas.users import UserCreate, UserResponse, UserUpdate
from api.services import cascade as cascade_service
from api.services import users as user_service
from database.engine import get_db
from database.models.users import User

router = APIRouter()


class AccountDeleteResponse(BaseModel):
    user_id: uuid.UUID
    deleted: dict[str, int]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register profile",
    description="Create the profile for the identity in the X-User-Id header",
)
async def register_user(
    request: UserCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    fields = request.model_dump(exclude_unset=True)
    email = fields.pop("email")
    user = await user_service.create_user(db, email, fields, user_id=user_id)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse, summary="Get profile")
async def get_me(
    current_user: User = Depends(require_active_user),
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse, summary="Update profile")
async def update_me(
    request: UserUpdate,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.update_profile(
        db, current_user.id, request.model_dump(exclude_unset=True)
    )
    return UserResponse.model_validate(user)


@router.delete(
    "/me",
    response_model=AccountDeleteResponse,
    summary="Delete account",
    description="Removes the profile with every application and document",
)
async def delete_me(
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> AccountDeleteResponse:
    user_id = current_user.id
    counts = await cascade_service.delete_user(db, user_id)
    return AccountDeleteResponse(user_id=user_id, deleted=counts)
