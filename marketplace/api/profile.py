"""Public user profiles."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from marketplace.api.dependencies import Users
from marketplace.services.catalog_service import find_user

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


class ProfileOut(BaseModel):
    id: str
    name: str
    username: str | None
    avatar: str | None
    bio: str | None
    roles: list[str]
    created_at: int


@router.get("/{user_identifier}", response_model=ProfileOut)
async def get_profile(user_identifier: str, users: Users) -> ProfileOut:
    user = await find_user(users, user_identifier)
    if user is None or not user.is_active:
        raise HTTPException(status_code=404, detail="profile not found")
    # Email and login timestamps stay private.
    return ProfileOut(
        id=str(user.id),
        name=user.name,
        username=user.username,
        avatar=user.avatar,
        bio=user.bio,
        roles=list(user.roles),
        created_at=user.created_at,
    )
