"""JSON auth endpoints for SPA clients.

/auth/sign accepts a local email + password or a Google ID token
(type "sso").  /auth/register and /auth/sign both return
{ accessToken, user } so the client can keep the token in memory and
continue straight away.
"""

from __future__ import annotations

import logging
import re
from typing import Literal

import jwt
from fastapi import APIRouter, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from marketplace.api.dependencies import CurrentUser, Users
from marketplace.core.clock import now_ts
from marketplace.models.user import User
from marketplace.services import auth_service, google_sso, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


# --- Request / Response schemas -------------------------------------------


class SignIn(BaseModel):
    type: Literal["local", "sso"] = "local"
    email: str | None = None
    password: str | None = None
    # SSO only
    provider: str | None = None
    token: str | None = None


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str


class CheckIn(BaseModel):
    email: str


class CheckOut(BaseModel):
    registered: bool


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    username: str | None
    avatar: str | None
    bio: str | None
    roles: list[str]
    created_at: int
    last_login_at: int | None

    @classmethod
    def from_user(cls, user: User) -> UserOut:
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            username=user.username,
            avatar=user.avatar,
            bio=user.bio,
            roles=list(user.roles),
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


class AuthResponse(BaseModel):
    accessToken: str
    user: UserOut


def _issue(user: User) -> AuthResponse:
    token = token_service.create_access_token(
        sub=str(user.id),
        roles=list(user.roles) or ["student"],
    )
    return AuthResponse(accessToken=token, user=UserOut.from_user(user))


# --- POST /auth/register --------------------------------------------------


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterIn, users: Users) -> AuthResponse:
    email = auth_service.normalize_email(payload.email)
    name = payload.name.strip()

    if not _EMAIL_RE.match(email):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invalid email address"},
        )

    if not name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Name is required"},
        )

    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Password must be at least 8 characters"},
        )

    if await users.get_by_email(email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "A user with this email already exists"},
        )

    user = User.new(
        name=name,
        email=email,
        password_hash=auth_service.hash_password(payload.password),
        now=now_ts(),
    )
    try:
        await users.add(user)
    except ValueError:
        # Lost a race with a concurrent registration for the same email.
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "A user with this email already exists"},
        ) from None

    logger.info("User registered  user_id=%s", user.id, extra={"user_id": str(user.id)})
    return _issue(user)


# --- POST /auth/sign ------------------------------------------------------


async def _local_user(payload: SignIn, users: Users) -> User:
    if not payload.email or payload.password is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "email and password are required"},
        )
    try:
        return await auth_service.authenticate_user(users, payload.email, payload.password)
    except auth_service.UnknownUserError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "No account is registered with this email"},
        ) from None
    except auth_service.InvalidCredentialsError:
        logger.warning("Sign-in failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        ) from None


async def _sso_user(payload: SignIn, users: Users) -> User:
    if payload.provider != "google":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid sso provider"},
        )
    if not payload.token:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "token is required for sso sign-in"},
        )

    try:
        identity = await run_in_threadpool(google_sso.verify_id_token, payload.token)
    except google_sso.SsoNotConfiguredError:
        logger.error("SSO sign-in attempted but GOOGLE_CLIENT_ID is not set")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "SSO sign-in is not available"},
        ) from None
    except jwt.PyJWTError as e:
        logger.warning("SSO token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid sso token"},
        ) from None

    user = await users.get_by_email(auth_service.normalize_email(identity.email))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "No account is registered with this email"},
        )
    if not user.is_active:
        logger.warning("Sign-in rejected for inactive user=%s", user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        )
    return user


@router.post("/sign", response_model=AuthResponse)
async def sign(payload: SignIn, users: Users) -> AuthResponse:
    if payload.type == "sso":
        user = await _sso_user(payload, users)
    else:
        user = await _local_user(payload, users)

    now = now_ts()
    await users.touch_login(user.id, now)
    logger.info(
        "Sign-in succeeded  user_id=%s type=%s",
        user.id,
        payload.type,
        extra={"user_id": str(user.id)},
    )

    refreshed = await users.get_by_id(user.id)
    return _issue(refreshed or user)


# --- POST /auth/check -----------------------------------------------------


@router.post("/check", response_model=CheckOut)
async def check(payload: CheckIn, users: Users) -> CheckOut:
    user = await users.get_by_email(auth_service.normalize_email(payload.email))
    return CheckOut(registered=user is not None)


# --- GET /auth/me ---------------------------------------------------------


@router.get("/me", response_model=UserOut)
async def me(principal: CurrentUser, users: Users) -> UserOut:
    user = await users.get_by_id(principal.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return UserOut.from_user(user)
