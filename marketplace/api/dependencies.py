from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.engine import get_async_session
from marketplace.models.principal import Principal
from marketplace.repos.catalog_repo import CatalogRepo, InMemoryCatalogRepo
from marketplace.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from marketplace.repos.pg_catalog_repo import PgCatalogRepo
from marketplace.repos.pg_enrollment_repo import PgEnrollmentRepo
from marketplace.repos.pg_progress_repo import PgProgressRepo
from marketplace.repos.pg_review_repo import PgReviewRepo
from marketplace.repos.pg_user_repo import PgUserRepo
from marketplace.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from marketplace.repos.review_repo import InMemoryReviewRepo, ReviewRepo
from marketplace.repos.user_repo import InMemoryUserRepo, UserRepo
from marketplace.services import token_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/sign")
_optional_scheme = OAuth2PasswordBearer(tokenUrl="/auth/sign", auto_error=False)

# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------
# In-memory singletons serve dev and tests when DATABASE_URL is unset.
# With a database, each request gets Pg repos bound to its own session,
# so every write in the request commits or rolls back together.

user_repo = InMemoryUserRepo()
catalog_repo = InMemoryCatalogRepo()
progress_repo = InMemoryProgressRepo(catalog_repo)
review_repo = InMemoryReviewRepo()
enrollment_repo = InMemoryEnrollmentRepo()

Session = Annotated[AsyncSession | None, Depends(get_async_session)]


def get_user_repo(session: Session) -> UserRepo:
    return user_repo if session is None else PgUserRepo(session)


def get_catalog_repo(session: Session) -> CatalogRepo:
    return catalog_repo if session is None else PgCatalogRepo(session)


def get_progress_repo(session: Session) -> ProgressRepo:
    return progress_repo if session is None else PgProgressRepo(session)


def get_review_repo(session: Session) -> ReviewRepo:
    return review_repo if session is None else PgReviewRepo(session)


def get_enrollment_repo(session: Session) -> EnrollmentRepo:
    return enrollment_repo if session is None else PgEnrollmentRepo(session)


Users = Annotated[UserRepo, Depends(get_user_repo)]
Catalog = Annotated[CatalogRepo, Depends(get_catalog_repo)]
Progress = Annotated[ProgressRepo, Depends(get_progress_repo)]
Reviews = Annotated[ReviewRepo, Depends(get_review_repo)]
Enrollments = Annotated[EnrollmentRepo, Depends(get_enrollment_repo)]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def _principal_from_token(raw_token: str) -> Principal:
    try:
        claims = token_service.decode_access_token(raw_token)
        user_id = UUID(claims["sub"])
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(user_id=user_id, roles=frozenset(claims.get("roles", [])))
    logger.debug(
        "Token validated for user=%s roles=%s",
        principal.user_id,
        principal.roles,
    )
    return principal


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Used as a FastAPI dependency on any protected endpoint.
    """
    return _principal_from_token(raw_token)


def optional_user(
    raw_token: Annotated[str | None, Depends(_optional_scheme)],
) -> Principal | None:
    """Like require_user, but anonymous requests get None.

    A token that is present but invalid is still rejected with 401.
    """
    if raw_token is None:
        return None
    return _principal_from_token(raw_token)


CurrentUser = Annotated[Principal, Depends(require_user)]
MaybeUser = Annotated[Principal | None, Depends(optional_user)]
