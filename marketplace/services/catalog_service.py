"""Lookup and pagination helpers shared by the catalog endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from marketplace.models.course import Category, Course
from marketplace.models.user import User
from marketplace.repos.catalog_repo import CatalogRepo
from marketplace.repos.user_repo import UserRepo

MAX_PAGE_SIZE = 50


@dataclass(frozen=True, slots=True)
class PageWindow:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(page: int | None, page_size: int | None, *, default_size: int) -> PageWindow:
    """Clamp page to >= 1 and page_size to [1, MAX_PAGE_SIZE]."""
    page = max(1, page or 1)
    size = min(MAX_PAGE_SIZE, max(1, page_size or default_size))
    return PageWindow(page=page, page_size=size)


def as_uuid(identifier: str) -> UUID | None:
    """A 36-character identifier is an id; anything else is a slug."""
    if len(identifier) != 36:
        return None
    try:
        return UUID(identifier)
    except ValueError:
        return None


async def find_course(catalog: CatalogRepo, identifier: str) -> Course | None:
    course_id = as_uuid(identifier)
    if course_id is not None:
        return await catalog.get_course(course_id)
    return await catalog.get_course_by_slug(identifier)


async def find_category(catalog: CatalogRepo, identifier: str) -> Category | None:
    category_id = as_uuid(identifier)
    if category_id is not None:
        return await catalog.get_category(category_id)
    return await catalog.get_category_by_slug(identifier)


async def find_user(users: UserRepo, identifier: str) -> User | None:
    user_id = as_uuid(identifier)
    if user_id is not None:
        return await users.get_by_id(user_id)
    return await users.get_by_username(identifier)
