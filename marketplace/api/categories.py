from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from marketplace.api.courses import COURSES_PAGE_SIZE, CoursePage, CourseSummaryOut
from marketplace.api.dependencies import Catalog
from marketplace.models.course import Category
from marketplace.repos.catalog_repo import CourseQuery
from marketplace.services.catalog_service import find_category, paginate

router = APIRouter(prefix="/v1/categories", tags=["categories"])


class CategoryOut(BaseModel):
    id: str
    name: str
    slug: str
    parent_id: str | None
    sort_order: int

    @classmethod
    def from_category(cls, category: Category) -> CategoryOut:
        return cls(
            id=str(category.id),
            name=category.name,
            slug=category.slug,
            parent_id=str(category.parent_id) if category.parent_id else None,
            sort_order=category.sort_order,
        )


@router.get("", response_model=list[CategoryOut])
async def list_categories(
    catalog: Catalog, parent_id: UUID | None = None
) -> list[CategoryOut]:
    """Root categories, or the children of `parent_id`."""
    return [CategoryOut.from_category(c) for c in await catalog.list_categories(parent_id)]


@router.get("/{identifier}", response_model=CategoryOut)
async def get_category(identifier: str, catalog: Catalog) -> CategoryOut:
    category = await find_category(catalog, identifier)
    if category is None:
        raise HTTPException(status_code=404, detail="category not found")
    return CategoryOut.from_category(category)


@router.get("/{identifier}/courses", response_model=CoursePage)
async def list_category_courses(
    identifier: str,
    catalog: Catalog,
    page: int = 1,
    page_size: int = COURSES_PAGE_SIZE,
) -> CoursePage:
    """Published courses in the category, most recently published first."""
    category = await find_category(catalog, identifier)
    if category is None:
        raise HTTPException(status_code=404, detail="category not found")

    window = paginate(page, page_size, default_size=COURSES_PAGE_SIZE)
    total, courses = await catalog.search_courses(
        CourseQuery(
            limit=window.page_size,
            offset=window.offset,
            category_id=category.id,
            sort="newest",
        )
    )
    return CoursePage(
        items=[CourseSummaryOut.from_course(c) for c in courses],
        total=total,
        page=window.page,
        page_size=window.page_size,
    )
