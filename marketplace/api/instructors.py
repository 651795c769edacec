"""Instructor directory.

An instructor is listed once they have at least one published course.
The per-instructor course list includes drafts only for the instructor
themselves.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from marketplace.api.courses import CourseSummaryOut
from marketplace.api.dependencies import Catalog, MaybeUser, Users
from marketplace.models.course import Course
from marketplace.models.user import User
from marketplace.services.catalog_service import find_user, paginate

router = APIRouter(prefix="/v1/instructors", tags=["instructors"])

INSTRUCTORS_PAGE_SIZE = 12


class InstructorOut(BaseModel):
    id: str
    name: str
    username: str | None
    avatar: str | None
    bio: str | None
    course_count: int
    student_count: int

    @classmethod
    def from_user(cls, user: User, courses: list[Course]) -> InstructorOut:
        return cls(
            id=str(user.id),
            name=user.name,
            username=user.username,
            avatar=user.avatar,
            bio=user.bio,
            course_count=len(courses),
            student_count=sum(c.student_count for c in courses),
        )


class InstructorPage(BaseModel):
    items: list[InstructorOut]
    total: int
    page: int
    page_size: int


class InstructorDetailOut(InstructorOut):
    courses: list[CourseSummaryOut]


class InstructorCourseOut(BaseModel):
    id: str
    slug: str
    title: str
    status: str
    student_count: int
    rating_avg: float
    rating_count: int
    price_current: int
    updated_at: int


async def _instructor(users: Users, identifier: str) -> User:
    user = await find_user(users, identifier)
    if user is None or not user.is_active or "instructor" not in user.roles:
        raise HTTPException(status_code=404, detail="instructor not found")
    return user


@router.get("", response_model=InstructorPage)
async def list_instructors(
    users: Users,
    catalog: Catalog,
    page: int = 1,
    page_size: int = INSTRUCTORS_PAGE_SIZE,
) -> InstructorPage:
    window = paginate(page, page_size, default_size=INSTRUCTORS_PAGE_SIZE)
    total, stats = await catalog.list_instructor_stats(
        limit=window.page_size, offset=window.offset
    )
    found = await users.get_many(s.instructor_id for s in stats)

    items = []
    for s in stats:
        user = found.get(s.instructor_id)
        # Banned or deleted accounts drop out of the page.
        if user is None or not user.is_active:
            continue
        items.append(
            InstructorOut(
                id=str(user.id),
                name=user.name,
                username=user.username,
                avatar=user.avatar,
                bio=user.bio,
                course_count=s.course_count,
                student_count=s.student_count,
            )
        )
    return InstructorPage(
        items=items, total=total, page=window.page, page_size=window.page_size
    )


@router.get("/{identifier}", response_model=InstructorDetailOut)
async def get_instructor(
    identifier: str, users: Users, catalog: Catalog
) -> InstructorDetailOut:
    user = await _instructor(users, identifier)
    courses = await catalog.list_instructor_courses(user.id)
    courses.sort(key=lambda c: -(c.published_at or 0))

    summary = InstructorOut.from_user(user, courses)
    return InstructorDetailOut(
        **summary.model_dump(),
        courses=[CourseSummaryOut.from_course(c) for c in courses],
    )


@router.get("/{identifier}/courses", response_model=list[InstructorCourseOut])
async def list_instructor_courses(
    identifier: str,
    users: Users,
    catalog: Catalog,
    principal: MaybeUser,
) -> list[InstructorCourseOut]:
    """Courses by the instructor, most recently updated first."""
    user = await _instructor(users, identifier)
    is_self = principal is not None and principal.user_id == user.id
    courses = await catalog.list_instructor_courses(user.id, include_drafts=is_self)
    if not courses:
        raise HTTPException(status_code=404, detail="no courses found for this instructor")

    return [
        InstructorCourseOut(
            id=str(c.id),
            slug=c.slug,
            title=c.title,
            status=c.status,
            student_count=c.student_count,
            rating_avg=c.rating_avg,
            rating_count=c.rating_count,
            price_current=c.price_current,
            updated_at=c.updated_at,
        )
        for c in courses
    ]
