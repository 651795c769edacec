"""Course catalog, curriculum, reviews and enrollment.

Rating flow:
  Client -> PUT /v1/courses/{identifier}/review
  -> require an enrollment with access
  -> rate_course (upsert review, recompute rating_count / rating_avg)
  -> 200 with the refreshed rating
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID, uuid4

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from marketplace.api.dependencies import (
    Catalog,
    CurrentUser,
    Enrollments,
    MaybeUser,
    Progress,
    Reviews,
    Users,
)
from marketplace.models.course import Course, normalize_tag
from marketplace.models.enrollment import Enrollment
from marketplace.repos.catalog_repo import CourseQuery, CourseSort
from marketplace.services import enrollment_service, rating_service
from marketplace.services.catalog_service import MAX_PAGE_SIZE, find_course, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])

COURSES_PAGE_SIZE = 12
REVIEWS_PAGE_SIZE = 10


# --- Schemas --------------------------------------------------------------


class CourseSummaryOut(BaseModel):
    id: str
    slug: str
    title: str
    subtitle: str | None
    thumbnail_url: str | None
    instructor_id: str
    category_id: str | None
    currency: str
    price_base: int
    price_current: int
    rating_avg: float
    rating_count: int
    student_count: int
    published_at: int | None

    @classmethod
    def from_course(cls, course: Course) -> CourseSummaryOut:
        return cls(
            id=str(course.id),
            slug=course.slug,
            title=course.title,
            subtitle=course.subtitle,
            thumbnail_url=course.thumbnail_url,
            instructor_id=str(course.instructor_id),
            category_id=str(course.category_id) if course.category_id else None,
            currency=course.currency,
            price_base=course.price_base,
            price_current=course.price_current,
            rating_avg=course.rating_avg,
            rating_count=course.rating_count,
            student_count=course.student_count,
            published_at=course.published_at,
        )


class CourseDetailOut(CourseSummaryOut):
    description: str | None
    tags: list[str]
    language: str
    status: str
    created_at: int
    updated_at: int

    @classmethod
    def from_course(cls, course: Course, tags: list[str]) -> CourseDetailOut:
        summary = CourseSummaryOut.from_course(course)
        return cls(
            **summary.model_dump(),
            description=course.description,
            tags=tags,
            language=course.language,
            status=course.status,
            created_at=course.created_at,
            updated_at=course.updated_at,
        )


class CoursePage(BaseModel):
    items: list[CourseSummaryOut]
    total: int
    page: int
    page_size: int


class CourseTagOut(BaseModel):
    course_id: str
    tag: str


class LectureOut(BaseModel):
    id: str
    title: str
    type: str
    duration_seconds: int | None
    is_preview: bool
    sort_order: int
    # Only present when the caller is signed in.
    progress_status: str | None = None
    last_position_seconds: int | None = None


class SectionOut(BaseModel):
    id: str
    title: str
    sort_order: int
    lectures: list[LectureOut]


class ReviewerOut(BaseModel):
    id: str
    name: str
    username: str | None
    avatar: str | None


class ReviewOut(BaseModel):
    id: str
    rating: int
    title: str | None
    body: str | None
    created_at: int
    updated_at: int
    user: ReviewerOut | None


class ReviewPage(BaseModel):
    items: list[ReviewOut]
    total: int
    page: int
    page_size: int


class ReviewIn(BaseModel):
    rating: float = Field(allow_inf_nan=False)
    title: str | None = Field(default=None, max_length=200)
    body: str | None = None


class RatingOut(BaseModel):
    course_id: str
    rating_count: int
    rating_avg: float


class EnrollmentOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    source: str
    status: str
    enrolled_at: int
    access_expires_at: int | None

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> EnrollmentOut:
        return cls(
            id=str(enrollment.id),
            user_id=str(enrollment.user_id),
            course_id=str(enrollment.course_id),
            source=enrollment.source,
            status=enrollment.status,
            enrolled_at=enrollment.enrolled_at,
            access_expires_at=enrollment.access_expires_at,
        )


async def _published_course(catalog: Catalog, identifier: str) -> Course:
    course = await find_course(catalog, identifier)
    if course is None or not course.is_published:
        raise HTTPException(status_code=404, detail="course not found")
    return course


# --- GET /v1/courses ------------------------------------------------------


@router.get("", response_model=CoursePage)
async def list_courses(
    catalog: Catalog,
    q: str | None = None,
    category_id: UUID | None = None,
    instructor_id: UUID | None = None,
    min_price: Annotated[int | None, Query(ge=0)] = None,
    max_price: Annotated[int | None, Query(ge=0)] = None,
    tag: str | None = None,
    sort: CourseSort = "newest",
    page: int = 1,
    page_size: int = COURSES_PAGE_SIZE,
) -> CoursePage:
    window = paginate(page, page_size, default_size=COURSES_PAGE_SIZE)
    total, courses = await catalog.search_courses(
        CourseQuery(
            limit=window.page_size,
            offset=window.offset,
            q=q.strip() if q else None,
            category_id=category_id,
            instructor_id=instructor_id,
            min_price=min_price,
            max_price=max_price,
            tag=normalize_tag(tag) if tag else None,
            sort=sort,
        )
    )
    return CoursePage(
        items=[CourseSummaryOut.from_course(c) for c in courses],
        total=total,
        page=window.page,
        page_size=window.page_size,
    )


# --- GET /v1/courses/tags -------------------------------------------------
# Declared before /{identifier} so "tags" is not taken for a slug.


@router.get("/tags", response_model=list[CourseTagOut])
async def list_course_tags(
    catalog: Catalog,
    course_id: Annotated[str, Query(description="Comma-separated course ids")],
) -> list[CourseTagOut]:
    raw_ids = [part.strip() for part in course_id.split(",") if part.strip()]
    if not raw_ids or len(raw_ids) > MAX_PAGE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"course_id must list between 1 and {MAX_PAGE_SIZE} ids",
        )
    try:
        course_ids = [UUID(raw) for raw in raw_ids]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="course_id must be a list of UUIDs",
        ) from None

    return [
        CourseTagOut(course_id=str(t.course_id), tag=t.tag)
        for t in await catalog.list_course_tags(course_ids)
    ]


# --- GET /v1/courses/{identifier} ---------------------------------------


@router.get("/{identifier}", response_model=CourseDetailOut)
async def get_course(identifier: str, catalog: Catalog) -> CourseDetailOut:
    course = await _published_course(catalog, identifier)
    tags = [t.tag for t in await catalog.list_course_tags([course.id])]
    return CourseDetailOut.from_course(course, tags)


# --- GET /v1/courses/{identifier}/curriculum ------------------------------


@router.get("/{identifier}/curriculum", response_model=list[SectionOut])
async def get_curriculum(
    identifier: str,
    catalog: Catalog,
    progress: Progress,
    principal: MaybeUser,
) -> list[SectionOut]:
    course = await _published_course(catalog, identifier)
    sections = await catalog.list_sections(course.id)
    lectures = [lec for lec in await catalog.list_lectures(course.id) if lec.is_published]

    by_lecture = {}
    if principal is not None:
        rows = await progress.list_lecture_progress(principal.user_id, course.id)
        by_lecture = {p.lecture_id: p for p in rows}

    out = []
    for section in sections:
        items = []
        for lec in lectures:
            if lec.section_id != section.id:
                continue
            row = by_lecture.get(lec.id)
            items.append(
                LectureOut(
                    id=str(lec.id),
                    title=lec.title,
                    type=lec.type,
                    duration_seconds=lec.duration_seconds,
                    is_preview=lec.is_preview,
                    sort_order=lec.sort_order,
                    progress_status=(
                        (row.status if row else "not_started") if principal else None
                    ),
                    last_position_seconds=(
                        (row.last_position_seconds if row else 0) if principal else None
                    ),
                )
            )
        out.append(
            SectionOut(
                id=str(section.id),
                title=section.title,
                sort_order=section.sort_order,
                lectures=items,
            )
        )
    return out


# --- GET /v1/courses/{identifier}/reviews ---------------------------------


@router.get("/{identifier}/reviews", response_model=ReviewPage)
async def list_reviews(
    identifier: str,
    catalog: Catalog,
    reviews: Reviews,
    users: Users,
    page: int = 1,
    page_size: int = REVIEWS_PAGE_SIZE,
) -> ReviewPage:
    course = await _published_course(catalog, identifier)
    window = paginate(page, page_size, default_size=REVIEWS_PAGE_SIZE)
    total, found = await reviews.list_public(
        course.id, limit=window.page_size, offset=window.offset
    )
    authors = await users.get_many(r.user_id for r in found)

    items = []
    for r in found:
        author = authors.get(r.user_id)
        items.append(
            ReviewOut(
                id=str(r.id),
                rating=r.rating,
                title=r.title,
                body=r.body,
                created_at=r.created_at,
                updated_at=r.updated_at,
                user=(
                    ReviewerOut(
                        id=str(author.id),
                        name=author.name,
                        username=author.username,
                        avatar=author.avatar,
                    )
                    if author
                    else None
                ),
            )
        )
    return ReviewPage(
        items=items, total=total, page=window.page, page_size=window.page_size
    )


# --- PUT /v1/courses/{identifier}/review ----------------------------------


@router.put("/{identifier}/review", response_model=RatingOut)
async def put_review(
    identifier: str,
    payload: ReviewIn,
    principal: CurrentUser,
    catalog: Catalog,
    reviews: Reviews,
    enrollments: Enrollments,
) -> RatingOut:
    course = await _published_course(catalog, identifier)
    try:
        await enrollment_service.require_access(
            enrollments, user_id=principal.user_id, course_id=course.id
        )
    except enrollment_service.NoCourseAccessError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="enrollment required to review this course",
        ) from None

    await rating_service.rate_course(
        reviews,
        catalog,
        review_id=uuid4(),
        user_id=principal.user_id,
        course_id=course.id,
        rating=payload.rating,
        title=payload.title,
        body=payload.body,
    )
    refreshed = await catalog.get_course(course.id)
    if refreshed is None:
        raise HTTPException(status_code=404, detail="course not found")
    return RatingOut(
        course_id=str(course.id),
        rating_count=refreshed.rating_count,
        rating_avg=refreshed.rating_avg,
    )


# --- POST /v1/courses/{identifier}/enroll ---------------------------------


@router.post(
    "/{identifier}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    identifier: str,
    principal: CurrentUser,
    catalog: Catalog,
    enrollments: Enrollments,
) -> EnrollmentOut:
    course = await _published_course(catalog, identifier)
    enrollment = await enrollment_service.enroll(
        enrollments, user_id=principal.user_id, course_id=course.id
    )
    return EnrollmentOut.from_enrollment(enrollment)
