from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from marketplace.api.courses import CourseSummaryOut, EnrollmentOut
from marketplace.api.dependencies import Catalog, CurrentUser, Enrollments
from marketplace.core.clock import now_ts
from marketplace.services.catalog_service import find_course, paginate

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])

ENROLLMENTS_PAGE_SIZE = 12


class MyEnrollmentOut(EnrollmentOut):
    has_access: bool
    course: CourseSummaryOut | None


class EnrollmentCheckOut(BaseModel):
    enrolled: bool
    has_access: bool


@router.get("/me", response_model=list[MyEnrollmentOut])
async def my_enrollments(
    principal: CurrentUser,
    enrollments: Enrollments,
    catalog: Catalog,
    page: int = 1,
    page_size: int = ENROLLMENTS_PAGE_SIZE,
) -> list[MyEnrollmentOut]:
    """The caller's enrollments, newest first, each with its course summary."""
    window = paginate(page, page_size, default_size=ENROLLMENTS_PAGE_SIZE)
    found = await enrollments.list_for_user(
        principal.user_id, limit=window.page_size, offset=window.offset
    )
    now = now_ts()
    out = []
    for enrollment in found:
        course = await catalog.get_course(enrollment.course_id)
        out.append(
            MyEnrollmentOut(
                **EnrollmentOut.from_enrollment(enrollment).model_dump(),
                has_access=enrollment.has_access(now),
                course=CourseSummaryOut.from_course(course) if course else None,
            )
        )
    return out


@router.get("/{identifier}/check", response_model=EnrollmentCheckOut)
async def check_enrollment(
    identifier: str,
    principal: CurrentUser,
    enrollments: Enrollments,
    catalog: Catalog,
) -> EnrollmentCheckOut:
    course = await find_course(catalog, identifier)
    if course is None:
        raise HTTPException(status_code=404, detail="course not found")
    enrollment = await enrollments.get(principal.user_id, course.id)
    return EnrollmentCheckOut(
        enrolled=enrollment is not None,
        has_access=enrollment is not None and enrollment.has_access(now_ts()),
    )
