from __future__ import annotations

import logging
from uuid import UUID

from marketplace.core.clock import now_ts
from marketplace.models.enrollment import Enrollment
from marketplace.repos.enrollment_repo import EnrollmentRepo

logger = logging.getLogger(__name__)


class NoCourseAccessError(PermissionError):
    """The user is not enrolled, or the enrollment no longer grants access."""


async def enroll(
    repo: EnrollmentRepo, *, user_id: UUID, course_id: UUID, now: int | None = None
) -> Enrollment:
    """Enroll the user for free.  Repeating the call returns the first enrollment."""
    now = now_ts() if now is None else now
    candidate = Enrollment.new(user_id=user_id, course_id=course_id, now=now)
    stored = await repo.add_if_absent(candidate)
    if stored.id == candidate.id:
        logger.info(
            "Enrolled user=%s course=%s",
            user_id,
            course_id,
            extra={"user_id": str(user_id), "course_id": str(course_id)},
        )
    return stored


async def require_access(
    repo: EnrollmentRepo, *, user_id: UUID, course_id: UUID, now: int | None = None
) -> Enrollment:
    now = now_ts() if now is None else now
    enrollment = await repo.get(user_id, course_id)
    if enrollment is None or not enrollment.has_access(now):
        logger.warning(
            "Course access denied user=%s course=%s",
            user_id,
            course_id,
            extra={"user_id": str(user_id), "course_id": str(course_id)},
        )
        raise NoCourseAccessError(str(course_id))
    return enrollment
