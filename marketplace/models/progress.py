from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

LectureStatus = Literal["not_started", "in_progress", "completed"]
LECTURE_STATUSES: tuple[str, ...] = ("not_started", "in_progress", "completed")


@dataclass(frozen=True, slots=True)
class LectureProgress:
    """Source of truth for learner progress, keyed by (user_id, lecture_id)."""

    user_id: UUID
    lecture_id: UUID
    course_id: UUID
    updated_at: int
    status: str = "not_started"
    last_position_seconds: int = 0
    completed_at: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Completion summary for one user in one course.

    Derived entirely from LectureProgress rows and the published lectures
    of the course; it holds no state of its own.
    """

    user_id: UUID
    course_id: UUID
    percent: int = 0
    completed_lectures: int = 0
    total_lectures: int = 0
    updated_at: int | None = None
