"""Progress repository: lecture progress rows and course progress snapshots."""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from marketplace.models.progress import LectureProgress, ProgressSnapshot
from marketplace.repos.catalog_repo import InMemoryCatalogRepo


class ProgressRepo(Protocol):
    async def upsert_lecture_progress(self, progress: LectureProgress) -> None:
        """Insert or update the row keyed by (user_id, lecture_id).

        A `completed_at` of None never overwrites a stored completion time.
        """
        ...

    async def get_lecture_progress(
        self, user_id: UUID, lecture_id: UUID
    ) -> LectureProgress | None: ...

    async def list_lecture_progress(
        self, user_id: UUID, course_id: UUID
    ) -> list[LectureProgress]: ...

    async def count_published_lectures(self, course_id: UUID) -> int: ...

    async def count_completed_lectures(self, user_id: UUID, course_id: UUID) -> int: ...

    async def upsert_snapshot(self, snapshot: ProgressSnapshot) -> None: ...

    async def get_snapshot(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressSnapshot | None: ...


class InMemoryProgressRepo:
    """Dict-backed ProgressRepo; reads lecture publication state from the catalog."""

    def __init__(self, catalog: InMemoryCatalogRepo) -> None:
        self._catalog = catalog
        self._lectures: dict[tuple[UUID, UUID], LectureProgress] = {}
        self._snapshots: dict[tuple[UUID, UUID], ProgressSnapshot] = {}

    async def upsert_lecture_progress(self, progress: LectureProgress) -> None:
        key = (progress.user_id, progress.lecture_id)
        existing = self._lectures.get(key)
        if existing is not None and progress.completed_at is None:
            progress = replace(progress, completed_at=existing.completed_at)
        self._lectures[key] = progress

    async def get_lecture_progress(
        self, user_id: UUID, lecture_id: UUID
    ) -> LectureProgress | None:
        return self._lectures.get((user_id, lecture_id))

    async def list_lecture_progress(
        self, user_id: UUID, course_id: UUID
    ) -> list[LectureProgress]:
        return [
            p
            for p in self._lectures.values()
            if p.user_id == user_id and p.course_id == course_id
        ]

    async def count_published_lectures(self, course_id: UUID) -> int:
        return self._catalog.published_lecture_count(course_id)

    async def count_completed_lectures(self, user_id: UUID, course_id: UUID) -> int:
        return sum(
            1
            for p in self._lectures.values()
            if p.user_id == user_id and p.course_id == course_id and p.is_completed
        )

    async def upsert_snapshot(self, snapshot: ProgressSnapshot) -> None:
        self._snapshots[(snapshot.user_id, snapshot.course_id)] = snapshot

    async def get_snapshot(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressSnapshot | None:
        return self._snapshots.get((user_id, course_id))
