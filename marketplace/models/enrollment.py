from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: UUID
    user_id: UUID
    course_id: UUID
    enrolled_at: int
    source: str = "purchase"  # purchase|free|coupon|gift|admin_grant
    status: str = "active"  # active|refunded|revoked
    access_expires_at: int | None = None

    def has_access(self, now: int) -> bool:
        """Active, and either open-ended or not yet expired."""
        if self.status != "active":
            return False
        return self.access_expires_at is None or self.access_expires_at > now

    @staticmethod
    def new(
        *,
        user_id: UUID,
        course_id: UUID,
        now: int,
        source: str = "free",
        access_expires_at: int | None = None,
    ) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            enrolled_at=now,
            source=source,
            access_expires_at=access_expires_at,
        )
