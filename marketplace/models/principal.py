from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.
    `user_id` is the token subject; `roles` are the platform roles
    (student, instructor, admin) at the time the token was issued.
    """

    user_id: UUID
    roles: frozenset[str]
