from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from marketplace.api import dependencies
from marketplace.core.clock import now_ts
from marketplace.db.seed import SeededCatalog, seed_catalog
from marketplace.main import app
from marketplace.models.enrollment import Enrollment
from marketplace.models.user import User
from marketplace.services import auth_service, token_service
from marketplace.services.cache import cache_service

# Ensure repo root is on sys.path so `import marketplace` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

LEARNER_PASSWORD = "learner-pass"


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Clear the in-memory repositories between tests."""
    dependencies.user_repo._by_email.clear()
    dependencies.user_repo._by_id.clear()
    dependencies.catalog_repo._categories.clear()
    dependencies.catalog_repo._courses.clear()
    dependencies.catalog_repo._sections.clear()
    dependencies.catalog_repo._lectures.clear()
    dependencies.catalog_repo._tags.clear()
    dependencies.progress_repo._lectures.clear()
    dependencies.progress_repo._snapshots.clear()
    dependencies.review_repo._by_key.clear()
    dependencies.enrollment_repo._store.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(user_id: UUID | str, roles: list[str] | None = None) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=str(user_id), roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@dataclass(frozen=True)
class Learner:
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return auth(self.token)


def create_learner(email: str = "learner@example.com", username: str | None = None) -> Learner:
    """Persist a student in the in-memory repo and mint a token for them."""
    user = User.new(
        name=email.split("@")[0].title(),
        email=email,
        password_hash=auth_service.hash_password(LEARNER_PASSWORD),
        now=now_ts(),
        username=username,
    )
    asyncio.run(dependencies.user_repo.add(user))
    return Learner(user=user, token=mint_token(user.id))


def enroll(user_id: UUID, course_id: UUID, **overrides) -> Enrollment:
    enrollment = Enrollment.new(user_id=user_id, course_id=course_id, now=now_ts())
    if overrides:
        enrollment = replace(enrollment, **overrides)
    return asyncio.run(dependencies.enrollment_repo.add_if_absent(enrollment))


@pytest.fixture
def seeded() -> SeededCatalog:
    """One published course with three published lectures and one draft."""
    return asyncio.run(seed_catalog(dependencies.user_repo, dependencies.catalog_repo))


@pytest.fixture
def learner() -> Learner:
    return create_learner()
