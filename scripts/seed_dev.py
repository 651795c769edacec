"""Seed a development database (or the in-memory repos) with a sample course.

Run with:
    DATABASE_URL=postgresql+asyncpg://... python scripts/seed_dev.py

Without DATABASE_URL the in-memory repositories are seeded and a short
enroll -> progress -> review walk-through runs against them.
"""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from marketplace.api import dependencies
from marketplace.core.config import SETTINGS
from marketplace.db.engine import async_session_factory
from marketplace.db.seed import COURSE_SLUG, seed_catalog
from marketplace.repos.pg_catalog_repo import PgCatalogRepo
from marketplace.repos.pg_user_repo import PgUserRepo


async def seed_postgres() -> None:
    assert async_session_factory is not None
    async with async_session_factory() as session:
        seeded = await seed_catalog(PgUserRepo(session), PgCatalogRepo(session))
        await session.commit()
    print(f"Seeded course {seeded.course.slug} ({seeded.course.id})")


def walk_through() -> None:
    from marketplace.main import app

    asyncio.run(seed_catalog(dependencies.user_repo, dependencies.catalog_repo))
    client = TestClient(app)

    # ── Register a learner ──────────────────────────────────────────
    r = client.post(
        "/auth/register",
        json={"name": "Learner", "email": "learner@example.com", "password": "learner-pass"},
    )
    token = r.json()["accessToken"]
    headers = {"Authorization": f"Bearer {token}"}
    print(f"1. POST /auth/register            → {r.status_code}")

    # ── Enroll ──────────────────────────────────────────────────────
    r = client.post(f"/v1/courses/{COURSE_SLUG}/enroll", headers=headers)
    print(f"2. POST /v1/courses/.../enroll     → {r.status_code}")

    # ── Complete the first published lecture ────────────────────────
    r = client.get(f"/v1/courses/{COURSE_SLUG}/curriculum", headers=headers)
    first = r.json()[0]["lectures"][0]["id"]
    r = client.post(
        f"/v1/progress/lectures/{first}", json={"completed": True}, headers=headers
    )
    print(f"3. POST /v1/progress/lectures/...  → {r.status_code}  {r.json()}")

    # ── Review ──────────────────────────────────────────────────────
    r = client.put(
        f"/v1/courses/{COURSE_SLUG}/review",
        json={"rating": 5, "title": "Clear and practical"},
        headers=headers,
    )
    print(f"4. PUT  /v1/courses/.../review     → {r.status_code}  {r.json()}")


def main() -> None:
    if SETTINGS.database_url:
        asyncio.run(seed_postgres())
    else:
        walk_through()


if __name__ == "__main__":
    main()
