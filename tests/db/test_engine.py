from __future__ import annotations

from marketplace.db.engine import sync_database_url


def test_sync_url_swaps_async_driver() -> None:
    url = "postgresql+asyncpg://app:s3cret@db:5432/marketplace"
    assert sync_database_url(url) == "postgresql+psycopg2://app:s3cret@db:5432/marketplace"


def test_sync_url_keeps_query_options() -> None:
    url = "postgresql+asyncpg://app:pw@db/marketplace?sslmode=require"
    assert sync_database_url(url) == "postgresql+psycopg2://app:pw@db/marketplace?sslmode=require"


def test_sync_url_accepts_plain_postgres_url() -> None:
    assert sync_database_url("postgresql://localhost/marketplace") == (
        "postgresql+psycopg2://localhost/marketplace"
    )
