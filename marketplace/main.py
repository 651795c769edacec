from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.auth import router as auth_router
from marketplace.api.categories import router as categories_router
from marketplace.api.courses import router as courses_router
from marketplace.api.enrollments import router as enrollments_router
from marketplace.api.health import router as health_router
from marketplace.api.instructors import router as instructors_router
from marketplace.api.metrics_endpoint import router as metrics_router
from marketplace.api.profile import router as profile_router
from marketplace.api.progress import router as progress_router
from marketplace.core.config import SETTINGS
from marketplace.core.logging import setup_logging
from marketplace.db.engine import lifespan_db
from marketplace.db.redis import lifespan_redis
from marketplace.middleware.metrics import MetricsMiddleware
from marketplace.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


# only app setup + router registration

app = FastAPI(
    title="course-marketplace-api",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(categories_router)
app.include_router(instructors_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(progress_router)

logger.info(
    "course-marketplace-api started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
