"""Development seed data: one category, one instructor, one published
course with two sections and four lectures (one still a draft)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from marketplace.core.clock import now_ts
from marketplace.models.course import Category, Course, CourseSection, Lecture
from marketplace.models.user import User
from marketplace.repos.catalog_repo import CatalogRepo
from marketplace.repos.user_repo import UserRepo
from marketplace.services import auth_service

logger = logging.getLogger(__name__)

INSTRUCTOR_EMAIL = "instructor@example.com"
INSTRUCTOR_PASSWORD = "instructor-pass"
COURSE_SLUG = "python-for-data-analysis"
COURSE_TAGS = ("python", "pandas", "data-analysis")


@dataclass(frozen=True, slots=True)
class SeededCatalog:
    instructor: User
    category: Category
    course: Course
    lectures: tuple[Lecture, ...]


async def seed_catalog(users: UserRepo, catalog: CatalogRepo) -> SeededCatalog:
    now = now_ts()

    instructor = User.new(
        name="Dina Pratama",
        email=INSTRUCTOR_EMAIL,
        password_hash=auth_service.hash_password(INSTRUCTOR_PASSWORD),
        now=now,
        username="dina",
        roles=("student", "instructor"),
    )
    await users.add(instructor)

    category = Category.new(name="Data Science", slug="data-science")
    await catalog.add_category(category)

    course = Course.new(
        instructor_id=instructor.id,
        title="Python for Data Analysis",
        slug=COURSE_SLUG,
        subtitle="pandas, plotting and notebooks from scratch",
        category_id=category.id,
        price_current=149000,
        status="published",
        now=now,
    )
    await catalog.add_course(course)
    await catalog.set_course_tags(course.id, list(COURSE_TAGS))

    basics = CourseSection.new(course_id=course.id, title="Getting started", sort_order=1)
    pandas = CourseSection.new(course_id=course.id, title="Working with pandas", sort_order=2)
    await catalog.add_section(basics)
    await catalog.add_section(pandas)

    lectures = (
        Lecture.new(
            course_id=course.id,
            section_id=basics.id,
            title="Installing Python",
            sort_order=1,
            duration_seconds=420,
            is_preview=True,
            now=now,
        ),
        Lecture.new(
            course_id=course.id,
            section_id=basics.id,
            title="Jupyter notebooks",
            sort_order=2,
            duration_seconds=610,
            now=now,
        ),
        Lecture.new(
            course_id=course.id,
            section_id=pandas.id,
            title="Series and DataFrames",
            sort_order=1,
            duration_seconds=900,
            now=now,
        ),
        Lecture.new(
            course_id=course.id,
            section_id=pandas.id,
            title="Group-by recipes",
            sort_order=2,
            status="draft",
        ),
    )
    for lecture in lectures:
        await catalog.add_lecture(lecture)

    logger.info("Seeded course=%s lectures=%d", course.slug, len(lectures))
    return SeededCatalog(
        instructor=instructor, category=category, course=course, lectures=lectures
    )
