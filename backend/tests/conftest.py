"""Shared fixtures: an in-memory async SQLite database and a small data builder."""

from datetime import datetime, timedelta

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import officehours.models  # noqa: F401
from officehours.database import Base
from officehours.models import (
    ClosedQuestionStatus,
    Course,
    Question,
    QuestionType,
    Queue,
    Role,
    User,
    UserCourse,
)

BASE_TIME = datetime(2026, 9, 14, 14, 0, 0)


class CourseData:
    """Adds rows to the test session; every helper flushes so ids are set."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._user_seq = 0

    async def _add(self, obj):
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def course(self, name: str = "CS 2500") -> Course:
        return await self._add(Course(name=name))

    async def user(self, first: str = "Student", last: str | None = None) -> User:
        self._user_seq += 1
        last = last or str(self._user_seq)
        return await self._add(User(
            email=f"{first.lower()}.{last.lower()}.{self._user_seq}@university.edu",
            first_name=first,
            last_name=last,
        ))

    async def enroll(self, user: User, course: Course, role: Role = Role.STUDENT) -> UserCourse:
        return await self._add(UserCourse(user_id=user.id, course_id=course.id, role=role))

    async def member(self, course: Course, role: Role = Role.STUDENT, first: str = "Student") -> User:
        user = await self.user(first)
        await self.enroll(user, course, role)
        return user

    async def queue(self, course: Course, room: str = "WVH 102") -> Queue:
        return await self._add(Queue(course_id=course.id, room=room))

    async def question(
        self,
        queue: Queue,
        creator: User,
        *,
        question_type: QuestionType | None = QuestionType.BUG,
        created_at: datetime = BASE_TIME,
        wait_minutes: float | None = None,
        help_minutes: float | None = None,
        status: str = ClosedQuestionStatus.RESOLVED.value,
    ) -> Question:
        first_helped_at = helped_at = closed_at = None
        if wait_minutes is not None:
            first_helped_at = helped_at = created_at + timedelta(minutes=wait_minutes)
            if help_minutes is not None:
                closed_at = helped_at + timedelta(minutes=help_minutes)
        return await self._add(Question(
            queue_id=queue.id,
            creator_id=creator.id,
            question_type=question_type,
            status=status,
            created_at=created_at,
            first_helped_at=first_helped_at,
            helped_at=helped_at,
            closed_at=closed_at,
        ))


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def data(db):
    return CourseData(db)
