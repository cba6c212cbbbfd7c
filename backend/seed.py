"""Seed script: one course with staff, 60 students and ~400 questions over 30 days."""

import asyncio
import random
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from officehours.config import settings
from officehours.database import Base
from officehours.auth_utils import create_access_token
from officehours.models import (
    ClosedQuestionStatus,
    Course,
    OpenQuestionStatus,
    Question,
    QuestionType,
    Queue,
    Role,
    User,
    UserCourse,
)
from officehours.services.insights import INSIGHTS

FIRST_NAMES = ["Ava", "Liam", "Noah", "Mia", "Ethan", "Zoe", "Lucas", "Priya", "Omar",
               "Grace", "Mateo", "Hana", "Diego", "Nora", "Sam", "Ines", "Kofi", "Lena"]
LAST_NAMES = ["Nguyen", "Smith", "Garcia", "Patel", "Kim", "Okafor", "Rossi", "Cohen",
              "Silva", "Khan", "Larsen", "Moreau", "Tanaka", "Reyes"]

NUM_STUDENTS = 60
NUM_QUESTIONS = 400
DAYS = 30


def random_question_times(now: datetime) -> dict:
    """Timestamps for one question; about 1 in 8 is never helped."""
    created = now - timedelta(days=random.uniform(0, DAYS), minutes=random.randint(0, 600))
    if random.random() < 0.125:
        return {"created_at": created, "status": random.choice([
            ClosedQuestionStatus.STALE.value, ClosedQuestionStatus.CONFIRMED_DELETED.value,
        ])}
    first_helped = created + timedelta(minutes=random.uniform(1, 45))
    # A few questions are put back in the queue and picked up again later
    helped = first_helped + timedelta(minutes=random.uniform(5, 20)) if random.random() < 0.1 else first_helped
    closed = helped + timedelta(minutes=random.uniform(2, 25))
    return {
        "created_at": created,
        "first_helped_at": first_helped,
        "helped_at": helped,
        "closed_at": closed,
        "status": ClosedQuestionStatus.RESOLVED.value,
    }


async def seed():
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as db:
        print(f"Seeding database with {NUM_QUESTIONS} questions over {DAYS} days...")

        course = Course(name="CS 2500", section_group_name="Fundamentals of Computer Science 1")
        db.add(course)
        await db.flush()

        # ── Staff ────────────────────────────────────────
        professor = User(email="prof.lerner@university.edu", first_name="Ben", last_name="Lerner",
                         insights=list(INSIGHTS))
        tas = [
            User(email="ta.alvarez@university.edu", first_name="Maya", last_name="Alvarez"),
            User(email="ta.brooks@university.edu", first_name="Jonah", last_name="Brooks"),
            User(email="ta.chen@university.edu", first_name="Wei", last_name="Chen"),
        ]
        db.add_all([professor, *tas])
        await db.flush()
        db.add(UserCourse(user_id=professor.id, course_id=course.id, role=Role.PROFESSOR))
        for ta in tas:
            db.add(UserCourse(user_id=ta.id, course_id=course.id, role=Role.TA))

        # ── Students ─────────────────────────────────────
        students = []
        for i in range(NUM_STUDENTS):
            first = random.choice(FIRST_NAMES)
            last = random.choice(LAST_NAMES)
            students.append(User(
                email=f"{first.lower()}.{last.lower()}{i}@university.edu",
                first_name=first, last_name=last,
            ))
        db.add_all(students)
        await db.flush()
        for student in students:
            db.add(UserCourse(user_id=student.id, course_id=course.id, role=Role.STUDENT))
        print(f"  - Enrollments: 1 professor, {len(tas)} TAs, {NUM_STUDENTS} students")

        # ── Queues & questions ───────────────────────────
        queues = [
            Queue(course_id=course.id, room="WVH 102", notes="Bring your laptop charger"),
            Queue(course_id=course.id, room="Online", is_professor_queue=True),
        ]
        db.add_all(queues)
        await db.flush()

        now = datetime.now(timezone.utc)
        # Activity is skewed: a handful of students ask most of the questions
        weights = [random.paretovariate(1.5) for _ in students]
        for _ in range(NUM_QUESTIONS):
            creator = random.choices(students, weights=weights)[0]
            times = random_question_times(now)
            db.add(Question(
                queue_id=random.choice(queues).id,
                creator_id=creator.id,
                ta_helped_id=random.choice(tas).id if times.get("helped_at") else None,
                text="Stuck on the homework",
                question_type=random.choice(list(QuestionType)) if random.random() > 0.05 else None,
                location="Table 3",
                **times,
            ))

        # A couple of students waiting right now
        for student in random.sample(students, 3):
            db.add(Question(
                queue_id=queues[0].id,
                creator_id=student.id,
                text="Question about the design recipe",
                question_type=QuestionType.CONCEPT,
                status=OpenQuestionStatus.QUEUED.value,
                created_at=now - timedelta(minutes=random.randint(1, 15)),
            ))

        await db.commit()

        print("\nDatabase seeded successfully!")
        print(f"  - Course: {course.name} (id={course.id})")
        print(f"  - Queues: {', '.join(q.room for q in queues)}")
        print(f"  - Professor token (sub={professor.id}):")
        print(f"      {create_access_token({'sub': str(professor.id)}, expires_delta=timedelta(days=7))}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
