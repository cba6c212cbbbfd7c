"""Compute functions behind each registered insight.

Every function takes the request's session and filter list, builds one base
query, narrows it through ``apply_filters`` with the filter types it accepts,
executes it and shapes the rows into the display output its insight declares.
Nothing here writes to the database.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from officehours.models.course import Role, UserCourse
from officehours.models.question import Question, QuestionType
from officehours.models.user import User
from officehours.services.insights.filters import (
    COURSE_ID,
    ROLE,
    TIMEFRAME,
    EntityKind,
    Filter,
    apply_filters,
)
from officehours.services.insights.outputs import (
    BarChartOutput,
    SimpleDisplayOutput,
    SimpleTableOutput,
    TableColumn,
)
from officehours.services.insights.stats import elapsed_minutes, median, round_half_up

QUESTION_FILTERS = (COURSE_ID, TIMEFRAME)
ENROLLMENT_FILTERS = (COURSE_ID, ROLE)

MOST_ACTIVE_LIMIT = 75


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------

async def total_students(db: AsyncSession, filters: list[Filter]) -> SimpleDisplayOutput:
    """Number of student enrollments."""
    query = apply_filters(
        select(func.count()).select_from(UserCourse).where(UserCourse.role == Role.STUDENT),
        EntityKind.ENROLLMENT,
        ENROLLMENT_FILTERS,
        filters,
    )
    result = await db.execute(query)
    return SimpleDisplayOutput(value=result.scalar() or 0)


async def total_questions_asked(db: AsyncSession, filters: list[Filter]) -> SimpleDisplayOutput:
    """Number of questions ever put in a queue."""
    query = apply_filters(
        select(func.count(Question.id)).select_from(Question),
        EntityKind.QUESTION,
        QUESTION_FILTERS,
        filters,
    )
    result = await db.execute(query)
    return SimpleDisplayOutput(value=result.scalar() or 0)


async def question_to_student_ratio(db: AsyncSession, filters: list[Filter]) -> SimpleDisplayOutput:
    """Questions per enrolled student, formatted to two decimals.

    With no students the ratio is undefined and the literal ``"0 students"``
    is shown instead.
    """
    questions = await total_questions_asked(db, filters)
    students = await total_students(db, filters)
    if not students.value:
        return SimpleDisplayOutput(value="0 students")
    return SimpleDisplayOutput(value=f"{questions.value / students.value:.2f}")


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------

async def most_active_students(db: AsyncSession, filters: list[Filter]) -> SimpleTableOutput:
    questions_asked = func.count(Question.id).label("questionsAsked")
    query = apply_filters(
        select(
            Question.creator_id.label("studentId"),
            (User.first_name + " " + User.last_name).label("name"),
            User.email.label("email"),
            questions_asked,
        )
        .select_from(Question)
        .where(Question.question_type.is_not(None)),
        EntityKind.QUESTION,
        QUESTION_FILTERS,
        filters,
    )
    query = (
        query.join(User, User.id == Question.creator_id)
        .group_by(Question.creator_id, User.first_name, User.last_name, User.email)
        .order_by(questions_asked.desc(), Question.creator_id)
        .limit(MOST_ACTIVE_LIMIT)
    )
    result = await db.execute(query)

    return SimpleTableOutput(
        columns=[
            TableColumn(title="Name", data_index="name", key="name"),
            TableColumn(title="Questions Asked", data_index="questionsAsked", key="questionsAsked"),
        ],
        data_source=[dict(row) for row in result.mappings().all()],
    )


async def question_type_breakdown(db: AsyncSession, filters: list[Filter]) -> BarChartOutput:
    """Question count per type; types nobody picked show up with zero."""
    query = apply_filters(
        select(
            Question.question_type.label("questionType"),
            func.count(Question.id).label("totalQuestions"),
        )
        .select_from(Question)
        .where(Question.question_type.is_not(None)),
        EntityKind.QUESTION,
        QUESTION_FILTERS,
        filters,
    )
    result = await db.execute(query.group_by(Question.question_type))

    counts = {QuestionType(row.questionType).value: int(row.totalQuestions) for row in result.all()}
    for question_type in QuestionType:
        counts.setdefault(question_type.value, 0)

    return BarChartOutput(
        data=[
            {"questionType": name, "totalQuestions": counts[name]}
            for name in sorted(counts)
        ],
        x_field="totalQuestions",
        y_field="questionType",
        series_field="questionType",
        x_axis_name="totalQuestions",
        y_axis_name="questionType",
    )


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

def _format_median_minutes(samples: list[float]) -> str:
    if not samples:
        return "0 min"
    return f"{round_half_up(median(samples))} min"


async def median_wait_time(db: AsyncSession, filters: list[Filter]) -> SimpleDisplayOutput:
    """Median time from joining the queue to first getting help."""
    query = apply_filters(
        select(Question.created_at, Question.first_helped_at)
        .select_from(Question)
        .where(Question.first_helped_at.is_not(None)),
        EntityKind.QUESTION,
        QUESTION_FILTERS,
        filters,
    )
    result = await db.execute(query)
    waits = [elapsed_minutes(row.created_at, row.first_helped_at) for row in result.all()]
    return SimpleDisplayOutput(value=_format_median_minutes(waits))


async def median_helping_time(db: AsyncSession, filters: list[Filter]) -> SimpleDisplayOutput:
    """Median time a TA spends on a question, from the last pick-up to close."""
    query = apply_filters(
        select(Question.helped_at, Question.closed_at)
        .select_from(Question)
        .where(Question.helped_at.is_not(None), Question.closed_at.is_not(None)),
        EntityKind.QUESTION,
        QUESTION_FILTERS,
        filters,
    )
    result = await db.execute(query)
    helps = [elapsed_minutes(row.helped_at, row.closed_at) for row in result.all()]
    return SimpleDisplayOutput(value=_format_median_minutes(helps))
