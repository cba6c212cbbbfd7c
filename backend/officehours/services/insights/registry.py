"""Insight registry: the fixed catalogue of insights and the entry point to compute one.

Definitions are built once at import.  Constructing a definition checks that
every filter type it accepts has a predicate for the entity it queries, so a
misconfigured insight stops the process from starting instead of failing on
the first request that uses the filter.
"""

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from officehours.models.course import Role
from officehours.services.insights import computations
from officehours.services.insights.filters import (
    EntityKind,
    Filter,
    validate_allowed_filters,
)
from officehours.services.insights.outputs import (
    InsightComponent,
    InsightOutput,
    InsightSize,
)

logger = logging.getLogger(__name__)

ComputeFn = Callable[[AsyncSession, list[Filter]], Awaitable[InsightOutput]]


class InsightError(Exception):
    """Base exception for insight lookup and computation errors."""


class InsightNotFoundError(InsightError):
    """No insight is registered under the requested name."""


class InsightForbiddenError(InsightError):
    """The caller's role may not request this insight."""


class InsightContractError(InsightError):
    """A compute function returned a shape other than its declared component."""


@dataclass(frozen=True)
class InsightDefinition:
    name: str
    display_name: str
    description: str
    roles: frozenset[Role]
    component: InsightComponent
    size: InsightSize
    compute: ComputeFn = field(repr=False)
    # None for insights derived only from other insights
    entity: Optional[EntityKind] = None
    allowed_filters: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.entity is not None:
            validate_allowed_filters(self.entity, self.allowed_filters)

    def metadata(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "component": self.component.value,
            "size": self.size.value,
            "roles": sorted(role.value for role in self.roles),
            "allowed_filters": list(self.allowed_filters),
        }


PROFESSOR_ONLY = frozenset({Role.PROFESSOR})

_DEFINITIONS = (
    InsightDefinition(
        name="TotalStudents",
        display_name="Total Students",
        description="What is the total number of students that are enrolled in the course?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_DISPLAY,
        size=InsightSize.SMALL,
        compute=computations.total_students,
        entity=EntityKind.ENROLLMENT,
        allowed_filters=computations.ENROLLMENT_FILTERS,
    ),
    InsightDefinition(
        name="TotalQuestionsAsked",
        display_name="Total Questions",
        description="How many questions have been asked in total?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_DISPLAY,
        size=InsightSize.SMALL,
        compute=computations.total_questions_asked,
        entity=EntityKind.QUESTION,
        allowed_filters=computations.QUESTION_FILTERS,
    ),
    InsightDefinition(
        name="MedianWaitTime",
        display_name="Median Wait Time",
        description="What is the median wait time for a student to get help in the queue?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_DISPLAY,
        size=InsightSize.SMALL,
        compute=computations.median_wait_time,
        entity=EntityKind.QUESTION,
        allowed_filters=computations.QUESTION_FILTERS,
    ),
    InsightDefinition(
        name="QuestionTypeBreakdown",
        display_name="Question Type Breakdown",
        description="What is the distribution of student-selected question-types on the question form?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.BAR_CHART,
        size=InsightSize.DEFAULT,
        compute=computations.question_type_breakdown,
        entity=EntityKind.QUESTION,
        allowed_filters=computations.QUESTION_FILTERS,
    ),
    InsightDefinition(
        name="MostActiveStudents",
        display_name="Most Active Students",
        description=(
            "Who are the students who have asked the most questions in Office Hours? "
            f"(limit {computations.MOST_ACTIVE_LIMIT})"
        ),
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_TABLE,
        size=InsightSize.DEFAULT,
        compute=computations.most_active_students,
        entity=EntityKind.QUESTION,
        allowed_filters=computations.QUESTION_FILTERS,
    ),
    InsightDefinition(
        name="QuestionToStudentRatio",
        display_name="Questions per Student",
        description="How many questions were asked per student?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_DISPLAY,
        size=InsightSize.SMALL,
        compute=computations.question_to_student_ratio,
        # Filters pass through to TotalQuestionsAsked and TotalStudents; advertised, not applied here
        allowed_filters=tuple(dict.fromkeys(computations.QUESTION_FILTERS + computations.ENROLLMENT_FILTERS)),
    ),
    InsightDefinition(
        name="MedianHelpingTime",
        display_name="Median Helping Time",
        description="What is the median duration that a TA helps a student on a call?",
        roles=PROFESSOR_ONLY,
        component=InsightComponent.SIMPLE_DISPLAY,
        size=InsightSize.SMALL,
        compute=computations.median_helping_time,
        entity=EntityKind.QUESTION,
        allowed_filters=computations.QUESTION_FILTERS,
    ),
)


def _build_registry(definitions) -> Mapping[str, InsightDefinition]:
    registry: dict[str, InsightDefinition] = {}
    for definition in definitions:
        if definition.name in registry:
            raise ValueError(f"Duplicate insight name '{definition.name}'")
        registry[definition.name] = definition
    return MappingProxyType(registry)


INSIGHTS = _build_registry(_DEFINITIONS)


def get_insight(name: str) -> InsightDefinition:
    try:
        return INSIGHTS[name]
    except KeyError:
        raise InsightNotFoundError(f"Insight '{name}' does not exist") from None


def list_insights() -> dict[str, dict]:
    """Metadata for every registered insight, keyed by name. Computes nothing."""
    return {name: definition.metadata() for name, definition in INSIGHTS.items()}


def _coerce_role(role: Role | str | None) -> Role | None:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


async def compute_insight(
    db: AsyncSession,
    name: str,
    role: Role | str | None,
    filters: list[Filter],
) -> InsightOutput:
    """Resolve, authorize and compute one insight.

    The role check happens before any query is issued.  Database errors
    propagate unchanged.
    """
    insight = get_insight(name)
    caller_role = _coerce_role(role)
    if caller_role not in insight.roles:
        raise InsightForbiddenError(
            f"Role '{caller_role.value if caller_role else role}' may not view insight '{name}'"
        )

    started = time.perf_counter()
    output = await insight.compute(db, filters)
    if output.component != insight.component.value:
        raise InsightContractError(
            f"Insight '{name}' declared {insight.component.value} but produced {output.component}"
        )
    logger.info(
        "Computed insight %s with %d filter(s) in %.1f ms",
        name, len(filters), (time.perf_counter() - started) * 1000,
    )
    return output
