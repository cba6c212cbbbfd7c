"""Insight filters: per-entity predicates and the whitelist-driven engine.

A filter is a tagged record such as ``{"type": "courseId", "courseId": 3}``.
Each entity kind an insight can query has its own table of predicates, keyed
by filter type.  A predicate narrows a ``Select`` and never widens it;
applied predicates compose with AND.

``apply_filters`` only dispatches filters whose type the calling insight
accepts.  Anything else in the request is dropped without error, so an
insight never reacts to a restriction it did not declare.
"""

import enum
import logging
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Select
from sqlalchemy.sql import FromClause

from officehours.models.course import Role, UserCourse
from officehours.models.question import Question
from officehours.models.queue import Queue

logger = logging.getLogger(__name__)

COURSE_ID = "courseId"
TIMEFRAME = "timeframe"
ROLE = "role"


class FilterConfigurationError(Exception):
    """An insight accepts a filter type the predicate library does not implement."""


class EntityKind(str, enum.Enum):
    QUESTION = "question"
    ENROLLMENT = "enrollment"


class Filter(BaseModel):
    """A request-scoped restriction; parameters ride along as extra fields."""
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str

    def param(self, name: str) -> Any:
        extra = self.model_extra or {}
        if name not in extra:
            raise ValueError(f"Filter '{self.type}' is missing parameter '{name}'")
        return extra[name]


Predicate = Callable[[Select, Filter], Select]


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _has_from(query: Select, table: FromClause) -> bool:
    return any(f.is_derived_from(table) for f in query.get_final_froms())


# ── Question predicates ──────────────────────────────────────

def _question_course(query: Select, f: Filter) -> Select:
    if not _has_from(query, Queue.__table__):
        query = query.join(Queue, Question.queue_id == Queue.id)
    return query.where(Queue.course_id == int(f.param("courseId")))


def _question_timeframe(query: Select, f: Filter) -> Select:
    return query.where(
        Question.created_at >= _as_datetime(f.param("start")),
        Question.created_at < _as_datetime(f.param("end")),
    )


# ── Enrollment predicates ────────────────────────────────────

def _enrollment_course(query: Select, f: Filter) -> Select:
    return query.where(UserCourse.course_id == int(f.param("courseId")))


def _enrollment_role(query: Select, f: Filter) -> Select:
    return query.where(UserCourse.role == Role(f.param("role")))


FILTER_PREDICATES: dict[EntityKind, dict[str, Predicate]] = {
    EntityKind.QUESTION: {
        COURSE_ID: _question_course,
        TIMEFRAME: _question_timeframe,
    },
    EntityKind.ENROLLMENT: {
        COURSE_ID: _enrollment_course,
        ROLE: _enrollment_role,
    },
}


def _predicate_for(entity: EntityKind, filter_type: str) -> Predicate:
    predicates = FILTER_PREDICATES.get(entity)
    if predicates is None:
        raise FilterConfigurationError(f"No filter predicates registered for entity '{entity}'")
    predicate = predicates.get(filter_type)
    if predicate is None:
        raise FilterConfigurationError(
            f"Filter type '{filter_type}' has no predicate for entity '{entity.value}'"
        )
    return predicate


def validate_allowed_filters(entity: EntityKind, allowed_filters: tuple[str, ...]) -> None:
    """Fail if any allowed filter type lacks a predicate for ``entity``."""
    for filter_type in allowed_filters:
        _predicate_for(entity, filter_type)


def apply_filters(
    query: Select,
    entity: EntityKind,
    allowed_filters: tuple[str, ...],
    filters: list[Filter],
) -> Select:
    """Narrow ``query`` by every whitelisted filter, in the order given.

    Duplicate filters of one type are all applied.  The query is built, never
    executed.
    """
    if entity not in FILTER_PREDICATES:
        raise FilterConfigurationError(f"No filter predicates registered for entity '{entity}'")

    for f in filters:
        if f.type not in allowed_filters:
            logger.debug("Ignoring filter '%s' not accepted for %s queries", f.type, entity.value)
            continue
        query = _predicate_for(entity, f.type)(query, f)
    return query
