"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response/request model exchanged with the dashboard in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Insights ──────────────────────────────────────────

class InsightMetadataResponse(CamelModel):
    name: str
    display_name: str
    description: str
    component: str
    size: str
    roles: list[str]
    allowed_filters: list[str] = []


class InsightValueResponse(InsightMetadataResponse):
    output: Any


class InsightToggleRequest(CamelModel):
    insight_name: str = Field(min_length=1)


# ── Profile ───────────────────────────────────────────

class CourseEnrollmentResponse(CamelModel):
    course_id: int
    course_name: str
    role: str


class ProfileResponse(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    name: str
    photo_url: Optional[str] = None
    courses: list[CourseEnrollmentResponse] = []
    insights: list[str] = []


# ── Queues ────────────────────────────────────────────

class UserSummary(CamelModel):
    id: int
    name: str
    photo_url: Optional[str] = None


class QuestionResponse(CamelModel):
    id: int
    queue_id: int
    text: Optional[str] = None
    question_type: Optional[str] = None
    status: str
    group_able: bool = False
    location: Optional[str] = None
    creator: Optional[UserSummary] = None
    ta_helped: Optional[UserSummary] = None
    created_at: datetime
    first_helped_at: Optional[datetime] = None
    helped_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class QueueResponse(CamelModel):
    id: int
    course_id: int
    room: str
    notes: Optional[str] = None
    allow_questions: bool
    is_professor_queue: bool
    queue_size: int = 0
    questions: list[QuestionResponse] = []


class QueueNotesUpdate(CamelModel):
    notes: Optional[str] = Field(None, max_length=2000)
