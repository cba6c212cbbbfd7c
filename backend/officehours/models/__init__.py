"""SQLAlchemy models for the office-hours application."""

from officehours.models.user import User
from officehours.models.course import Course, UserCourse, Role, STAFF_ROLES
from officehours.models.queue import Queue
from officehours.models.question import (
    Question,
    QuestionType,
    OpenQuestionStatus,
    ClosedQuestionStatus,
    OPEN_STATUSES,
)
from officehours.models.error_log import ErrorLog, ErrorSeverity

__all__ = [
    "User",
    # Courses
    "Course",
    "UserCourse",
    "Role",
    "STAFF_ROLES",
    # Queues
    "Queue",
    "Question",
    "QuestionType",
    "OpenQuestionStatus",
    "ClosedQuestionStatus",
    "OPEN_STATUSES",
    # Error Monitoring
    "ErrorLog",
    "ErrorSeverity",
]
