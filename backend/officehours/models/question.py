"""Question model: one student's request for help in a queue.

Timestamps track the question's life: ``created_at`` when the student joins
the queue, ``first_helped_at`` the first time a TA picks it up,
``helped_at`` the most recent pick-up, ``closed_at`` when it leaves the queue.
"""

import enum
from datetime import datetime

from sqlalchemy import String, Boolean, Enum, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehours.database import Base


class QuestionType(str, enum.Enum):
    BUG = "Bug"
    CLARIFICATION = "Clarification"
    CONCEPT = "Concept"
    OTHER = "Other"
    SETUP = "Setup"
    TESTING = "Testing"


class OpenQuestionStatus(str, enum.Enum):
    DRAFTING = "Drafting"
    QUEUED = "Queued"
    HELPING = "Helping"
    PRIORITY_QUEUED = "PriorityQueued"


class ClosedQuestionStatus(str, enum.Enum):
    RESOLVED = "Resolved"
    CANT_FIND = "CantFind"
    CONFIRMED_DELETED = "ConfirmedDeleted"
    STALE = "Stale"
    DELETED = "Deleted"


OPEN_STATUSES = [s.value for s in OpenQuestionStatus]


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    queue_id: Mapped[int] = mapped_column(ForeignKey("queues.id"), nullable=False, index=True)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    ta_helped_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_type: Mapped[QuestionType | None] = mapped_column(
        Enum(QuestionType, values_callable=lambda e: [m.value for m in e]),
        nullable=True, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(30), default=OpenQuestionStatus.DRAFTING.value, nullable=False, index=True,
    )
    group_able: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True,
    )
    first_helped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    helped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    queue = relationship("Queue", back_populates="questions")
    creator = relationship("User", back_populates="questions", foreign_keys=[creator_id])
    ta_helped = relationship("User", foreign_keys=[ta_helped_id])
