"""Course and enrollment models."""

import enum
from datetime import datetime

from sqlalchemy import String, Boolean, Enum, DateTime, ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehours.database import Base


class Role(str, enum.Enum):
    STUDENT = "student"
    TA = "ta"
    PROFESSOR = "professor"


STAFF_ROLES = (Role.TA, Role.PROFESSOR)


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    section_group_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    enrollments = relationship("UserCourse", back_populates="course", cascade="all, delete-orphan")
    queues = relationship("Queue", back_populates="course")


class UserCourse(Base):
    """Enrollment of a user in a course, with their role in that course."""
    __tablename__ = "user_courses"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_user_course"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False, index=True)
    role: Mapped[Role] = mapped_column(
        Enum(Role, values_callable=lambda e: [m.value for m in e]),
        default=Role.STUDENT, nullable=False,
    )

    user = relationship("User", back_populates="courses")
    course = relationship("Course", back_populates="enrollments")
