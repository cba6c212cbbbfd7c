"""User model for students, TAs and professors."""

from datetime import datetime

from sqlalchemy import String, JSON, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehours.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Insight names pinned to the user's dashboard, in display order
    insights: Mapped[list | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    # Relationships
    courses = relationship("UserCourse", back_populates="user", cascade="all, delete-orphan")
    questions = relationship(
        "Question", back_populates="creator", foreign_keys="[Question.creator_id]",
    )

    # ── Helpers ──────────────────────────────────────────

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"
