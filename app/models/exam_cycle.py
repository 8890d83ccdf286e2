"""Competitive exam cycle model."""

import enum
from datetime import date

from sqlalchemy import Boolean, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class ExamType(str, enum.Enum):
    """Known competitive exam types. Stored as plain strings so new types need no migration."""

    JEE = "JEE"
    NEET = "NEET"
    BITSAT = "BITSAT"


class ExamCycle(Base, IDMixin, TimestampMixin):
    """A three-week competitive exam program for one exam type."""

    __tablename__ = "exam_cycles"

    exam_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    cycle_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # No delete cascade: removing a cycle nulls weekly_exams.cycle_id
    weekly_exams: Mapped[list["WeeklyExam"]] = relationship(
        "WeeklyExam",
        back_populates="cycle",
    )

    __table_args__ = (
        Index("ix_exam_cycles_type_active", "exam_type", "is_active"),
    )

    @property
    def label(self) -> str:
        return f"{self.exam_type} - Cycle #{self.cycle_number}"

    def __repr__(self) -> str:
        return f"<ExamCycle(id={self.id}, type={self.exam_type}, number={self.cycle_number})>"
