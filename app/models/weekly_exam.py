"""Weekly exam and exam-syllabus link models."""

import enum
from datetime import date, time
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    BigInteger,
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class SyllabusType(str, enum.Enum):
    """Which syllabus track an exam or topic belongs to."""

    GENERAL = "general"
    COMPETITIVE = "competitive"


class ExamStatus(str, enum.Enum):
    """Weekly exam lifecycle: scheduled -> live -> completed."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"

    @property
    def next_status(self) -> "ExamStatus | None":
        """The only status this one may advance to (None when terminal)."""
        return _NEXT_STATUS.get(self)

    def can_advance_to(self, target: "ExamStatus") -> bool:
        return self.next_status is target


_NEXT_STATUS = {
    ExamStatus.SCHEDULED: ExamStatus.LIVE,
    ExamStatus.LIVE: ExamStatus.COMPLETED,
}


class WeeklyExam(Base, IDMixin, TimestampMixin):
    """A single scheduled test for one class, optionally inside an exam cycle."""

    __tablename__ = "weekly_exams"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    syllabus_type: Mapped[SyllabusType] = mapped_column(
        Enum(SyllabusType),
        default=SyllabusType.GENERAL,
        nullable=False,
        index=True,
    )
    cycle_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("exam_cycles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    exam_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    exam_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(9, 0))
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    total_marks: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    negative_marking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    negative_marks_value: Mapped[Decimal] = mapped_column(
        DECIMAL(6, 2), nullable=False, default=Decimal("0")
    )
    reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[ExamStatus] = mapped_column(
        Enum(ExamStatus),
        default=ExamStatus.SCHEDULED,
        nullable=False,
        index=True,
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    class_section: Mapped["ClassSection"] = relationship("ClassSection", lazy="selectin")
    cycle: Mapped["ExamCycle | None"] = relationship(
        "ExamCycle",
        back_populates="weekly_exams",
        lazy="selectin",
    )
    syllabus_links: Mapped[list["WeeklyExamSyllabus"]] = relationship(
        "WeeklyExamSyllabus",
        back_populates="exam",
        cascade="all, delete-orphan",
    )
    marks: Mapped[list["ExamMark"]] = relationship(
        "ExamMark",
        back_populates="exam",
        cascade="all, delete-orphan",
    )

    @property
    def class_label(self) -> str:
        return self.class_section.label if self.class_section else ""

    def __repr__(self) -> str:
        return f"<WeeklyExam(id={self.id}, title={self.title}, status={self.status})>"


class WeeklyExamSyllabus(Base, IDMixin, TimestampMixin):
    """Declares that a weekly exam covers a syllabus topic."""

    __tablename__ = "weekly_exam_syllabus"

    exam_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("weekly_exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    syllabus_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("syllabus.id", ondelete="CASCADE"),
        nullable=False,
    )

    exam: Mapped["WeeklyExam"] = relationship("WeeklyExam", back_populates="syllabus_links")
    topic: Mapped["SyllabusTopic"] = relationship("SyllabusTopic", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("exam_id", "syllabus_id", name="uq_weekly_exam_syllabus"),
    )

    def __repr__(self) -> str:
        return f"<WeeklyExamSyllabus(exam_id={self.exam_id}, syllabus_id={self.syllabus_id})>"
