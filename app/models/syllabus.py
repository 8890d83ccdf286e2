"""Syllabus catalogue model (owned by syllabus management, read here)."""

from datetime import date

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class SyllabusTopic(Base, IDMixin, TimestampMixin):
    """A chapter/topic of a subject taught to one class."""

    __tablename__ = "syllabus"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
    )
    chapter_name: Mapped[str] = mapped_column(String(255), nullable=False)
    topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    syllabus_type: Mapped[str] = mapped_column(String(20), nullable=False, default="general")
    exam_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Planning metadata from syllabus management, displayed only
    cycle_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("exam_cycles.id", ondelete="SET NULL"),
        nullable=True,
    )
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    subject: Mapped["Subject"] = relationship("Subject", lazy="selectin")

    def __repr__(self) -> str:
        return f"<SyllabusTopic(id={self.id}, chapter={self.chapter_name}, topic={self.topic_name})>"
