"""Exam marks and downstream exam-taking models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class ExamMark(Base, IDMixin, TimestampMixin):
    """Marks entered by a teacher for one student in one weekly exam."""

    __tablename__ = "exam_marks"

    exam_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("weekly_exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    marks_obtained: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(10), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam: Mapped["WeeklyExam"] = relationship("WeeklyExam", back_populates="marks")
    student: Mapped["Student"] = relationship("Student", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_mark_student"),
    )

    def __repr__(self) -> str:
        return f"<ExamMark(exam_id={self.exam_id}, student_id={self.student_id})>"


# ==========================================
# Downstream exam-taking data (read-only here)
# ==========================================

class QuestionPaper(Base, IDMixin, TimestampMixin):
    """Question paper uploaded for a weekly exam."""

    __tablename__ = "question_papers"

    exam_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("weekly_exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    total_marks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="question_paper",
        order_by="Question.question_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<QuestionPaper(id={self.id}, exam_id={self.exam_id})>"


class Question(Base, IDMixin, TimestampMixin):
    """A question in a question paper."""

    __tablename__ = "questions"

    question_paper_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("question_papers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False, default="mcq")
    marks: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    option_a: Mapped[str | None] = mapped_column(Text, nullable=True)
    option_b: Mapped[str | None] = mapped_column(Text, nullable=True)
    option_c: Mapped[str | None] = mapped_column(Text, nullable=True)
    option_d: Mapped[str | None] = mapped_column(Text, nullable=True)

    question_paper: Mapped["QuestionPaper"] = relationship("QuestionPaper", back_populates="questions")


class StudentExamResult(Base, IDMixin, TimestampMixin):
    """Score produced by the exam-taking pipeline for one student."""

    __tablename__ = "student_exam_results"

    exam_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("weekly_exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    obtained_marks: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False, default=Decimal("0"))
    total_marks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage: Mapped[Decimal | None] = mapped_column(DECIMAL(6, 2), nullable=True)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped["Student"] = relationship("Student", lazy="selectin")
