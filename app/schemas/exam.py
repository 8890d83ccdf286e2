"""Exam marks and exam result schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from app.schemas.common import BaseSchema


# ==========================================
# Marks Entry
# ==========================================

class MarkEntry(BaseSchema):
    """Marks for one student. Entries without marks are not saved."""

    student_id: int
    marks_obtained: Decimal | None = None
    grade: str | None = Field(None, max_length=10)
    remarks: str | None = None


class MarksSaveRequest(BaseSchema):
    """The complete marks sheet for an exam; replaces whatever was saved before."""

    entries: list[MarkEntry]


class MarkWarning(BaseSchema):
    """Non-blocking issue found while saving marks."""

    student_id: int
    message: str


class MarksSaveResponse(BaseSchema):
    """Response for a marks save."""

    exam_id: int
    saved: int
    skipped: int
    warnings: list[MarkWarning] = []
    message: str


class StudentMarkEntry(BaseSchema):
    """Student row in a marks sheet."""

    student_id: int
    student_name: str
    admission_number: str | None
    marks_obtained: Decimal | None
    grade: str | None
    remarks: str | None


class ExamMarksSheet(BaseSchema):
    """All students of the exam's class with their marks."""

    exam_id: int
    exam_title: str
    class_label: str
    total_marks: int
    students: list[StudentMarkEntry]
    total_students: int
    marks_entered: int
    average_marks: Decimal | None
    highest_marks: Decimal | None
    lowest_marks: Decimal | None


# ==========================================
# Excel Upload
# ==========================================

class MarksUploadError(BaseSchema):
    """Error found in a marks spreadsheet row."""

    row: int
    student_name: str | None = None
    column: str | None = None
    message: str


class MarksUploadResult(BaseSchema):
    """Result of importing a marks spreadsheet."""

    total_rows: int
    successful_rows: int
    failed_rows: int
    skipped_rows: int
    errors: list[MarksUploadError] = []
    warnings: list[MarkWarning] = []
    message: str


# ==========================================
# Downstream Results
# ==========================================

class QuestionResponse(BaseSchema):
    """Question in a question paper."""

    id: int
    question_number: int
    question_text: str
    question_type: str
    marks: int
    option_a: str | None
    option_b: str | None
    option_c: str | None
    option_d: str | None


class QuestionPaperResponse(BaseSchema):
    """Question paper attached to an exam."""

    id: int
    exam_id: int
    class_id: int
    total_marks: int
    total_questions: int
    questions: list[QuestionResponse]


class StudentExamResultResponse(BaseSchema):
    """A student's result from the exam-taking pipeline."""

    id: int
    exam_id: int
    student_id: int
    student_name: str
    obtained_marks: Decimal
    total_marks: int
    percentage: Decimal | None
    rank: int | None
    grade: str
    submitted_at: datetime | None
