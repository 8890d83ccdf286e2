"""Weekly exam, syllabus link and catalogue schemas."""

from datetime import date, time
from decimal import Decimal

from pydantic import Field, field_validator

from app.models.weekly_exam import ExamStatus, SyllabusType
from app.schemas.common import BaseSchema, TimestampSchema


# ==========================================
# Weekly Exam Schemas
# ==========================================

class WeeklyExamBase(BaseSchema):
    """Mutable fields of a weekly exam."""

    class_id: int = Field(..., description="Class/section database ID")
    syllabus_type: SyllabusType = SyllabusType.GENERAL
    cycle_id: int | None = Field(None, description="Only kept for competitive exams")
    week_number: int | None = Field(None, ge=1, le=3)
    title: str = Field(..., min_length=1, max_length=255)
    exam_date: date
    exam_time: time = time(9, 0)
    duration_minutes: int = Field(60, gt=0)
    total_marks: int = Field(100, gt=0)
    negative_marking: bool = False
    negative_marks_value: Decimal = Field(Decimal("0"), ge=0)
    reminder_enabled: bool = True


class WeeklyExamCreate(WeeklyExamBase):
    """Weekly exam creation schema."""

    created_by: str | None = Field(None, max_length=255)


class WeeklyExamUpdate(WeeklyExamBase):
    """Full replacement of a weekly exam's mutable fields. Status is not editable here."""


class ExamStatusUpdate(BaseSchema):
    """Advance an exam to its next status."""

    status: ExamStatus


class WeeklyExamResponse(TimestampSchema):
    """Weekly exam response schema."""

    id: int
    class_id: int
    class_label: str
    syllabus_type: SyllabusType
    cycle_id: int | None
    cycle_label: str | None
    week_number: int | None
    title: str
    exam_date: date
    exam_time: time
    duration_minutes: int
    total_marks: int
    negative_marking: bool
    negative_marks_value: Decimal
    reminder_enabled: bool
    status: ExamStatus
    next_status: ExamStatus | None
    created_by: str | None


class WeeklyExamFilter(BaseSchema):
    """Weekly exam filtering options. All set filters are combined."""

    syllabus_type: SyllabusType = SyllabusType.GENERAL
    class_id: int | None = None
    cycle_id: int | None = None
    status: ExamStatus | None = None
    search: str | None = None


# ==========================================
# Syllabus Coverage
# ==========================================

class SyllabusAttachRequest(BaseSchema):
    """Replace the full set of topics an exam covers."""

    syllabus_ids: list[int] = []

    @field_validator("syllabus_ids")
    @classmethod
    def dedupe(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(v))


class SyllabusTopicResponse(BaseSchema):
    """Syllabus topic as shown when picking exam coverage."""

    id: int
    class_id: int
    subject_id: int
    subject_name: str | None
    chapter_name: str
    topic_name: str
    syllabus_type: str
    exam_type: str | None
    cycle_id: int | None
    week_number: int | None


class ClassResponse(BaseSchema):
    """Class directory entry."""

    id: int
    name: str
    section: str | None
    label: str
