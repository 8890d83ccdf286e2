"""Exam cycle schemas."""

from datetime import date, timedelta

from pydantic import Field, field_validator, model_validator

from app.schemas.common import BaseSchema, TimestampSchema
from app.schemas.weekly_exam import WeeklyExamResponse

# A cycle spans three weeks: end = start + 20 days (21 calendar days inclusive)
CYCLE_SPAN_DAYS = 20


# ==========================================
# Exam Cycle Schemas
# ==========================================

class ExamCycleBase(BaseSchema):
    """Fields an operator sets on a cycle."""

    exam_type: str = Field(..., min_length=1, max_length=20, description="JEE, NEET, BITSAT or another exam type")
    cycle_number: int = Field(1, ge=1)
    start_date: date
    end_date: date | None = Field(None, description="Defaults to start_date + 20 days")

    @field_validator("exam_type")
    @classmethod
    def normalize_exam_type(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def fill_end_date(self):
        if self.end_date is None:
            self.end_date = self.start_date + timedelta(days=CYCLE_SPAN_DAYS)
        return self


class ExamCycleCreate(ExamCycleBase):
    """Exam cycle creation schema."""

    created_by: str | None = Field(None, max_length=255)


class ExamCycleUpdate(ExamCycleBase):
    """Full replacement of a cycle's editable fields (activation is separate)."""


class CycleWeek(BaseSchema):
    """One of the three 7-day windows of a cycle."""

    week_number: int
    start_date: date
    end_date: date
    state: str  # done | active | upcoming


class ExamCycleResponse(TimestampSchema):
    """Exam cycle response with progress derived at read time."""

    id: int
    exam_type: str
    cycle_number: int
    start_date: date
    end_date: date
    is_active: bool
    created_by: str | None
    label: str
    progress: int
    current_week: int
    is_completed: bool
    is_upcoming: bool
    weeks: list[CycleWeek]


class CycleSuggestion(BaseSchema):
    """Prefilled values for the next cycle in the rotation. Every field may be overridden."""

    exam_type: str
    cycle_number: int
    start_date: date
    end_date: date


class RotationSlot(BaseSchema):
    """Position of one exam type in the rotation."""

    exam_type: str
    is_active: bool
    active_cycle_id: int | None = None


class RotationOverview(BaseSchema):
    """Rotation order with the currently running programs."""

    rotation: list[RotationSlot]
    next_exam_type: str


# ==========================================
# Cycle Schedule
# ==========================================

class CycleWeekSchedule(BaseSchema):
    """Weekly exams planned for one week of a cycle."""

    week_number: int
    start_date: date
    end_date: date
    exams: list[WeeklyExamResponse]


class CycleScheduleResponse(BaseSchema):
    """A cycle with its weekly exams grouped by week."""

    cycle: ExamCycleResponse
    weeks: list[CycleWeekSchedule]
    unassigned: list[WeeklyExamResponse] = []
