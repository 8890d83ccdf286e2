"""Exam cycle service for the JEE -> NEET -> BITSAT rotation.

Progress and the current week are never stored: they are derived from the
cycle dates and the caller's notion of "now" every time a cycle is read.
"""

import logging
import math
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.exam_cycle import ExamCycle, ExamType
from app.schemas.exam_cycle import (
    CYCLE_SPAN_DAYS,
    CycleScheduleResponse,
    CycleSuggestion,
    CycleWeek,
    CycleWeekSchedule,
    ExamCycleBase,
    ExamCycleCreate,
    ExamCycleResponse,
    ExamCycleUpdate,
    RotationOverview,
    RotationSlot,
)
from app.services.weekly_exam import WeeklyExamService

logger = logging.getLogger(__name__)

ROTATION_ORDER: list[str] = [ExamType.JEE.value, ExamType.NEET.value, ExamType.BITSAT.value]
DAYS_PER_WEEK = 7
WEEKS_PER_CYCLE = 3


# ==========================================
# Rotation and progress
# ==========================================

def next_exam_type(last_type: str | None) -> str:
    """Exam type that follows last_type in the rotation, wrapping around.

    No previous type, or a type outside the rotation, starts again at JEE.
    """
    if not last_type:
        return ROTATION_ORDER[0]
    try:
        idx = ROTATION_ORDER.index(last_type.upper())
    except ValueError:
        idx = -1
    return ROTATION_ORDER[(idx + 1) % len(ROTATION_ORDER)]


def _created_key(cycle: ExamCycle) -> tuple[datetime, int]:
    created = cycle.created_at or datetime.min
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created, cycle.id or 0


def suggest_next_cycle(cycles: Sequence[ExamCycle], today: date) -> CycleSuggestion:
    """Prefill the next cycle from the most recently created one."""
    last_cycle = max(cycles, key=_created_key) if cycles else None
    exam_type = next_exam_type(last_cycle.exam_type if last_cycle else None)

    if last_cycle and last_cycle.exam_type == exam_type:
        cycle_number = last_cycle.cycle_number + 1
    else:
        cycle_number = sum(1 for c in cycles if c.exam_type == exam_type) + 1

    start_date = last_cycle.end_date + timedelta(days=1) if last_cycle else today
    return CycleSuggestion(
        exam_type=exam_type,
        cycle_number=cycle_number,
        start_date=start_date,
        end_date=start_date + timedelta(days=CYCLE_SPAN_DAYS),
    )


def _as_datetime(value: date | datetime) -> datetime:
    # Dates count from midnight; aware datetimes are read as local wall-clock time
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, datetime.min.time())


def cycle_progress(cycle: ExamCycle, now: date | datetime) -> int:
    """Percentage of the cycle elapsed at `now`, 0..100."""
    start = _as_datetime(cycle.start_date)
    end = _as_datetime(cycle.end_date)
    current = _as_datetime(now)
    if current <= start:
        return 0
    if current >= end:
        return 100
    ratio = (current - start) / (end - start)
    return math.floor(ratio * 100 + 0.5)


def cycle_current_week(cycle: ExamCycle, now: date | datetime) -> int:
    """Week of the cycle at `now`: 0 before it starts, then 1..3 (capped)."""
    start = _as_datetime(cycle.start_date)
    current = _as_datetime(now)
    if current < start:
        return 0
    days = (current - start).days
    return min(days // DAYS_PER_WEEK + 1, WEEKS_PER_CYCLE)


def cycle_week_ranges(cycle: ExamCycle) -> list[tuple[int, date, date]]:
    """The 7-day windows of a cycle; week 3 runs to end_date.

    Weeks that would start after end_date are left out of short cycles.
    """
    weeks = []
    for week in range(1, WEEKS_PER_CYCLE + 1):
        week_start = cycle.start_date + timedelta(days=DAYS_PER_WEEK * (week - 1))
        if week_start > cycle.end_date:
            break
        if week == WEEKS_PER_CYCLE:
            week_end = cycle.end_date
        else:
            week_end = min(week_start + timedelta(days=DAYS_PER_WEEK - 1), cycle.end_date)
        weeks.append((week, week_start, week_end))
    return weeks


def local_now() -> datetime:
    """Current wall-clock time in the configured school timezone (naive)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


# ==========================================
# Service
# ==========================================

class ExamCycleService:
    """Exam cycle management service."""

    def __init__(self, db: Session):
        self.db = db

    def cycle_to_response(self, cycle: ExamCycle, now: datetime | None = None) -> ExamCycleResponse:
        """Convert ExamCycle to response with progress computed at `now`."""
        now = now or local_now()
        progress = cycle_progress(cycle, now)
        current_week = cycle_current_week(cycle, now)

        weeks = []
        for week, week_start, week_end in cycle_week_ranges(cycle):
            if progress >= 100 or current_week > week:
                state = "done"
            elif current_week == week:
                state = "active"
            else:
                state = "upcoming"
            weeks.append(CycleWeek(week_number=week, start_date=week_start, end_date=week_end, state=state))

        return ExamCycleResponse.model_validate({
            "id": cycle.id,
            "exam_type": cycle.exam_type,
            "cycle_number": cycle.cycle_number,
            "start_date": cycle.start_date,
            "end_date": cycle.end_date,
            "is_active": cycle.is_active,
            "created_by": cycle.created_by,
            "label": cycle.label,
            "progress": progress,
            "current_week": current_week,
            "is_completed": progress >= 100,
            "is_upcoming": progress == 0 and not cycle.is_active,
            "weeks": weeks,
            "created_at": cycle.created_at,
            "updated_at": cycle.updated_at,
        })

    def create_cycle(self, request: ExamCycleCreate) -> ExamCycleResponse:
        """Create an inactive cycle."""
        self._validate_dates(request)

        cycle = ExamCycle(
            exam_type=request.exam_type,
            cycle_number=request.cycle_number,
            start_date=request.start_date,
            end_date=request.end_date,
            is_active=False,
            created_by=request.created_by,
        )
        self.db.add(cycle)
        self.db.flush()
        self.db.refresh(cycle)

        logger.info(f"Exam cycle {cycle.id} created: {cycle.label} {cycle.start_date}..{cycle.end_date}")
        return self.cycle_to_response(cycle)

    def get_cycle(self, cycle_id: int) -> ExamCycle:
        """Get exam cycle by ID."""
        result = self.db.execute(select(ExamCycle).where(ExamCycle.id == cycle_id))
        cycle = result.scalar_one_or_none()
        if not cycle:
            raise NotFoundError("Exam cycle", str(cycle_id))
        return cycle

    def list_cycles(
        self,
        exam_type: str | None = None,
        is_active: bool | None = None,
        now: datetime | None = None,
    ) -> list[ExamCycleResponse]:
        """List cycles, most recently created first."""
        query = select(ExamCycle)
        if exam_type:
            query = query.where(ExamCycle.exam_type == exam_type.upper())
        if is_active is not None:
            query = query.where(ExamCycle.is_active == is_active)
        query = query.order_by(ExamCycle.created_at.desc(), ExamCycle.id.desc())

        cycles = self.db.execute(query).scalars().all()
        now = now or local_now()
        return [self.cycle_to_response(c, now) for c in cycles]

    def suggest_next(self, today: date | None = None) -> CycleSuggestion:
        """Suggest the next cycle in the rotation from all existing cycles."""
        cycles = self.db.execute(select(ExamCycle)).scalars().all()
        return suggest_next_cycle(cycles, today or local_now().date())

    def update_cycle(self, cycle_id: int, request: ExamCycleUpdate) -> ExamCycleResponse:
        """Replace a cycle's type, number and dates. Activation is unchanged."""
        self._validate_dates(request)
        cycle = self.get_cycle(cycle_id)

        type_changed = cycle.exam_type != request.exam_type
        cycle.exam_type = request.exam_type
        cycle.cycle_number = request.cycle_number
        cycle.start_date = request.start_date
        cycle.end_date = request.end_date

        # An active cycle moved to another type must not clash with that type's active cycle
        if cycle.is_active and type_changed:
            self._deactivate_others(cycle)

        self.db.flush()
        self.db.refresh(cycle)
        return self.cycle_to_response(cycle)

    def activate_cycle(self, cycle_id: int) -> ExamCycleResponse:
        """Activate a cycle, deactivating every other cycle of the same exam type.

        Cycles of other exam types keep their state.
        """
        cycle = self.get_cycle(cycle_id)
        self._deactivate_others(cycle)
        cycle.is_active = True
        self.db.flush()
        self.db.refresh(cycle)

        logger.info(f"Exam cycle {cycle_id} activated ({cycle.label})")
        return self.cycle_to_response(cycle)

    def deactivate_cycle(self, cycle_id: int) -> ExamCycleResponse:
        cycle = self.get_cycle(cycle_id)
        cycle.is_active = False
        self.db.flush()
        self.db.refresh(cycle)

        logger.info(f"Exam cycle {cycle_id} deactivated ({cycle.label})")
        return self.cycle_to_response(cycle)

    def delete_cycle(self, cycle_id: int) -> None:
        """Delete a cycle. Weekly exams that pointed at it keep existing without a cycle."""
        cycle = self.get_cycle(cycle_id)
        detached = list(cycle.weekly_exams)
        for exam in detached:
            exam.cycle = None
        self.db.delete(cycle)
        self.db.flush()
        logger.info(f"Exam cycle {cycle_id} deleted, {len(detached)} weekly exams detached")

    def get_rotation(self) -> RotationOverview:
        """Rotation order, which types have an active cycle, and what comes next."""
        cycles = self.db.execute(select(ExamCycle)).scalars().all()
        active = {c.exam_type: c.id for c in cycles if c.is_active}
        last_cycle = max(cycles, key=_created_key) if cycles else None

        return RotationOverview(
            rotation=[
                RotationSlot(
                    exam_type=exam_type,
                    is_active=exam_type in active,
                    active_cycle_id=active.get(exam_type),
                )
                for exam_type in ROTATION_ORDER
            ],
            next_exam_type=next_exam_type(last_cycle.exam_type if last_cycle else None),
        )

    def get_cycle_schedule(self, cycle_id: int, now: datetime | None = None) -> CycleScheduleResponse:
        """Weekly exams of a cycle grouped into its weeks."""
        cycle = self.get_cycle(cycle_id)
        exam_service = WeeklyExamService(self.db)
        exams = exam_service.list_cycle_exams(cycle_id)

        weeks = []
        for week, week_start, week_end in cycle_week_ranges(cycle):
            weeks.append(CycleWeekSchedule(
                week_number=week,
                start_date=week_start,
                end_date=week_end,
                exams=[exam_service.exam_to_response(e) for e in exams if e.week_number == week],
            ))

        # Short cycles have fewer weeks; exams planned past the last one are unassigned
        planned_weeks = {w.week_number for w in weeks}
        return CycleScheduleResponse(
            cycle=self.cycle_to_response(cycle, now),
            weeks=weeks,
            unassigned=[
                exam_service.exam_to_response(e)
                for e in exams
                if e.week_number not in planned_weeks
            ],
        )

    # ==========================================
    # Helper Methods
    # ==========================================

    def _validate_dates(self, request: ExamCycleBase) -> None:
        if request.end_date < request.start_date:
            raise ValidationError(
                f"end_date ({request.end_date}) is before start_date ({request.start_date})"
            )

    def _deactivate_others(self, cycle: ExamCycle) -> None:
        self.db.execute(
            update(ExamCycle)
            .where(
                ExamCycle.exam_type == cycle.exam_type,
                ExamCycle.id != cycle.id,
                ExamCycle.is_active.is_(True),
            )
            .values(is_active=False)
        )
