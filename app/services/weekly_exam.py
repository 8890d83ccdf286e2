"""Weekly exam service: scheduling, status transitions and filtering."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidStatusTransitionError, NotFoundError
from app.models.exam_cycle import ExamCycle
from app.models.student import ClassSection
from app.models.weekly_exam import ExamStatus, SyllabusType, WeeklyExam
from app.schemas.weekly_exam import (
    WeeklyExamBase,
    WeeklyExamCreate,
    WeeklyExamFilter,
    WeeklyExamResponse,
    WeeklyExamUpdate,
)

logger = logging.getLogger(__name__)


def filter_exams(exams: Iterable[WeeklyExam], filters: WeeklyExamFilter) -> list[WeeklyExam]:
    """Apply the exam list filters in memory.

    syllabus_type is always an exact match; class, cycle and status only when
    set. search matches the title or the class label, ignoring case.
    """
    needle = filters.search.lower() if filters.search else None
    matched = []
    for exam in exams:
        if exam.syllabus_type != filters.syllabus_type:
            continue
        if filters.class_id is not None and exam.class_id != filters.class_id:
            continue
        if filters.cycle_id is not None and exam.cycle_id != filters.cycle_id:
            continue
        if filters.status is not None and exam.status != filters.status:
            continue
        if needle:
            class_name = exam.class_section.name.lower() if exam.class_section else ""
            if (
                needle not in exam.title.lower()
                and needle not in class_name
                and needle not in exam.class_label.lower()
            ):
                continue
        matched.append(exam)
    return matched


class WeeklyExamService:
    """Weekly exam management service."""

    def __init__(self, db: Session):
        self.db = db

    def exam_to_response(self, exam: WeeklyExam) -> WeeklyExamResponse:
        """Convert WeeklyExam to response schema."""
        return WeeklyExamResponse.model_validate({
            "id": exam.id,
            "class_id": exam.class_id,
            "class_label": exam.class_label,
            "syllabus_type": exam.syllabus_type,
            "cycle_id": exam.cycle_id,
            "cycle_label": exam.cycle.label if exam.cycle else None,
            "week_number": exam.week_number,
            "title": exam.title,
            "exam_date": exam.exam_date,
            "exam_time": exam.exam_time,
            "duration_minutes": exam.duration_minutes,
            "total_marks": exam.total_marks,
            "negative_marking": exam.negative_marking,
            "negative_marks_value": exam.negative_marks_value,
            "reminder_enabled": exam.reminder_enabled,
            "status": exam.status,
            "next_status": exam.status.next_status,
            "created_by": exam.created_by,
            "created_at": exam.created_at,
            "updated_at": exam.updated_at,
        })

    def create_exam(self, request: WeeklyExamCreate) -> WeeklyExamResponse:
        """Schedule a new weekly exam. New exams always start as scheduled."""
        exam = WeeklyExam(status=ExamStatus.SCHEDULED, created_by=request.created_by)
        self._apply_fields(exam, request)
        self.db.add(exam)
        self.db.flush()
        self.db.refresh(exam)

        logger.info(f"Weekly exam {exam.id} scheduled for class {exam.class_id} on {exam.exam_date}")
        return self.exam_to_response(exam)

    def get_exam(self, exam_id: int) -> WeeklyExam:
        """Get weekly exam by ID."""
        result = self.db.execute(select(WeeklyExam).where(WeeklyExam.id == exam_id))
        exam = result.scalar_one_or_none()
        if not exam:
            raise NotFoundError("Weekly exam", str(exam_id))
        return exam

    def list_exams(self, filters: WeeklyExamFilter | None = None) -> list[WeeklyExamResponse]:
        """List weekly exams, newest exam date first."""
        filters = filters or WeeklyExamFilter()
        query = select(WeeklyExam).where(WeeklyExam.syllabus_type == filters.syllabus_type)
        if filters.class_id is not None:
            query = query.where(WeeklyExam.class_id == filters.class_id)
        if filters.cycle_id is not None:
            query = query.where(WeeklyExam.cycle_id == filters.cycle_id)
        if filters.status is not None:
            query = query.where(WeeklyExam.status == filters.status)
        query = query.order_by(WeeklyExam.exam_date.desc(), WeeklyExam.id.desc())

        exams = self.db.execute(query).scalars().all()
        return [self.exam_to_response(e) for e in filter_exams(exams, filters)]

    def list_cycle_exams(self, cycle_id: int) -> list[WeeklyExam]:
        """Get all exams tied to a cycle, earliest first."""
        result = self.db.execute(
            select(WeeklyExam)
            .where(WeeklyExam.cycle_id == cycle_id)
            .order_by(WeeklyExam.exam_date, WeeklyExam.exam_time, WeeklyExam.id)
        )
        return list(result.scalars().all())

    def update_exam(self, exam_id: int, request: WeeklyExamUpdate) -> WeeklyExamResponse:
        """Replace all mutable fields of an exam. Status is left untouched."""
        exam = self.get_exam(exam_id)
        self._apply_fields(exam, request)
        self.db.flush()
        self.db.refresh(exam)
        return self.exam_to_response(exam)

    def advance_status(self, exam_id: int, new_status: ExamStatus) -> WeeklyExamResponse:
        """Move an exam to its next status.

        Only scheduled -> live and live -> completed are accepted; anything
        else is rejected without writing.
        """
        exam = self.get_exam(exam_id)
        current = exam.status
        if not current.can_advance_to(new_status):
            allowed = current.next_status
            raise InvalidStatusTransitionError(
                current.value,
                new_status.value,
                allowed.value if allowed else None,
            )

        exam.status = new_status
        self.db.flush()
        self.db.refresh(exam)

        logger.info(f"Weekly exam {exam_id} moved from {current.value} to {new_status.value}")
        return self.exam_to_response(exam)

    def delete_exam(self, exam_id: int) -> None:
        """Delete an exam together with its syllabus links and marks."""
        exam = self.get_exam(exam_id)
        self.db.delete(exam)
        self.db.flush()
        logger.info(f"Weekly exam {exam_id} deleted")

    # ==========================================
    # Helper Methods
    # ==========================================

    def _apply_fields(self, exam: WeeklyExam, request: WeeklyExamBase) -> None:
        self._get_class(request.class_id)

        # Cycle only applies to the competitive track; week only within a cycle
        cycle_id = None
        if request.syllabus_type == SyllabusType.COMPETITIVE and request.cycle_id:
            self._get_cycle(request.cycle_id)
            cycle_id = request.cycle_id

        exam.class_id = request.class_id
        exam.syllabus_type = request.syllabus_type
        exam.cycle_id = cycle_id
        exam.week_number = request.week_number if cycle_id else None
        exam.title = request.title
        exam.exam_date = request.exam_date
        exam.exam_time = request.exam_time
        exam.duration_minutes = request.duration_minutes
        exam.total_marks = request.total_marks
        exam.negative_marking = request.negative_marking
        exam.negative_marks_value = (
            request.negative_marks_value if request.negative_marking else Decimal("0")
        )
        exam.reminder_enabled = request.reminder_enabled

    def _get_class(self, class_id: int) -> ClassSection:
        class_section = self.db.get(ClassSection, class_id)
        if not class_section:
            raise NotFoundError("Class", str(class_id))
        return class_section

    def _get_cycle(self, cycle_id: int) -> ExamCycle:
        cycle = self.db.get(ExamCycle, cycle_id)
        if not cycle:
            raise NotFoundError("Exam cycle", str(cycle_id))
        return cycle
