"""Syllabus coverage of weekly exams."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.syllabus import SyllabusTopic
from app.models.weekly_exam import WeeklyExam, WeeklyExamSyllabus
from app.schemas.weekly_exam import SyllabusTopicResponse

logger = logging.getLogger(__name__)


def topic_to_response(topic: SyllabusTopic) -> SyllabusTopicResponse:
    """Convert SyllabusTopic to response schema."""
    return SyllabusTopicResponse.model_validate({
        "id": topic.id,
        "class_id": topic.class_id,
        "subject_id": topic.subject_id,
        "subject_name": topic.subject.name if topic.subject else None,
        "chapter_name": topic.chapter_name,
        "topic_name": topic.topic_name,
        "syllabus_type": topic.syllabus_type,
        "exam_type": topic.exam_type,
        "cycle_id": topic.cycle_id,
        "week_number": topic.week_number,
    })


class SyllabusLinkService:
    """Manages which syllabus topics a weekly exam covers."""

    def __init__(self, db: Session):
        self.db = db

    def attach_syllabus(self, exam_id: int, syllabus_ids: list[int]) -> list[SyllabusTopic]:
        """Replace the exam's full set of linked topics.

        This is a replace-set, not a patch: the old links are deleted and the
        given ones inserted. Both statements run in the caller's transaction,
        so a failure leaves the previously committed set in place once the
        transaction is rolled back. An empty list clears the coverage.
        """
        exam = self._get_exam(exam_id)
        wanted = list(dict.fromkeys(syllabus_ids))

        if wanted:
            found = set(
                self.db.execute(
                    select(SyllabusTopic.id).where(SyllabusTopic.id.in_(wanted))
                ).scalars().all()
            )
            missing = [sid for sid in wanted if sid not in found]
            if missing:
                raise ValidationError(
                    "Unknown syllabus topics",
                    details={"syllabus_ids": missing},
                )

        self.db.execute(
            delete(WeeklyExamSyllabus).where(WeeklyExamSyllabus.exam_id == exam_id)
        )
        self.db.add_all(
            WeeklyExamSyllabus(exam_id=exam_id, syllabus_id=sid) for sid in wanted
        )
        self.db.flush()
        self.db.expire(exam, ["syllabus_links"])

        logger.info(f"Weekly exam {exam_id} now covers {len(wanted)} syllabus topics")
        return self.linked_syllabus(exam_id)

    def linked_syllabus(self, exam_id: int) -> list[SyllabusTopic]:
        """Topics linked to an exam. Empty when nothing is linked."""
        result = self.db.execute(
            select(SyllabusTopic)
            .join(WeeklyExamSyllabus, WeeklyExamSyllabus.syllabus_id == SyllabusTopic.id)
            .where(WeeklyExamSyllabus.exam_id == exam_id)
        )
        return list(result.scalars().all())

    def available_for_exam(self, exam: WeeklyExam) -> list[SyllabusTopic]:
        """Catalogue topics an operator can attach to this exam.

        Restricted to the exam's class and syllabus type; topics of any
        exam_type are included.
        """
        result = self.db.execute(
            select(SyllabusTopic)
            .where(
                SyllabusTopic.class_id == exam.class_id,
                SyllabusTopic.syllabus_type == exam.syllabus_type.value,
            )
            .order_by(SyllabusTopic.chapter_name, SyllabusTopic.topic_name)
        )
        return list(result.scalars().all())

    def _get_exam(self, exam_id: int) -> WeeklyExam:
        exam = self.db.get(WeeklyExam, exam_id)
        if not exam:
            raise NotFoundError("Weekly exam", str(exam_id))
        return exam
