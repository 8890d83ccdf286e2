"""Read-only lookups over the class directory and syllabus catalogue."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.student import ClassSection
from app.models.syllabus import SyllabusTopic
from app.schemas.weekly_exam import ClassResponse


class CatalogueService:
    """Class directory and syllabus catalogue lookups."""

    def __init__(self, db: Session):
        self.db = db

    def list_classes(self) -> list[ClassResponse]:
        result = self.db.execute(
            select(ClassSection).order_by(ClassSection.name, ClassSection.section)
        )
        return [
            ClassResponse(id=c.id, name=c.name, section=c.section, label=c.label)
            for c in result.scalars().all()
        ]

    def list_syllabus(
        self,
        class_id: int | None = None,
        syllabus_type: str | None = None,
        exam_type: str | None = None,
    ) -> list[SyllabusTopic]:
        """List catalogue topics, optionally narrowed by class, syllabus type and exam type."""
        query = select(SyllabusTopic)
        if class_id is not None:
            query = query.where(SyllabusTopic.class_id == class_id)
        if syllabus_type:
            query = query.where(SyllabusTopic.syllabus_type == syllabus_type)
        if exam_type:
            query = query.where(SyllabusTopic.exam_type == exam_type.upper())
        query = query.order_by(SyllabusTopic.chapter_name, SyllabusTopic.topic_name)
        return list(self.db.execute(query).scalars().all())
