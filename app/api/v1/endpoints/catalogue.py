"""Class directory and syllabus catalogue endpoints (read-only)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.weekly_exam import SyllabusType
from app.schemas.weekly_exam import ClassResponse, SyllabusTopicResponse
from app.services.catalogue import CatalogueService
from app.services.syllabus import topic_to_response

router = APIRouter()


@router.get("/classes", response_model=list[ClassResponse])
def list_classes(
    db: Annotated[Session, Depends(get_db)],
):
    """
    List classes for exam scheduling and filtering.
    """
    return CatalogueService(db).list_classes()


@router.get("/syllabus", response_model=list[SyllabusTopicResponse])
def list_syllabus(
    db: Annotated[Session, Depends(get_db)],
    class_id: int | None = None,
    syllabus_type: SyllabusType | None = None,
    exam_type: str | None = None,
):
    """
    List syllabus topics, optionally by class, syllabus type and exam type.
    """
    service = CatalogueService(db)
    topics = service.list_syllabus(
        class_id=class_id,
        syllabus_type=syllabus_type.value if syllabus_type else None,
        exam_type=exam_type,
    )
    return [topic_to_response(t) for t in topics]
