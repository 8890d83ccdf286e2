"""Weekly exam endpoints: scheduling, status, syllabus coverage, marks and results."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import UploadError
from app.models.weekly_exam import ExamStatus, SyllabusType
from app.schemas.common import MessageResponse
from app.schemas.exam import (
    ExamMarksSheet,
    MarksSaveRequest,
    MarksSaveResponse,
    MarksUploadResult,
    QuestionPaperResponse,
    StudentExamResultResponse,
)
from app.schemas.weekly_exam import (
    ExamStatusUpdate,
    SyllabusAttachRequest,
    SyllabusTopicResponse,
    WeeklyExamCreate,
    WeeklyExamFilter,
    WeeklyExamResponse,
    WeeklyExamUpdate,
)
from app.services.exam import ExamMarkService
from app.services.exam_result import ExamResultService
from app.services.syllabus import SyllabusLinkService, topic_to_response
from app.services.weekly_exam import WeeklyExamService

router = APIRouter()


@router.get("", response_model=list[WeeklyExamResponse])
def list_weekly_exams(
    db: Annotated[Session, Depends(get_db)],
    syllabus_type: SyllabusType = SyllabusType.GENERAL,
    class_id: int | None = None,
    cycle_id: int | None = None,
    status: ExamStatus | None = None,
    search: str | None = None,
):
    """
    List weekly exams of one syllabus type.
    search matches the exam title or the class name.
    """
    service = WeeklyExamService(db)
    filters = WeeklyExamFilter(
        syllabus_type=syllabus_type,
        class_id=class_id,
        cycle_id=cycle_id,
        status=status,
        search=search,
    )
    return service.list_exams(filters)


@router.post("", response_model=WeeklyExamResponse, status_code=201)
def create_weekly_exam(
    request: WeeklyExamCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Schedule a weekly exam. cycle_id is only kept for competitive exams.
    """
    service = WeeklyExamService(db)
    return service.create_exam(request)


@router.get("/{exam_id}", response_model=WeeklyExamResponse)
def get_weekly_exam(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get weekly exam by ID.
    """
    service = WeeklyExamService(db)
    return service.exam_to_response(service.get_exam(exam_id))


@router.put("/{exam_id}", response_model=WeeklyExamResponse)
def update_weekly_exam(
    exam_id: int,
    request: WeeklyExamUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace a weekly exam's details. Status is changed through /status.
    """
    service = WeeklyExamService(db)
    return service.update_exam(exam_id, request)


@router.post("/{exam_id}/status", response_model=WeeklyExamResponse)
def advance_weekly_exam_status(
    exam_id: int,
    request: ExamStatusUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Advance an exam: scheduled -> live -> completed.
    Any other transition is rejected with 409.
    """
    service = WeeklyExamService(db)
    return service.advance_status(exam_id, request.status)


@router.delete("/{exam_id}", response_model=MessageResponse)
def delete_weekly_exam(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Delete a weekly exam with its syllabus links and marks.
    """
    service = WeeklyExamService(db)
    service.delete_exam(exam_id)
    return MessageResponse(message="Weekly exam deleted successfully")


# ==========================================
# Syllabus Coverage
# ==========================================

@router.get("/{exam_id}/syllabus", response_model=list[SyllabusTopicResponse])
def get_linked_syllabus(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the syllabus topics the exam covers.
    """
    WeeklyExamService(db).get_exam(exam_id)
    service = SyllabusLinkService(db)
    return [topic_to_response(t) for t in service.linked_syllabus(exam_id)]


@router.put("/{exam_id}/syllabus", response_model=list[SyllabusTopicResponse])
def attach_syllabus(
    exam_id: int,
    request: SyllabusAttachRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace the full set of syllabus topics the exam covers.
    """
    service = SyllabusLinkService(db)
    topics = service.attach_syllabus(exam_id, request.syllabus_ids)
    return [topic_to_response(t) for t in topics]


@router.get("/{exam_id}/available-syllabus", response_model=list[SyllabusTopicResponse])
def get_available_syllabus(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get catalogue topics for the exam's class and syllabus type.
    """
    exam = WeeklyExamService(db).get_exam(exam_id)
    service = SyllabusLinkService(db)
    return [topic_to_response(t) for t in service.available_for_exam(exam)]


# ==========================================
# Marks
# ==========================================

@router.get("/{exam_id}/marks", response_model=ExamMarksSheet)
def get_marks_sheet(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get every student of the exam's class with saved marks and statistics.
    """
    service = ExamMarkService(db)
    return service.get_marks_sheet(exam_id)


@router.put("/{exam_id}/marks", response_model=MarksSaveResponse)
def save_marks(
    exam_id: int,
    request: MarksSaveRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Save the exam's marks sheet, replacing all previously saved marks.
    Grades are calculated from marks unless given.
    """
    service = ExamMarkService(db)
    return service.save_marks(exam_id, request.entries)


@router.get("/{exam_id}/marks/template")
def download_marks_template(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Download an Excel marks sheet for the exam's class.
    """
    service = ExamMarkService(db)
    content = service.generate_template(exam_id)
    filename = f"marks_exam_{exam_id}.xlsx"

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/{exam_id}/marks/upload", response_model=MarksUploadResult)
def upload_marks(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
    file: UploadFile = File(...),
):
    """
    Upload a filled-in marks sheet. Replaces all previously saved marks.
    Download the template first to see the expected format.
    """
    # Validate file
    if not file.filename:
        raise UploadError("No file provided")

    if not any(file.filename.endswith(ext) for ext in settings.ALLOWED_EXTENSIONS):
        raise UploadError(f"Only {', '.join(settings.ALLOWED_EXTENSIONS)} files are allowed")

    content = file.file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise UploadError(f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")

    service = ExamMarkService(db)
    return service.import_marks(exam_id, content)


# ==========================================
# Downstream Results
# ==========================================

@router.get("/{exam_id}/question-paper", response_model=QuestionPaperResponse | None)
def get_question_paper(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the question paper for the exam, or null when none was uploaded.
    """
    WeeklyExamService(db).get_exam(exam_id)
    return ExamResultService(db).get_question_paper(exam_id)


@router.get("/{exam_id}/results", response_model=list[StudentExamResultResponse])
def get_exam_results(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get student results for the exam, best rank first.
    """
    WeeklyExamService(db).get_exam(exam_id)
    return ExamResultService(db).list_results(exam_id)
