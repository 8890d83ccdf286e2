"""Read-only access to question papers and results from the exam-taking pipeline."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.exam import QuestionPaper, StudentExamResult
from app.schemas.exam import QuestionPaperResponse, StudentExamResultResponse
from app.services.grading import calculate_grade


class ExamResultService:
    """Exposes downstream exam data for a weekly exam. Never writes."""

    def __init__(self, db: Session):
        self.db = db

    def get_question_paper(self, exam_id: int) -> QuestionPaperResponse | None:
        result = self.db.execute(
            select(QuestionPaper)
            .where(QuestionPaper.exam_id == exam_id)
            .order_by(QuestionPaper.created_at.desc(), QuestionPaper.id.desc())
            .limit(1)
        )
        paper = result.scalar_one_or_none()
        if not paper:
            return None
        return QuestionPaperResponse.model_validate(paper)

    def list_results(self, exam_id: int) -> list[StudentExamResultResponse]:
        """Results ranked first by rank, then by marks for unranked rows."""
        result = self.db.execute(
            select(StudentExamResult)
            .where(StudentExamResult.exam_id == exam_id)
            .order_by(
                StudentExamResult.rank.is_(None),
                StudentExamResult.rank,
                StudentExamResult.obtained_marks.desc(),
            )
        )
        return [
            StudentExamResultResponse(
                id=r.id,
                exam_id=r.exam_id,
                student_id=r.student_id,
                student_name=r.student.full_name if r.student else "",
                obtained_marks=r.obtained_marks,
                total_marks=r.total_marks,
                percentage=r.percentage,
                rank=r.rank,
                grade=calculate_grade(r.obtained_marks, r.total_marks),
                submitted_at=r.submitted_at,
            )
            for r in result.scalars().all()
        ]
