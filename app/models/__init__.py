"""Database models package."""

from app.models.exam import ExamMark, Question, QuestionPaper, StudentExamResult
from app.models.exam_cycle import ExamCycle, ExamType
from app.models.student import ClassSection, Student, Subject
from app.models.syllabus import SyllabusTopic
from app.models.weekly_exam import ExamStatus, SyllabusType, WeeklyExam, WeeklyExamSyllabus

__all__ = [
    # Class directory
    "ClassSection",
    "Student",
    "Subject",
    # Syllabus
    "SyllabusTopic",
    # Exam cycles
    "ExamCycle",
    "ExamType",
    # Weekly exams
    "WeeklyExam",
    "WeeklyExamSyllabus",
    "ExamStatus",
    "SyllabusType",
    # Marks and results
    "ExamMark",
    "QuestionPaper",
    "Question",
    "StudentExamResult",
]
