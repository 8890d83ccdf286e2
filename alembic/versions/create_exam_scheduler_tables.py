"""create_exam_scheduler_tables

Revision ID: create_exam_scheduler
Revises:
Create Date: 2026-10-19 10:00:00.000000

Creates the exam scheduler schema:
- classes, subjects, students, syllabus: directory data owned by the wider
  school application (created here so the scheduler can run standalone)
- exam_cycles: JEE -> NEET -> BITSAT three-week programs
- weekly_exams, weekly_exam_syllabus: scheduled exams and their coverage
- exam_marks: teacher-entered marks per exam
- question_papers, questions, student_exam_results: exam-taking pipeline output
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_exam_scheduler'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]


def upgrade() -> None:
    """Create exam scheduler tables."""
    syllabus_type = sa.Enum('GENERAL', 'COMPETITIVE', name='syllabustype')
    exam_status = sa.Enum('SCHEDULED', 'LIVE', 'COMPLETED', name='examstatus')

    # 1. Directory tables
    op.create_table(
        'classes',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('section', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'subjects',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.BigInteger(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('admission_number', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_class_id', 'students', ['class_id'])

    # 2. Exam cycles
    op.create_table(
        'exam_cycles',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('exam_type', sa.String(length=20), nullable=False),
        sa.Column('cycle_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_exam_cycles_exam_type', 'exam_cycles', ['exam_type'])
    op.create_index('ix_exam_cycles_type_active', 'exam_cycles', ['exam_type', 'is_active'])

    # 3. Syllabus catalogue
    op.create_table(
        'syllabus',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.BigInteger(), nullable=False),
        sa.Column('subject_id', sa.BigInteger(), nullable=False),
        sa.Column('chapter_name', sa.String(length=255), nullable=False),
        sa.Column('topic_name', sa.String(length=255), nullable=False),
        sa.Column('syllabus_type', sa.String(length=20), nullable=False, server_default='general'),
        sa.Column('exam_type', sa.String(length=20), nullable=True),
        sa.Column('cycle_id', sa.BigInteger(), nullable=True),
        sa.Column('week_number', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['cycle_id'], ['exam_cycles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_syllabus_class_id', 'syllabus', ['class_id'])

    # 4. Weekly exams and coverage
    op.create_table(
        'weekly_exams',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.BigInteger(), nullable=False),
        sa.Column('syllabus_type', syllabus_type, nullable=False),
        sa.Column('cycle_id', sa.BigInteger(), nullable=True),
        sa.Column('week_number', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('exam_date', sa.Date(), nullable=False),
        sa.Column('exam_time', sa.Time(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('negative_marking', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('negative_marks_value', sa.DECIMAL(6, 2), nullable=False, server_default='0'),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('status', exam_status, nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['cycle_id'], ['exam_cycles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_weekly_exams_class_id', 'weekly_exams', ['class_id'])
    op.create_index('ix_weekly_exams_syllabus_type', 'weekly_exams', ['syllabus_type'])
    op.create_index('ix_weekly_exams_cycle_id', 'weekly_exams', ['cycle_id'])
    op.create_index('ix_weekly_exams_exam_date', 'weekly_exams', ['exam_date'])
    op.create_index('ix_weekly_exams_status', 'weekly_exams', ['status'])

    op.create_table(
        'weekly_exam_syllabus',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('exam_id', sa.BigInteger(), nullable=False),
        sa.Column('syllabus_id', sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_id'], ['weekly_exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['syllabus_id'], ['syllabus.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('exam_id', 'syllabus_id', name='uq_weekly_exam_syllabus'),
    )
    op.create_index('ix_weekly_exam_syllabus_exam_id', 'weekly_exam_syllabus', ['exam_id'])

    # 5. Marks
    op.create_table(
        'exam_marks',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('exam_id', sa.BigInteger(), nullable=False),
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('marks_obtained', sa.DECIMAL(10, 2), nullable=True),
        sa.Column('grade', sa.String(length=10), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_id'], ['weekly_exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_exam_mark_student'),
    )
    op.create_index('ix_exam_marks_exam_id', 'exam_marks', ['exam_id'])
    op.create_index('ix_exam_marks_student_id', 'exam_marks', ['student_id'])

    # 6. Exam-taking pipeline output
    op.create_table(
        'question_papers',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('exam_id', sa.BigInteger(), nullable=False),
        sa.Column('class_id', sa.BigInteger(), nullable=False),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('uploaded_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_id'], ['weekly_exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_question_papers_exam_id', 'question_papers', ['exam_id'])

    op.create_table(
        'questions',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('question_paper_id', sa.BigInteger(), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(length=20), nullable=False, server_default='mcq'),
        sa.Column('marks', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('option_a', sa.Text(), nullable=True),
        sa.Column('option_b', sa.Text(), nullable=True),
        sa.Column('option_c', sa.Text(), nullable=True),
        sa.Column('option_d', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['question_paper_id'], ['question_papers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_question_paper_id', 'questions', ['question_paper_id'])

    op.create_table(
        'student_exam_results',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('exam_id', sa.BigInteger(), nullable=False),
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('obtained_marks', sa.DECIMAL(10, 2), nullable=False, server_default='0'),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.DECIMAL(6, 2), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_id'], ['weekly_exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_student_exam_results_exam_id', 'student_exam_results', ['exam_id'])
    op.create_index('ix_student_exam_results_student_id', 'student_exam_results', ['student_id'])


def downgrade() -> None:
    """Drop exam scheduler tables."""
    for table in (
        'student_exam_results',
        'questions',
        'question_papers',
        'exam_marks',
        'weekly_exam_syllabus',
        'weekly_exams',
        'syllabus',
        'exam_cycles',
        'students',
        'subjects',
        'classes',
    ):
        op.drop_table(table)

    sa.Enum(name='examstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='syllabustype').drop(op.get_bind(), checkfirst=True)
