from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import InvalidStatusTransitionError, NotFoundError
from app.models import ExamMark, ExamStatus, SyllabusType, WeeklyExam, WeeklyExamSyllabus
from app.schemas.exam import MarkEntry
from app.schemas.exam_cycle import ExamCycleCreate
from app.schemas.weekly_exam import WeeklyExamCreate, WeeklyExamFilter, WeeklyExamUpdate
from app.services.exam import ExamMarkService
from app.services.exam_cycle import ExamCycleService
from app.services.syllabus import SyllabusLinkService
from app.services.weekly_exam import WeeklyExamService


def exam_request(class_id, **overrides):
    fields = {
        "class_id": class_id,
        "title": "Weekly Test 1",
        "exam_date": date(2024, 1, 5),
    }
    fields.update(overrides)
    return WeeklyExamCreate(**fields)


# ==========================================
# Create / update
# ==========================================

def test_new_exam_is_scheduled_with_defaults(db, school):
    service = WeeklyExamService(db)
    exam = service.create_exam(exam_request(school["class_11a"].id))

    assert exam.status == ExamStatus.SCHEDULED
    assert exam.next_status == ExamStatus.LIVE
    assert exam.syllabus_type == SyllabusType.GENERAL
    assert exam.exam_time == time(9, 0)
    assert exam.duration_minutes == 60
    assert exam.total_marks == 100
    assert exam.reminder_enabled is True
    assert exam.class_label == "11-A"


def test_general_exam_drops_cycle(db, school):
    cycle = ExamCycleService(db).create_cycle(ExamCycleCreate(exam_type="JEE", start_date=date(2024, 1, 1)))

    exam = WeeklyExamService(db).create_exam(
        exam_request(school["class_11a"].id, syllabus_type="general", cycle_id=cycle.id)
    )

    assert exam.cycle_id is None
    assert exam.cycle_label is None


def test_week_number_dropped_without_cycle(db, school):
    service = WeeklyExamService(db)

    general = service.create_exam(exam_request(school["class_11a"].id, week_number=2))
    competitive = service.create_exam(
        exam_request(school["class_11a"].id, syllabus_type="competitive", week_number=2)
    )

    assert general.week_number is None
    assert competitive.week_number is None


def test_competitive_exam_keeps_cycle(db, school):
    cycle = ExamCycleService(db).create_cycle(ExamCycleCreate(exam_type="JEE", start_date=date(2024, 1, 1)))

    exam = WeeklyExamService(db).create_exam(
        exam_request(school["class_11a"].id, syllabus_type="competitive", cycle_id=cycle.id, week_number=1)
    )

    assert exam.cycle_id == cycle.id
    assert exam.cycle_label == "JEE - Cycle #1"
    assert exam.week_number == 1


def test_negative_marks_value_ignored_without_negative_marking(db, school):
    service = WeeklyExamService(db)
    exam = service.create_exam(
        exam_request(school["class_11a"].id, negative_marking=False, negative_marks_value="0.25")
    )
    assert exam.negative_marks_value == Decimal("0")

    exam = service.create_exam(
        exam_request(school["class_11a"].id, negative_marking=True, negative_marks_value="0.25")
    )
    assert exam.negative_marks_value == Decimal("0.25")


def test_create_for_unknown_class_or_cycle(db, school):
    service = WeeklyExamService(db)
    with pytest.raises(NotFoundError):
        service.create_exam(exam_request(999))
    with pytest.raises(NotFoundError):
        service.create_exam(exam_request(school["class_11a"].id, syllabus_type="competitive", cycle_id=999))


def test_update_replaces_fields_but_not_status(db, school):
    service = WeeklyExamService(db)
    exam = service.create_exam(exam_request(school["class_11a"].id))
    service.advance_status(exam.id, ExamStatus.LIVE)

    updated = service.update_exam(
        exam.id,
        WeeklyExamUpdate(
            class_id=school["class_12b"].id,
            title="Revised Test",
            exam_date=date(2024, 1, 6),
            total_marks=50,
        ),
    )

    assert updated.title == "Revised Test"
    assert updated.class_id == school["class_12b"].id
    assert updated.total_marks == 50
    assert updated.status == ExamStatus.LIVE


# ==========================================
# Status transitions
# ==========================================

def test_status_advances_one_step_at_a_time(db, school):
    service = WeeklyExamService(db)
    exam = service.create_exam(exam_request(school["class_11a"].id))

    live = service.advance_status(exam.id, ExamStatus.LIVE)
    assert live.status == ExamStatus.LIVE
    assert live.next_status == ExamStatus.COMPLETED

    completed = service.advance_status(exam.id, ExamStatus.COMPLETED)
    assert completed.status == ExamStatus.COMPLETED
    assert completed.next_status is None


@pytest.mark.parametrize(
    "path, illegal",
    [
        ([], ExamStatus.COMPLETED),
        ([], ExamStatus.SCHEDULED),
        ([ExamStatus.LIVE], ExamStatus.SCHEDULED),
        ([ExamStatus.LIVE], ExamStatus.LIVE),
        ([ExamStatus.LIVE, ExamStatus.COMPLETED], ExamStatus.LIVE),
        ([ExamStatus.LIVE, ExamStatus.COMPLETED], ExamStatus.COMPLETED),
    ],
)
def test_illegal_transitions_are_rejected(db, school, path, illegal):
    service = WeeklyExamService(db)
    exam = service.create_exam(exam_request(school["class_11a"].id))
    for step in path:
        service.advance_status(exam.id, step)
    before = service.get_exam(exam.id).status

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        service.advance_status(exam.id, illegal)

    assert exc_info.value.status_code == 409
    assert service.get_exam(exam.id).status == before


# ==========================================
# Listing and filtering
# ==========================================

def test_list_filters_by_syllabus_type_class_and_search(db, school):
    service = WeeklyExamService(db)
    class_11a = school["class_11a"].id
    class_12b = school["class_12b"].id
    service.create_exam(exam_request(class_11a, title="Algebra Quiz", exam_date=date(2024, 1, 5)))
    service.create_exam(exam_request(class_12b, title="Optics Test", exam_date=date(2024, 1, 8)))
    service.create_exam(exam_request(class_11a, title="JEE Mock", syllabus_type="competitive"))

    general = service.list_exams(WeeklyExamFilter())
    assert [e.title for e in general] == ["Optics Test", "Algebra Quiz"]

    competitive = service.list_exams(WeeklyExamFilter(syllabus_type="competitive"))
    assert [e.title for e in competitive] == ["JEE Mock"]

    by_class = service.list_exams(WeeklyExamFilter(class_id=class_11a))
    assert [e.title for e in by_class] == ["Algebra Quiz"]

    assert [e.title for e in service.list_exams(WeeklyExamFilter(search="optics"))] == ["Optics Test"]
    assert [e.title for e in service.list_exams(WeeklyExamFilter(search="12"))] == ["Optics Test"]
    assert [e.title for e in service.list_exams(WeeklyExamFilter(search="11-a"))] == ["Algebra Quiz"]
    assert service.list_exams(WeeklyExamFilter(search="chemistry")) == []


def test_list_filters_by_status_and_cycle(db, school):
    exam_service = WeeklyExamService(db)
    cycle = ExamCycleService(db).create_cycle(ExamCycleCreate(exam_type="NEET", start_date=date(2024, 1, 1)))
    in_cycle = exam_service.create_exam(
        exam_request(school["class_11a"].id, syllabus_type="competitive", cycle_id=cycle.id)
    )
    exam_service.create_exam(exam_request(school["class_11a"].id, syllabus_type="competitive"))
    exam_service.advance_status(in_cycle.id, ExamStatus.LIVE)

    by_cycle = exam_service.list_exams(WeeklyExamFilter(syllabus_type="competitive", cycle_id=cycle.id))
    assert [e.id for e in by_cycle] == [in_cycle.id]

    live = exam_service.list_exams(WeeklyExamFilter(syllabus_type="competitive", status="live"))
    assert [e.id for e in live] == [in_cycle.id]


# ==========================================
# Deletion
# ==========================================

def test_delete_exam_removes_links_and_marks(db, school):
    service = WeeklyExamService(db)
    exam = service.create_exam(exam_request(school["class_11a"].id, syllabus_type="competitive"))
    SyllabusLinkService(db).attach_syllabus(exam.id, [school["topics"]["kinematics"].id])
    ExamMarkService(db).save_marks(exam.id, [MarkEntry(student_id=school["students"][0].id, marks_obtained=70)])
    db.commit()

    service.delete_exam(exam.id)
    db.commit()

    assert db.get(WeeklyExam, exam.id) is None
    assert db.execute(select(WeeklyExamSyllabus)).scalars().all() == []
    assert db.execute(select(ExamMark)).scalars().all() == []


def test_deleting_cycle_keeps_its_exams(db, school):
    cycle_service = ExamCycleService(db)
    exam_service = WeeklyExamService(db)
    cycle = cycle_service.create_cycle(ExamCycleCreate(exam_type="JEE", start_date=date(2024, 1, 1)))
    exam = exam_service.create_exam(
        exam_request(school["class_11a"].id, syllabus_type="competitive", cycle_id=cycle.id)
    )
    db.commit()

    cycle_service.delete_cycle(cycle.id)
    db.commit()
    db.expire_all()

    survivor = exam_service.get_exam(exam.id)
    assert survivor.cycle_id is None
    assert exam_service.exam_to_response(survivor).cycle_label is None


def test_get_missing_exam(db):
    with pytest.raises(NotFoundError):
        WeeklyExamService(db).get_exam(42)
