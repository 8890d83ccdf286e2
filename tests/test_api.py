from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from app.models import Question, QuestionPaper, StudentExamResult

API = "/api/v1"


def create_cycle(client, **payload):
    response = client.post(f"{API}/exam-cycles", json=payload)
    assert response.status_code == 201, f"Failed to create cycle: {response.text}"
    return response.json()


def create_exam(client, **payload):
    response = client.post(f"{API}/weekly-exams", json=payload)
    assert response.status_code == 201, f"Failed to create exam: {response.text}"
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_competitive_cycle_flow(client, school):
    """
    Full competitive flow: plan a cycle, schedule an exam in it, cover
    syllabus topics, run the exam and record marks.
    """
    class_id = school["class_11a"].id
    topics = school["topics"]

    # 1. Suggestion for an empty rotation starts with JEE
    suggestion = client.get(f"{API}/exam-cycles/suggestion", params={"today": "2024-01-01"}).json()
    assert suggestion == {
        "exam_type": "JEE",
        "cycle_number": 1,
        "start_date": "2024-01-01",
        "end_date": "2024-01-21",
    }

    # 2. Create and activate the cycle
    cycle = create_cycle(client, **suggestion)
    assert cycle["is_active"] is False
    response = client.post(f"{API}/exam-cycles/{cycle['id']}/activate")
    assert response.status_code == 200, response.text
    assert response.json()["is_active"] is True

    # 3. Schedule a week-1 exam inside the cycle
    exam = create_exam(
        client,
        class_id=class_id,
        syllabus_type="competitive",
        cycle_id=cycle["id"],
        week_number=1,
        title="JEE Weekly 1",
        exam_date="2024-01-05",
        negative_marking=True,
        negative_marks_value="0.25",
    )
    assert exam["status"] == "scheduled"
    assert exam["cycle_label"] == "JEE - Cycle #1"

    # 4. Cover two topics
    response = client.put(
        f"{API}/weekly-exams/{exam['id']}/syllabus",
        json={"syllabus_ids": [topics["kinematics"].id, topics["vectors"].id]},
    )
    assert response.status_code == 200, response.text
    linked = client.get(f"{API}/weekly-exams/{exam['id']}/syllabus").json()
    assert sorted(t["topic_name"] for t in linked) == ["Kinematics", "Vectors"]
    assert all(t["subject_name"] == "Physics" for t in linked)

    # 5. The cycle schedule groups the exam under week 1
    schedule = client.get(f"{API}/exam-cycles/{cycle['id']}/schedule").json()
    assert [len(w["exams"]) for w in schedule["weeks"]] == [1, 0, 0]
    assert schedule["unassigned"] == []

    # 6. Run the exam
    for status in ("live", "completed"):
        response = client.post(f"{API}/weekly-exams/{exam['id']}/status", json={"status": status})
        assert response.status_code == 200, response.text
        assert response.json()["status"] == status

    # 7. Record marks
    asha, bilal = school["students"][0].id, school["students"][1].id
    response = client.put(
        f"{API}/weekly-exams/{exam['id']}/marks",
        json={"entries": [
            {"student_id": asha, "marks_obtained": 91},
            {"student_id": bilal, "marks_obtained": 38},
        ]},
    )
    assert response.status_code == 200, response.text
    assert response.json()["saved"] == 2

    sheet = client.get(f"{API}/weekly-exams/{exam['id']}/marks").json()
    grades = {row["student_id"]: row["grade"] for row in sheet["students"]}
    assert grades[asha] == "A+"
    assert grades[bilal] == "D"

    # 8. The rotation moves on to NEET
    rotation = client.get(f"{API}/exam-cycles/rotation").json()
    assert rotation["next_exam_type"] == "NEET"
    assert rotation["rotation"][0]["active_cycle_id"] == cycle["id"]


def test_illegal_status_transition_returns_409(client, school):
    exam = create_exam(client, class_id=school["class_11a"].id, title="Quiz", exam_date="2024-01-05")

    response = client.post(f"{API}/weekly-exams/{exam['id']}/status", json={"status": "completed"})

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_STATUS_TRANSITION"
    assert body["error"]["details"]["allowed_status"] == "live"
    assert client.get(f"{API}/weekly-exams/{exam['id']}").json()["status"] == "scheduled"


def test_activation_exclusive_per_type(client):
    jee_1 = create_cycle(client, exam_type="JEE", start_date="2024-01-01")
    jee_2 = create_cycle(client, exam_type="JEE", cycle_number=2, start_date="2024-03-04")
    neet = create_cycle(client, exam_type="NEET", start_date="2024-01-22")

    for cycle in (jee_1, neet, jee_2):
        assert client.post(f"{API}/exam-cycles/{cycle['id']}/activate").status_code == 200

    active = client.get(f"{API}/exam-cycles", params={"is_active": True}).json()
    assert sorted(c["id"] for c in active) == sorted([jee_2["id"], neet["id"]])


def test_list_exams_filters(client, school):
    create_exam(client, class_id=school["class_11a"].id, title="Algebra Quiz", exam_date="2024-01-05")
    create_exam(
        client,
        class_id=school["class_11a"].id,
        syllabus_type="competitive",
        title="NEET Weekly",
        exam_date="2024-01-06",
    )

    general = client.get(f"{API}/weekly-exams").json()
    assert [e["title"] for e in general] == ["Algebra Quiz"]

    competitive = client.get(f"{API}/weekly-exams", params={"syllabus_type": "competitive", "search": "neet"}).json()
    assert [e["title"] for e in competitive] == ["NEET Weekly"]


def test_validation_and_not_found_errors(client, school):
    response = client.post(
        f"{API}/weekly-exams",
        json={"class_id": school["class_11a"].id, "title": "Bad", "exam_date": "2024-01-05", "week_number": 4},
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    response = client.get(f"{API}/exam-cycles/999")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    response = client.post(
        f"{API}/exam-cycles",
        json={"exam_type": "JEE", "start_date": "2024-01-10", "end_date": "2024-01-01"},
    )
    assert response.status_code == 422


def test_unknown_syllabus_topic_keeps_existing_links(client, school):
    exam = create_exam(client, class_id=school["class_11a"].id, title="Quiz", exam_date="2024-01-05")
    kinematics = school["topics"]["kinematics"].id
    client.put(f"{API}/weekly-exams/{exam['id']}/syllabus", json={"syllabus_ids": [kinematics]})

    response = client.put(f"{API}/weekly-exams/{exam['id']}/syllabus", json={"syllabus_ids": [kinematics, 9999]})

    assert response.status_code == 422
    linked = client.get(f"{API}/weekly-exams/{exam['id']}/syllabus").json()
    assert [t["id"] for t in linked] == [kinematics]


def test_marks_template_download_and_upload(client, school):
    exam = create_exam(client, class_id=school["class_11a"].id, title="Quiz", exam_date="2024-01-05")

    response = client.get(f"{API}/weekly-exams/{exam['id']}/marks/template")
    assert response.status_code == 200
    wb = load_workbook(BytesIO(response.content))
    wb.active.cell(row=3, column=4, value=75)
    output = BytesIO()
    wb.save(output)

    response = client.post(
        f"{API}/weekly-exams/{exam['id']}/marks/upload",
        files={"file": ("marks.xlsx", output.getvalue(), "application/octet-stream")},
    )
    assert response.status_code == 200, response.text
    assert response.json()["successful_rows"] == 1

    response = client.post(
        f"{API}/weekly-exams/{exam['id']}/marks/upload",
        files={"file": ("marks.csv", b"a,b", "text/csv")},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UPLOAD_FAILED"


def test_question_paper_and_results(client, db, school):
    exam = create_exam(client, class_id=school["class_11a"].id, title="Quiz", exam_date="2024-01-05")
    assert client.get(f"{API}/weekly-exams/{exam['id']}/question-paper").json() is None

    paper = QuestionPaper(exam_id=exam["id"], class_id=school["class_11a"].id, total_marks=4, total_questions=2)
    db.add(paper)
    db.flush()
    db.add_all([
        Question(question_paper_id=paper.id, question_number=2, question_text="Define velocity", marks=2),
        Question(question_paper_id=paper.id, question_number=1, question_text="Define speed", marks=2),
    ])
    asha, bilal = school["students"][0], school["students"][1]
    db.add_all([
        StudentExamResult(exam_id=exam["id"], student_id=bilal.id, obtained_marks=Decimal("2"), total_marks=4, rank=2),
        StudentExamResult(exam_id=exam["id"], student_id=asha.id, obtained_marks=Decimal("4"), total_marks=4, rank=1),
    ])
    db.commit()

    paper_body = client.get(f"{API}/weekly-exams/{exam['id']}/question-paper").json()
    assert [q["question_number"] for q in paper_body["questions"]] == [1, 2]

    results = client.get(f"{API}/weekly-exams/{exam['id']}/results").json()
    assert [r["student_name"] for r in results] == ["Asha Rao", "Bilal Khan"]
    assert [r["grade"] for r in results] == ["A+", "C+"]


def test_delete_cycle_and_exam(client, school):
    cycle = create_cycle(client, exam_type="BITSAT", start_date="2024-02-12")
    exam = create_exam(
        client,
        class_id=school["class_11a"].id,
        syllabus_type="competitive",
        cycle_id=cycle["id"],
        title="BITSAT Weekly",
        exam_date="2024-02-14",
    )

    assert client.delete(f"{API}/exam-cycles/{cycle['id']}").status_code == 200
    assert client.get(f"{API}/weekly-exams/{exam['id']}").json()["cycle_id"] is None

    assert client.delete(f"{API}/weekly-exams/{exam['id']}").status_code == 200
    assert client.get(f"{API}/weekly-exams/{exam['id']}").status_code == 404


def test_catalogue_endpoints(client, school):
    classes = client.get(f"{API}/classes").json()
    assert [c["label"] for c in classes] == ["11-A", "12-B"]

    topics = client.get(f"{API}/syllabus", params={"class_id": school["class_11a"].id, "syllabus_type": "general"}).json()
    assert [t["topic_name"] for t in topics] == ["SI Units"]
