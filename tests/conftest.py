import os

# Must be set before the app package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models import ClassSection, Student, Subject, SyllabusTopic


@pytest.fixture()
def engine():
    """
    In-memory SQLite database shared by every connection of one test.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSession = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    """
    TestClient whose requests share the test's database session.
    Each request commits on success and rolls back on error, like get_db.
    """
    def override_get_db():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client_instance:
        yield client_instance
    app.dependency_overrides.clear()


@pytest.fixture()
def school(db):
    """
    Two classes, one subject, a few syllabus topics and students.
    """
    class_11a = ClassSection(name="11", section="A")
    class_12b = ClassSection(name="12", section="B")
    physics = Subject(name="Physics")
    db.add_all([class_11a, class_12b, physics])
    db.flush()

    topics = {
        "kinematics": SyllabusTopic(
            class_id=class_11a.id, subject_id=physics.id,
            chapter_name="Motion", topic_name="Kinematics",
            syllabus_type="competitive", exam_type="JEE",
        ),
        "vectors": SyllabusTopic(
            class_id=class_11a.id, subject_id=physics.id,
            chapter_name="Motion", topic_name="Vectors",
            syllabus_type="competitive", exam_type="JEE",
        ),
        "newton": SyllabusTopic(
            class_id=class_11a.id, subject_id=physics.id,
            chapter_name="Laws of Motion", topic_name="Newton's Laws",
            syllabus_type="competitive", exam_type="NEET",
        ),
        "units": SyllabusTopic(
            class_id=class_11a.id, subject_id=physics.id,
            chapter_name="Units", topic_name="SI Units",
            syllabus_type="general",
        ),
        "optics": SyllabusTopic(
            class_id=class_12b.id, subject_id=physics.id,
            chapter_name="Optics", topic_name="Refraction",
            syllabus_type="competitive", exam_type="JEE",
        ),
    }
    db.add_all(topics.values())

    students = [
        Student(class_id=class_11a.id, full_name="Asha Rao", admission_number="A001"),
        Student(class_id=class_11a.id, full_name="Bilal Khan", admission_number="A002"),
        Student(class_id=class_11a.id, full_name="Chitra Iyer", admission_number="A003"),
        Student(class_id=class_12b.id, full_name="Dev Menon", admission_number="B001"),
    ]
    db.add_all(students)
    db.commit()

    return {
        "class_11a": class_11a,
        "class_12b": class_12b,
        "physics": physics,
        "topics": topics,
        "students": students,
    }


@pytest.fixture()
def cycle_start():
    return date(2024, 1, 1)
