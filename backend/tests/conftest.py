from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import lectureplan.main as main_module
from lectureplan.api.deps import get_db
from lectureplan.api.routes import health as health_routes
from lectureplan.db.base import Base
from lectureplan.db.bootstrap import ensure_runtime_schema_compatibility
from lectureplan.main import app
from lectureplan.models.course import Course, SemesterPeriod
from lectureplan.models.course_module import CourseModule
from lectureplan.models.enrollment import Enrollment
from lectureplan.models.faculty import Faculty
from lectureplan.models.lecture import DeliveryMode, Lecture, LectureStatus

# January-April 2030 starts on Tuesday 2030-01-01; week 1 Monday is 2030-01-07.
SEMESTER_YEAR = 2030
WEEK1_MONDAY = date(2030, 1, 7)
WEEK1_TUESDAY = date(2030, 1, 1)
EXAM_WEEK_DATE = date(2030, 4, 15)  # Monday of week 15


@pytest.fixture()
def engine():
    # One shared in-memory database per test
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine, monkeypatch):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    # Startup bootstrap and readiness check run against the test database too.
    monkeypatch.setattr(main_module, "ensure_runtime_schema_compatibility", lambda: ensure_runtime_schema_compatibility(engine))
    monkeypatch.setattr(health_routes, "engine", engine)
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_faculty(db_session):
    def factory(name: str = "Dr. Amara Okafor", email: str | None = None) -> Faculty:
        faculty = Faculty(name=name, email=email or f"{name.split()[-1].lower()}@university.edu", department="Computing")
        db_session.add(faculty)
        db_session.commit()
        return faculty

    return factory


@pytest.fixture()
def make_course(db_session):
    def factory(
        code: str = "COMP 120",
        *,
        modules: list[tuple[str, int]] | None = None,
        period: SemesterPeriod = SemesterPeriod.january_april,
        year: int = SEMESTER_YEAR,
        faculty_id: str | None = None,
        credits: int = 3,
    ) -> Course:
        course = Course(
            code=code,
            name=f"{code} course",
            credits=credits,
            semester_period=period,
            year=year,
            faculty_id=faculty_id,
        )
        db_session.add(course)
        db_session.flush()
        for sequence, (title, weeks) in enumerate(modules or [], start=1):
            db_session.add(
                CourseModule(course_id=course.id, title=title, sequence=sequence, duration_weeks=weeks)
            )
        db_session.commit()
        return course

    return factory


@pytest.fixture()
def make_lecture(db_session):
    def factory(
        course: Course,
        faculty_id: str,
        lecture_date: date,
        start_time: str = "10:00",
        end_time: str = "13:00",
        *,
        location: str | None = "R1",
        status: LectureStatus = LectureStatus.scheduled,
        week_number: int = 1,
    ) -> Lecture:
        lecture = Lecture(
            course_id=course.id,
            lecture_date=lecture_date,
            start_time=start_time,
            end_time=end_time,
            delivery_mode=DeliveryMode.physical if location else DeliveryMode.online,
            location=location,
            meeting_link=None if location else "https://meet.example.com/room",
            topic="Existing lecture",
            conducted_by=faculty_id,
            week_number=week_number,
            status=status,
        )
        db_session.add(lecture)
        db_session.commit()
        return lecture

    return factory


@pytest.fixture()
def enroll(db_session):
    def factory(course: Course, *student_ids: str) -> None:
        for student_id in student_ids:
            db_session.add(Enrollment(student_id=student_id, course_id=course.id))
        db_session.commit()

    return factory
