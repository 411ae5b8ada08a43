"""Seed faculty, courses, modules, weekly schedules and enrollments for local scheduling work.

Run:
  PYTHONPATH=backend python scripts/seed_university_data.py
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy import func, select

from lectureplan.db.bootstrap import ensure_runtime_schema_compatibility
from lectureplan.db.session import SessionLocal
from lectureplan.models.course import Course, SemesterPeriod
from lectureplan.models.course_module import CourseModule
from lectureplan.models.course_schedule import CourseSchedule, SessionType
from lectureplan.models.enrollment import Enrollment, EnrollmentStatus
from lectureplan.models.faculty import Faculty

SEED_YEAR = int(os.getenv("SEED_YEAR", "2027"))
MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "university.edu").strip().lower() or "university.edu"
DEPARTMENT = "Computing"
STUDENTS_PER_COURSE = 30
# Students shared between consecutive courses so cohort conflicts show up.
SHARED_STUDENTS = 10


@dataclass(frozen=True)
class ModuleSeed:
    title: str
    duration_weeks: int
    description: str


@dataclass(frozen=True)
class CourseSeed:
    code: str
    name: str
    credits: int
    period: SemesterPeriod
    faculty_key: str
    modules: tuple[ModuleSeed, ...]
    weekly: tuple[tuple[str, str, str, str], ...] = ()


FACULTY = {
    "okafor": ("Dr. Amara Okafor", "amara.okafor"),
    "lindqvist": ("Dr. Erik Lindqvist", "erik.lindqvist"),
}

COURSES: tuple[CourseSeed, ...] = (
    CourseSeed(
        code="COMP 120",
        name="Structured Programming",
        credits=3,
        period=SemesterPeriod.january_april,
        faculty_key="okafor",
        modules=(
            ModuleSeed("Introduction to Programming", 2, "Basic programming concepts, variables, and data types"),
            ModuleSeed("Control Structures", 2, "Conditional statements and loops"),
            ModuleSeed("Functions and Procedures", 2, "Creating and using functions, parameter passing"),
            ModuleSeed("Arrays and Collections", 2, "Working with arrays and basic data structures"),
        ),
        weekly=(("Monday", "10:00", "13:00", "R101"),),
    ),
    CourseSeed(
        code="COMP 232",
        name="Data Structures",
        credits=3,
        period=SemesterPeriod.january_april,
        faculty_key="lindqvist",
        modules=(
            ModuleSeed("Introduction to Data Structures", 1, "Abstract data types and complexity"),
            ModuleSeed("Linked Lists", 2, "Singly and doubly linked lists"),
            ModuleSeed("Stacks and Queues", 2, "LIFO and FIFO structures and their uses"),
            ModuleSeed("Trees and Graphs", 3, "Hierarchical and network structures"),
        ),
        weekly=(("Tuesday", "10:00", "12:00", "R204"), ("Thursday", "13:00", "14:00", "LAB-2")),
    ),
    CourseSeed(
        code="COMP 335",
        name="Database Systems",
        credits=3,
        period=SemesterPeriod.may_august,
        faculty_key="okafor",
        modules=(
            ModuleSeed("Database Fundamentals", 2, "Data models and database architecture"),
            ModuleSeed("Relational Model & SQL", 3, "Relational algebra and SQL queries"),
            ModuleSeed("Database Design", 2, "Normalization and ER modelling"),
            ModuleSeed("Transactions and Concurrency", 2, "ACID properties and concurrency control"),
        ),
        weekly=(("Wednesday", "07:00", "10:00", "R101"),),
    ),
)


def upsert_faculty(session, *, name: str, email: str) -> Faculty:
    existing = session.execute(select(Faculty).where(func.lower(Faculty.email) == email.lower())).scalar_one_or_none()
    if existing is None:
        existing = Faculty(name=name, email=email.lower(), department=DEPARTMENT)
        session.add(existing)
    else:
        existing.name = name
        existing.department = DEPARTMENT
    session.flush()
    return existing


def upsert_course(session, item: CourseSeed, faculty: Faculty) -> Course:
    existing = session.execute(select(Course).where(Course.code == item.code)).scalar_one_or_none()
    if existing is None:
        existing = Course(
            code=item.code,
            name=item.name,
            credits=item.credits,
            semester_period=item.period,
            year=SEED_YEAR,
            faculty_id=faculty.id,
        )
        session.add(existing)
    else:
        existing.name = item.name
        existing.credits = item.credits
        existing.semester_period = item.period
        existing.year = SEED_YEAR
        existing.faculty_id = faculty.id
    session.flush()

    current = {
        module.sequence: module
        for module in session.execute(select(CourseModule).where(CourseModule.course_id == existing.id)).scalars()
    }
    for sequence, module in enumerate(item.modules, start=1):
        row = current.get(sequence)
        if row is None:
            session.add(
                CourseModule(
                    course_id=existing.id,
                    title=module.title,
                    sequence=sequence,
                    duration_weeks=module.duration_weeks,
                    description=module.description,
                )
            )
        else:
            row.title = module.title
            row.duration_weeks = module.duration_weeks
            row.description = module.description
    session.flush()

    held = {
        (entry.day_of_week, entry.start_time)
        for entry in session.execute(select(CourseSchedule).where(CourseSchedule.course_id == existing.id)).scalars()
    }
    for day, start_time, end_time, room in item.weekly:
        if (day, start_time) in held:
            continue
        session_type = SessionType.lab if room.startswith("LAB") else SessionType.lecture
        session.add(
            CourseSchedule(
                course_id=existing.id,
                day_of_week=day,
                start_time=start_time,
                end_time=end_time,
                room=room,
                session_type=session_type,
            )
        )
    session.flush()
    return existing


def seed_enrollments(session, courses: list[Course]) -> None:
    for index, course in enumerate(courses):
        # Course n enrolls students [n*(30-10), n*(30-10)+30), overlapping the previous course by 10.
        first = index * (STUDENTS_PER_COURSE - SHARED_STUDENTS)
        student_ids = {f"student-{number:04d}" for number in range(first, first + STUDENTS_PER_COURSE)}
        enrolled = set(
            session.execute(select(Enrollment.student_id).where(Enrollment.course_id == course.id)).scalars()
        )
        for student_id in sorted(student_ids - enrolled):
            session.add(Enrollment(student_id=student_id, course_id=course.id, status=EnrollmentStatus.active))
    session.flush()


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        faculty_by_key = {
            key: upsert_faculty(session, name=name, email=f"{local}@{MOCK_EMAIL_DOMAIN}")
            for key, (name, local) in FACULTY.items()
        }
        courses = [upsert_course(session, item, faculty_by_key[item.faculty_key]) for item in COURSES]
        seed_enrollments(session, courses)
        session.commit()

        faculty_count = session.execute(select(func.count(Faculty.id))).scalar_one()
        course_count = session.execute(select(func.count(Course.id))).scalar_one()
        module_count = session.execute(select(func.count(CourseModule.id))).scalar_one()
        schedule_count = session.execute(select(func.count(CourseSchedule.id))).scalar_one()
        enrollment_count = session.execute(select(func.count(Enrollment.id))).scalar_one()
        course_ids = {course.code: course.id for course in courses}
        faculty_ids = {faculty.name: faculty.id for faculty in faculty_by_key.values()}

    print("Scheduling data seeded successfully.")
    print("")
    print(f"Faculty records: {faculty_count}")
    print(f"Course records: {course_count}")
    print(f"Course modules: {module_count}")
    print(f"Weekly schedule entries: {schedule_count}")
    print(f"Enrollments: {enrollment_count}")
    print("")
    for code, course_id in course_ids.items():
        print(f"  {code}: {course_id}")
    for name, faculty_id in faculty_ids.items():
        print(f"  {name}: {faculty_id}")


if __name__ == "__main__":
    main()
