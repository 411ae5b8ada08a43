"""Read access to persisted lectures for conflict checking.

The engine depends on :class:`LectureStore` rather than on a session so the
detector and scheduler can run against any collection of lectures.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from sqlalchemy import select, text
from sqlalchemy.orm import Session, aliased

from lectureplan.models.course import Course
from lectureplan.models.enrollment import Enrollment, EnrollmentStatus
from lectureplan.models.lecture import DeliveryMode, Lecture, LectureStatus

# First key of the two-key advisory lock; the second is the date ordinal.
LECTURE_DATE_LOCK_NAMESPACE = 4201


@dataclass(frozen=True)
class LectureRecord:
    id: str | None
    course_id: str
    lecture_date: date
    start_time: str
    end_time: str
    conducted_by: str
    delivery_mode: DeliveryMode
    location: str | None = None
    topic: str | None = None
    course_code: str | None = None
    course_name: str | None = None

    @property
    def time_slot(self) -> str:
        return f"{self.start_time} - {self.end_time}"


class LectureStore(Protocol):
    def get_course(self, course_id: str) -> Course | None: ...

    def lectures_on(self, day: date, exclude_lecture_id: str | None = None) -> list[LectureRecord]: ...

    def shared_students(self, course_id: str) -> dict[str, set[str]]: ...


class SqlAlchemyLectureStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_course(self, course_id: str) -> Course | None:
        return self.db.get(Course, course_id)

    def lectures_on(self, day: date, exclude_lecture_id: str | None = None) -> list[LectureRecord]:
        stmt = (
            select(Lecture, Course.code, Course.name)
            .outerjoin(Course, Course.id == Lecture.course_id)
            .where(Lecture.lecture_date == day, Lecture.status != LectureStatus.cancelled)
            .order_by(Lecture.start_time, Lecture.id)
        )
        if exclude_lecture_id is not None:
            stmt = stmt.where(Lecture.id != exclude_lecture_id)
        return [
            LectureRecord(
                id=lecture.id,
                course_id=lecture.course_id,
                lecture_date=lecture.lecture_date,
                start_time=lecture.start_time,
                end_time=lecture.end_time,
                conducted_by=lecture.conducted_by,
                delivery_mode=lecture.delivery_mode,
                location=lecture.location,
                topic=lecture.topic,
                course_code=code,
                course_name=name,
            )
            for lecture, code, name in self.db.execute(stmt).all()
        ]

    def shared_students(self, course_id: str) -> dict[str, set[str]]:
        mine = aliased(Enrollment)
        other = aliased(Enrollment)
        stmt = (
            select(other.course_id, other.student_id)
            .join(mine, mine.student_id == other.student_id)
            .where(
                mine.course_id == course_id,
                mine.status == EnrollmentStatus.active,
                other.status == EnrollmentStatus.active,
                other.course_id != course_id,
            )
        )
        shared: dict[str, set[str]] = defaultdict(set)
        for other_course_id, student_id in self.db.execute(stmt).all():
            shared[other_course_id].add(student_id)
        return dict(shared)


def lock_lecture_dates(db: Session, days: Iterable[date]) -> list[date]:
    """Hold a per-date lock until the current transaction ends.

    PostgreSQL takes transaction-scoped advisory locks in date order. Other
    dialects serialize writers themselves and nothing is taken. Returns the
    dates that were locked.
    """
    ordered = sorted(set(days))
    if db.get_bind().dialect.name != "postgresql":
        return []
    for day in ordered:
        db.execute(
            text("SELECT pg_advisory_xact_lock(:namespace, :key)"),
            {"namespace": LECTURE_DATE_LOCK_NAMESPACE, "key": day.toordinal()},
        )
    return ordered
