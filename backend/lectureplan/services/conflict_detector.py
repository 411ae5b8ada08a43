from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import TypeVar

from lectureplan.core.exceptions import ResourceNotFoundError
from lectureplan.models.course import Course
from lectureplan.models.lecture import DeliveryMode
from lectureplan.schemas.common import parse_time_to_minutes
from lectureplan.schemas.conflict import ConflictDetail, ConflictReport, ConflictSeverity, ConflictType
from lectureplan.services.calendar import EXAM_WEEKS, is_exam_week, resolve_period, semester_start, week_number
from lectureplan.services.lecture_store import LectureRecord, LectureStore
from lectureplan.services.slot_catalog import day_name

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

Dimension = Callable[[LectureRecord], bool]


@dataclass(frozen=True)
class LecturePlacement:
    lecture_date: date
    start_time: str
    end_time: str
    faculty_id: str
    course_id: str
    location: str | None = None
    delivery_mode: DeliveryMode | None = None

    @property
    def is_physical(self) -> bool:
        if not self.location:
            return False
        return self.delivery_mode in (None, DeliveryMode.physical)

    def as_record(self, *, course: Course | None = None, topic: str | None = None) -> LectureRecord:
        return LectureRecord(
            id=None,
            course_id=self.course_id,
            lecture_date=self.lecture_date,
            start_time=self.start_time,
            end_time=self.end_time,
            conducted_by=self.faculty_id,
            delivery_mode=DeliveryMode.physical if self.is_physical else DeliveryMode.online,
            location=self.location if self.is_physical else None,
            topic=topic,
            course_code=course.code if course else None,
            course_name=course.name if course else None,
        )


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    return parse_time_to_minutes(start_a) < parse_time_to_minutes(end_b) and parse_time_to_minutes(
        end_a
    ) > parse_time_to_minutes(start_b)


def overlapping(
    records: Iterable[RecordT],
    start_time: str,
    end_time: str,
    dimension: Callable[[RecordT], bool],
) -> list[RecordT]:
    """Records sharing the dimension whose time range overlaps ``start_time``-``end_time``."""
    return [
        record
        for record in records
        if dimension(record) and intervals_overlap(record.start_time, record.end_time, start_time, end_time)
    ]


def find_overlapping(
    records: Iterable[LectureRecord],
    placement: LecturePlacement,
    dimension: Dimension,
) -> list[LectureRecord]:
    same_day = (record for record in records if record.lecture_date == placement.lecture_date)
    return overlapping(same_day, placement.start_time, placement.end_time, dimension)


def instructor_dimension(faculty_id: str) -> Dimension:
    return lambda record: record.conducted_by == faculty_id


def room_dimension(location: str) -> Dimension:
    return lambda record: record.delivery_mode == DeliveryMode.physical and record.location == location


def cohort_dimension(course_id: str, shared_students: dict[str, set[str]]) -> Dimension:
    return lambda record: record.course_id != course_id and bool(shared_students.get(record.course_id))


def _lecture_details(record: LectureRecord) -> dict:
    return {
        "conflicting_course": {"id": record.course_id, "code": record.course_code, "name": record.course_name},
        "conflicting_lecture": {
            "id": record.id,
            "topic": record.topic,
            "location": record.location,
            "time_slot": record.time_slot,
        },
    }


class ConflictDetector:
    """Reports rule violations for a proposed lecture placement.

    Calendar rules (exam period, past date, weekend) come from the course's
    semester and the reference date; resource rules (instructor, room,
    student cohort) are one interval-overlap test applied per dimension over
    the non-cancelled lectures of the same date.
    """

    def __init__(self, store: LectureStore, today: date | None = None) -> None:
        self.store = store
        self.today = today
        self._courses: dict[str, Course] = {}
        self._shared: dict[str, dict[str, set[str]]] = {}

    def course(self, course_id: str) -> Course:
        if course_id not in self._courses:
            course = self.store.get_course(course_id)
            if course is None:
                raise ResourceNotFoundError("Course", course_id)
            self._courses[course_id] = course
        return self._courses[course_id]

    def week_of(self, course_id: str, lecture_date: date) -> int:
        course = self.course(course_id)
        return week_number(lecture_date, semester_start(course.year, course.semester_period))

    def detect(self, placement: LecturePlacement, exclude_lecture_id: str | None = None) -> ConflictReport:
        week = self.week_of(placement.course_id, placement.lecture_date)
        course = self.course(placement.course_id)
        conflicts: list[ConflictDetail] = []

        if is_exam_week(week):
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.exam_period,
                    severity=ConflictSeverity.error,
                    message=(
                        f"Week {week} is during examination period "
                        f"(weeks {EXAM_WEEKS.start}-{EXAM_WEEKS.stop - 1}). Regular lectures cannot be scheduled."
                    ),
                    details={
                        "week_number": week,
                        "semester": resolve_period(course.semester_period).value,
                        "year": course.year,
                    },
                )
            )

        today = self.today or date.today()
        if placement.lecture_date < today:
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.past_date,
                    severity=ConflictSeverity.warning,
                    message="Lecture date is in the past",
                    details={"lecture_date": placement.lecture_date.isoformat()},
                )
            )

        if placement.lecture_date.weekday() >= 5:
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.weekend,
                    severity=ConflictSeverity.warning,
                    message="Lecture scheduled on weekend",
                    details={
                        "day": day_name(placement.lecture_date.weekday()),
                        "lecture_date": placement.lecture_date.isoformat(),
                    },
                )
            )

        conflicts.extend(self.blocking(placement, exclude_lecture_id=exclude_lecture_id))
        return ConflictReport(week_number=week, conflicts=conflicts)

    def blocking(
        self,
        placement: LecturePlacement,
        exclude_lecture_id: str | None = None,
        pending: Iterable[LectureRecord] = (),
    ) -> list[ConflictDetail]:
        """Instructor, room and student conflicts only."""
        records = list(self.store.lectures_on(placement.lecture_date, exclude_lecture_id=exclude_lecture_id))
        records.extend(record for record in pending if record.lecture_date == placement.lecture_date)
        shared = self._shared_students(placement.course_id)
        conflicts: list[ConflictDetail] = []

        for record in find_overlapping(records, placement, instructor_dimension(placement.faculty_id)):
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.instructor,
                    severity=ConflictSeverity.error,
                    message=f"Instructor already teaching {record.course_code or record.course_id} at this time",
                    conflicting_lecture_id=record.id,
                    details=_lecture_details(record),
                )
            )

        if placement.is_physical:
            for record in find_overlapping(records, placement, room_dimension(placement.location)):
                conflicts.append(
                    ConflictDetail(
                        type=ConflictType.room,
                        severity=ConflictSeverity.error,
                        message=f"Room {placement.location} is already booked",
                        conflicting_lecture_id=record.id,
                        details={"location": placement.location, **_lecture_details(record)},
                    )
                )

        for record in find_overlapping(records, placement, cohort_dimension(placement.course_id, shared)):
            affected = len(shared[record.course_id])
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.student,
                    severity=ConflictSeverity.error,
                    message=(
                        f"{affected} student(s) have a conflicting class: "
                        f"{record.course_code or record.course_id}"
                    ),
                    affected_students=affected,
                    conflicting_lecture_id=record.id,
                    details={"affected_students": affected, **_lecture_details(record)},
                )
            )

        if conflicts:
            logger.debug(
                "CONFLICTS FOUND | course_id=%s | faculty_id=%s | date=%s | time=%s-%s | count=%s",
                placement.course_id,
                placement.faculty_id,
                placement.lecture_date,
                placement.start_time,
                placement.end_time,
                len(conflicts),
            )
        return conflicts

    def is_available(
        self,
        placement: LecturePlacement,
        exclude_lecture_id: str | None = None,
        pending: Iterable[LectureRecord] = (),
    ) -> bool:
        return not self.blocking(placement, exclude_lecture_id=exclude_lecture_id, pending=pending)

    def _shared_students(self, course_id: str) -> dict[str, set[str]]:
        if course_id not in self._shared:
            self._shared[course_id] = self.store.shared_students(course_id)
        return self._shared[course_id]
