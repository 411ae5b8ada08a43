"""Recurring weekly course schedules.

A course meets on fixed weekdays and times. Entries are checked for room,
instructor and student clashes against every other weekly entry on the same
day, with the same overlap predicate the dated conflict detector uses. The
instructor of an entry is the faculty member assigned to its course.
``generate_lectures`` turns the weekly pattern into dated lectures for a date
range, validated like a confirmed auto-schedule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from lectureplan.core.exceptions import ResourceNotFoundError, SchedulerError
from lectureplan.models.course import Course
from lectureplan.models.course_schedule import CourseSchedule
from lectureplan.models.lecture import DeliveryMode, Lecture, LectureStatus
from lectureplan.schemas.common import parse_time_to_minutes
from lectureplan.schemas.conflict import ConflictDetail, ConflictSeverity, ConflictType
from lectureplan.schemas.course_schedule import (
    GeneratedLectureConflicts,
    LectureGenerateRequest,
    ScheduleEntryCreate,
    ScheduleEntryUpdate,
    ScheduleHours,
    WeeklyDay,
    WeeklyEntryOut,
)
from lectureplan.services.calendar import is_teaching_week
from lectureplan.services.conflict_detector import ConflictDetector, LecturePlacement, overlapping
from lectureplan.services.lecture_store import LectureRecord, SqlAlchemyLectureStore, lock_lecture_dates
from lectureplan.services.slot_catalog import DAY_NAMES, weekday_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyEntryRecord:
    id: str
    course_id: str
    day_of_week: str
    start_time: str
    end_time: str
    room: str | None
    faculty_id: str | None
    course_code: str | None
    course_name: str | None

    @property
    def time_slot(self) -> str:
        return f"{self.start_time} - {self.end_time}"


@dataclass
class ScheduleEntryWriteResult:
    entry: CourseSchedule | None = None
    conflicts: list[ConflictDetail] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return bool(self.conflicts)


@dataclass
class GenerateResult:
    lectures: list[Lecture] = field(default_factory=list)
    conflicts: list[GeneratedLectureConflicts] = field(default_factory=list)
    skipped_existing: int = 0
    skipped_outside_teaching_weeks: int = 0

    @property
    def success(self) -> bool:
        return not self.conflicts


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    return course


def get_schedule_row(db: Session, course_id: str, schedule_id: str) -> CourseSchedule:
    entry = db.get(CourseSchedule, schedule_id)
    if entry is None or entry.course_id != course_id:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return entry


def _sort_key(entry: CourseSchedule | WeeklyEntryRecord) -> tuple[int, str]:
    return weekday_index(entry.day_of_week), entry.start_time


def list_schedule_rows(db: Session, course_id: str) -> list[CourseSchedule]:
    entries = db.execute(select(CourseSchedule).where(CourseSchedule.course_id == course_id)).scalars()
    return sorted(entries, key=_sort_key)


def list_course_schedule(db: Session, course_id: str) -> tuple[list[CourseSchedule], ScheduleHours]:
    course = _get_course(db, course_id)
    entries = list_schedule_rows(db, course.id)
    return entries, schedule_hours(course, entries)


def schedule_hours(course: Course, entries: list[CourseSchedule]) -> ScheduleHours:
    """Weekly contact hours must equal the course's credits."""
    total_minutes = sum(parse_time_to_minutes(item.end_time) - parse_time_to_minutes(item.start_time) for item in entries)
    total_hours = round(total_minutes / 60, 2)
    valid = total_minutes == course.credits * 60
    if valid:
        message = "Schedule meets credit requirements"
    else:
        message = f"Schedule has {total_hours:g} hours but course requires {course.credits} credits (hours)"
    return ScheduleHours(valid=valid, total_hours=total_hours, required_credits=course.credits, message=message)


def _entries_on(db: Session, day: str, exclude_schedule_id: str | None = None) -> list[WeeklyEntryRecord]:
    stmt = (
        select(CourseSchedule, Course.code, Course.name, Course.faculty_id)
        .outerjoin(Course, Course.id == CourseSchedule.course_id)
        .where(CourseSchedule.day_of_week == day)
        .order_by(CourseSchedule.start_time, CourseSchedule.id)
    )
    if exclude_schedule_id is not None:
        stmt = stmt.where(CourseSchedule.id != exclude_schedule_id)
    return [
        WeeklyEntryRecord(
            id=entry.id,
            course_id=entry.course_id,
            day_of_week=entry.day_of_week,
            start_time=entry.start_time,
            end_time=entry.end_time,
            room=entry.room,
            faculty_id=faculty_id,
            course_code=code,
            course_name=name,
        )
        for entry, code, name, faculty_id in db.execute(stmt).all()
    ]


def _entry_details(record: WeeklyEntryRecord) -> dict:
    return {
        "conflicting_course": {"id": record.course_id, "code": record.course_code, "name": record.course_name},
        "conflicting_schedule": {
            "id": record.id,
            "day_of_week": record.day_of_week,
            "time_slot": record.time_slot,
            "room": record.room,
        },
    }


def _same_room(room: str):
    return lambda record: record.room == room


def _same_instructor(course: Course):
    return lambda record: record.faculty_id == course.faculty_id and record.course_id != course.id


def _shared_cohort(course: Course, shared: dict[str, set[str]]):
    return lambda record: record.course_id != course.id and bool(shared.get(record.course_id))


def weekly_conflicts(
    db: Session,
    course: Course,
    day: str,
    start_time: str,
    end_time: str,
    room: str | None,
    exclude_schedule_id: str | None = None,
) -> list[ConflictDetail]:
    records = _entries_on(db, day, exclude_schedule_id=exclude_schedule_id)
    conflicts: list[ConflictDetail] = []

    if room:
        for record in overlapping(records, start_time, end_time, _same_room(room)):
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.room,
                    severity=ConflictSeverity.error,
                    message=(
                        f"Room {room} is already booked on {day} from {record.start_time} "
                        f"to {record.end_time} for {record.course_name or record.course_id}"
                    ),
                    details={"room": room, **_entry_details(record)},
                )
            )

    if course.faculty_id:
        for record in overlapping(records, start_time, end_time, _same_instructor(course)):
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.instructor,
                    severity=ConflictSeverity.error,
                    message=(
                        f"Lecturer is already scheduled to teach {record.course_name or record.course_id} "
                        f"on {day} from {record.start_time} to {record.end_time}"
                    ),
                    details=_entry_details(record),
                )
            )

    shared = SqlAlchemyLectureStore(db).shared_students(course.id)
    for record in overlapping(records, start_time, end_time, _shared_cohort(course, shared)):
        affected = len(shared[record.course_id])
        conflicts.append(
            ConflictDetail(
                type=ConflictType.student,
                severity=ConflictSeverity.error,
                message=f"{affected} student(s) have a conflicting class: {record.course_code or record.course_id}",
                affected_students=affected,
                details={"affected_students": affected, **_entry_details(record)},
            )
        )
    return conflicts


def create_schedule_entry(db: Session, course_id: str, payload: ScheduleEntryCreate) -> ScheduleEntryWriteResult:
    course = _get_course(db, course_id)
    conflicts = weekly_conflicts(db, course, payload.day_of_week, payload.start_time, payload.end_time, payload.room)
    if conflicts:
        logger.info(
            "SCHEDULE ENTRY REJECTED | course_id=%s | day=%s | time=%s-%s | conflicts=%s",
            course.id,
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            len(conflicts),
        )
        return ScheduleEntryWriteResult(conflicts=conflicts)

    entry = CourseSchedule(course_id=course.id, **payload.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("SCHEDULE ENTRY CREATED | schedule_id=%s | course_id=%s | day=%s", entry.id, course.id, entry.day_of_week)
    return ScheduleEntryWriteResult(entry=entry)


def update_schedule_entry(
    db: Session,
    course_id: str,
    schedule_id: str,
    payload: ScheduleEntryUpdate,
) -> ScheduleEntryWriteResult:
    course = _get_course(db, course_id)
    entry = get_schedule_row(db, course.id, schedule_id)
    data = payload.model_dump(exclude_unset=True)
    data = {key: value for key, value in data.items() if value is not None}
    if not data:
        raise SchedulerError("No fields to update")

    day = data.get("day_of_week", entry.day_of_week)
    start_time = data.get("start_time", entry.start_time)
    end_time = data.get("end_time", entry.end_time)
    room = data.get("room", entry.room)
    if parse_time_to_minutes(end_time) <= parse_time_to_minutes(start_time):
        raise SchedulerError("end_time must be after start_time", details={"start_time": start_time, "end_time": end_time})

    if any(key in data for key in ("day_of_week", "start_time", "end_time", "room")):
        conflicts = weekly_conflicts(db, course, day, start_time, end_time, room, exclude_schedule_id=entry.id)
        if conflicts:
            logger.info(
                "SCHEDULE ENTRY UPDATE REJECTED | schedule_id=%s | day=%s | time=%s-%s | conflicts=%s",
                entry.id,
                day,
                start_time,
                end_time,
                len(conflicts),
            )
            return ScheduleEntryWriteResult(entry=entry, conflicts=conflicts)

    for key, value in data.items():
        setattr(entry, key, value)
    db.commit()
    db.refresh(entry)
    logger.info("SCHEDULE ENTRY UPDATED | schedule_id=%s | fields=%s", entry.id, ",".join(sorted(data)))
    return ScheduleEntryWriteResult(entry=entry)


def delete_schedule_entry(db: Session, course_id: str, schedule_id: str) -> None:
    entry = get_schedule_row(db, course_id, schedule_id)
    # Generated lectures stay; they lose the link to the weekly entry.
    db.execute(update(Lecture).where(Lecture.schedule_id == entry.id).values(schedule_id=None))
    db.delete(entry)
    db.commit()
    logger.info("SCHEDULE ENTRY DELETED | schedule_id=%s | course_id=%s", schedule_id, course_id)


def _dates_between(start: date, end: date):
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def generate_lectures(
    db: Session,
    course_id: str,
    payload: LectureGenerateRequest,
    *,
    detector: ConflictDetector | None = None,
) -> GenerateResult:
    """Create dated lectures from the weekly pattern, all or nothing.

    Dates outside the teaching weeks and slots the course already holds a
    lecture for are skipped. Remaining lectures are checked against stored
    lectures and against each other before anything is written.
    """
    course = _get_course(db, course_id)
    faculty_id = payload.faculty_id or course.faculty_id
    if not faculty_id:
        raise SchedulerError("A faculty member is required to generate lectures", details={"course_id": course.id})
    entries = list_schedule_rows(db, course.id)
    if not entries:
        raise SchedulerError("No weekly schedule found for this course", details={"course_id": course.id})

    detector = detector or ConflictDetector(SqlAlchemyLectureStore(db))
    held = {
        (lecture_date, start_time)
        for lecture_date, start_time in db.execute(
            select(Lecture.lecture_date, Lecture.start_time).where(
                Lecture.course_id == course.id,
                Lecture.status != LectureStatus.cancelled,
                Lecture.lecture_date >= payload.start_date,
                Lecture.lecture_date <= payload.end_date,
            )
        ).all()
    }

    result = GenerateResult()
    candidates: list[tuple[CourseSchedule, date, int]] = []
    for entry in entries:
        target = weekday_index(entry.day_of_week)
        for day in _dates_between(payload.start_date, payload.end_date):
            if day.weekday() != target:
                continue
            if (day, entry.start_time) in held:
                result.skipped_existing += 1
                continue
            week = detector.week_of(course.id, day)
            if not is_teaching_week(week):
                result.skipped_outside_teaching_weeks += 1
                continue
            candidates.append((entry, day, week))
    candidates.sort(key=lambda item: (item[1], item[0].start_time))

    lock_lecture_dates(db, [day for _, day, _ in candidates])
    pending: list[LectureRecord] = []
    for entry, day, _ in candidates:
        placement = LecturePlacement(
            lecture_date=day,
            start_time=entry.start_time,
            end_time=entry.end_time,
            faculty_id=faculty_id,
            course_id=course.id,
            location=entry.room,
            delivery_mode=DeliveryMode.physical if entry.room else DeliveryMode.online,
        )
        conflicts = detector.blocking(placement, pending=pending)
        if conflicts:
            result.conflicts.append(
                GeneratedLectureConflicts(
                    schedule_id=entry.id,
                    lecture_date=day,
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    conflicts=conflicts,
                )
            )
        pending.append(placement.as_record(course=course))

    if result.conflicts:
        logger.warning(
            "LECTURE GENERATION REJECTED | course_id=%s | faculty_id=%s | candidates=%s | conflicting=%s",
            course.id,
            faculty_id,
            len(candidates),
            len(result.conflicts),
        )
        return result

    lectures = [
        Lecture(
            course_id=course.id,
            schedule_id=entry.id,
            lecture_date=day,
            start_time=entry.start_time,
            end_time=entry.end_time,
            delivery_mode=DeliveryMode.physical if entry.room else DeliveryMode.online,
            location=entry.room,
            topic=entry.session_type.value.capitalize(),
            conducted_by=faculty_id,
            week_number=week,
            status=LectureStatus.scheduled,
        )
        for entry, day, week in candidates
    ]
    try:
        db.add_all(lectures)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("LECTURE GENERATION FAILED | course_id=%s | candidates=%s", course.id, len(candidates))
        raise
    for lecture in lectures:
        db.refresh(lecture)
    result.lectures = lectures

    logger.info(
        "LECTURES GENERATED | course_id=%s | faculty_id=%s | created=%s | skipped_existing=%s | skipped_outside=%s",
        course.id,
        faculty_id,
        len(lectures),
        result.skipped_existing,
        result.skipped_outside_teaching_weeks,
    )
    return result


def weekly_timetable(db: Session, faculty_id: str | None = None) -> list[WeeklyDay]:
    stmt = select(CourseSchedule, Course.code, Course.name, Course.faculty_id).outerjoin(
        Course, Course.id == CourseSchedule.course_id
    )
    if faculty_id is not None:
        stmt = stmt.where(Course.faculty_id == faculty_id)
    by_day: dict[str, list[WeeklyEntryOut]] = {day: [] for day in DAY_NAMES}
    for entry, code, name, owner in db.execute(stmt).all():
        by_day[entry.day_of_week].append(
            WeeklyEntryOut.model_validate(entry).model_copy(
                update={"course_code": code, "course_name": name, "faculty_id": owner}
            )
        )
    return [
        WeeklyDay(day=day, entries=sorted(entries, key=lambda item: (item.start_time, item.id)))
        for day, entries in by_day.items()
    ]
