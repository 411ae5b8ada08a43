from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from lectureplan.core.exceptions import ResourceNotFoundError, SchedulerError
from lectureplan.models.course import Course
from lectureplan.models.course_module import CourseModule
from lectureplan.models.lecture import AttendanceStatus, DeliveryMode, Lecture, LectureAttendance, LectureStatus
from lectureplan.schemas.conflict import ConflictReport, SlotSuggestion
from lectureplan.schemas.lecture import LectureCreate, LectureOut, LectureUpdate, ModuleLectures, ModuleSummary
from lectureplan.services.conflict_detector import ConflictDetector, LecturePlacement
from lectureplan.services.lecture_store import SqlAlchemyLectureStore, lock_lecture_dates
from lectureplan.services.suggestions import suggest_alternatives

logger = logging.getLogger(__name__)


@dataclass
class LectureWriteResult:
    lecture: Lecture | None = None
    report: ConflictReport | None = None
    suggestions: list[SlotSuggestion] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return self.lecture is None


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    return course


def _get_module(db: Session, course_id: str, module_id: str) -> CourseModule:
    module = db.get(CourseModule, module_id)
    if module is None or module.course_id != course_id:
        raise ResourceNotFoundError("Module", module_id)
    return module


def get_lecture_row(db: Session, lecture_id: str) -> Lecture:
    lecture = db.get(Lecture, lecture_id)
    if lecture is None:
        raise ResourceNotFoundError("Lecture", lecture_id)
    return lecture


def _reject(
    detector: ConflictDetector,
    report: ConflictReport,
    placement: LecturePlacement,
    *,
    exclude_lecture_id: str | None = None,
    suggestion_limit: int,
) -> LectureWriteResult:
    suggestions = suggest_alternatives(
        detector,
        lecture_date=placement.lecture_date,
        faculty_id=placement.faculty_id,
        course_id=placement.course_id,
        location=placement.location if placement.is_physical else None,
        exclude_lecture_id=exclude_lecture_id,
        limit=suggestion_limit,
    )
    return LectureWriteResult(report=report, suggestions=suggestions)


def create_lecture(
    db: Session,
    course_id: str,
    payload: LectureCreate,
    *,
    detector: ConflictDetector | None = None,
    suggestion_limit: int = 5,
) -> LectureWriteResult:
    course = _get_course(db, course_id)
    module = _get_module(db, course_id, payload.module_id) if payload.module_id else None
    detector = detector or ConflictDetector(SqlAlchemyLectureStore(db))

    placement = LecturePlacement(
        lecture_date=payload.lecture_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        faculty_id=payload.conducted_by,
        course_id=course.id,
        location=payload.location,
        delivery_mode=payload.delivery_mode,
    )
    lock_lecture_dates(db, [payload.lecture_date])
    report = detector.detect(placement)
    if report.has_blocking:
        logger.info(
            "LECTURE CREATE REJECTED | course_id=%s | date=%s | time=%s-%s | blocking=%s",
            course.id,
            payload.lecture_date,
            payload.start_time,
            payload.end_time,
            len(report.blocking),
        )
        return _reject(detector, report, placement, suggestion_limit=suggestion_limit)

    lecture = Lecture(
        course_id=course.id,
        module_id=module.id if module else None,
        lecture_date=payload.lecture_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        delivery_mode=payload.delivery_mode,
        location=payload.location,
        meeting_link=payload.meeting_link,
        topic=payload.topic or (module.title if module else None) or "Lecture",
        conducted_by=payload.conducted_by,
        week_number=report.week_number,
        status=LectureStatus.scheduled,
    )
    db.add(lecture)
    db.commit()
    db.refresh(lecture)
    logger.info("LECTURE CREATED | lecture_id=%s | course_id=%s | week=%s", lecture.id, course.id, lecture.week_number)
    return LectureWriteResult(lecture=lecture, report=report)


def update_lecture(
    db: Session,
    lecture_id: str,
    payload: LectureUpdate,
    *,
    detector: ConflictDetector | None = None,
    suggestion_limit: int = 5,
) -> LectureWriteResult:
    lecture = get_lecture_row(db, lecture_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise SchedulerError("No fields to update")

    if data.get("module_id"):
        _get_module(db, lecture.course_id, data["module_id"])

    final_mode = data.get("delivery_mode") or lecture.delivery_mode
    final_location = data["location"] if "location" in data else lecture.location
    final_link = data["meeting_link"] if "meeting_link" in data else lecture.meeting_link
    if final_mode == DeliveryMode.physical:
        if not final_location:
            raise SchedulerError("Location is required for physical classes")
        final_link = None
    else:
        if not final_link:
            raise SchedulerError("Meeting link is required for online classes")
        final_location = None

    final_date = data.get("lecture_date") or lecture.lecture_date
    final_start = data.get("start_time") or lecture.start_time
    final_end = data.get("end_time") or lecture.end_time
    if final_end <= final_start:
        raise SchedulerError("end_time must be after start_time")

    final_status = data.get("status") or lecture.status
    reactivated = lecture.status == LectureStatus.cancelled and final_status != LectureStatus.cancelled
    placement_changed = any(
        key in data for key in ("lecture_date", "start_time", "end_time", "location", "delivery_mode")
    )

    week = lecture.week_number
    if final_status != LectureStatus.cancelled and (placement_changed or reactivated):
        detector = detector or ConflictDetector(SqlAlchemyLectureStore(db))
        placement = LecturePlacement(
            lecture_date=final_date,
            start_time=final_start,
            end_time=final_end,
            faculty_id=lecture.conducted_by,
            course_id=lecture.course_id,
            location=final_location,
            delivery_mode=final_mode,
        )
        lock_lecture_dates(db, [final_date])
        report = detector.detect(placement, exclude_lecture_id=lecture.id)
        if report.has_blocking:
            logger.info(
                "LECTURE UPDATE REJECTED | lecture_id=%s | date=%s | time=%s-%s | blocking=%s",
                lecture.id,
                final_date,
                final_start,
                final_end,
                len(report.blocking),
            )
            return _reject(
                detector,
                report,
                placement,
                exclude_lecture_id=lecture.id,
                suggestion_limit=suggestion_limit,
            )
        week = report.week_number

    if "module_id" in data:
        lecture.module_id = data["module_id"]
    if "topic" in data:
        lecture.topic = data["topic"]
    lecture.lecture_date = final_date
    lecture.start_time = final_start
    lecture.end_time = final_end
    lecture.delivery_mode = final_mode
    lecture.location = final_location
    lecture.meeting_link = final_link
    lecture.week_number = week
    lecture.status = final_status
    db.commit()
    db.refresh(lecture)
    logger.info("LECTURE UPDATED | lecture_id=%s | fields=%s", lecture.id, ",".join(sorted(data)))
    return LectureWriteResult(lecture=lecture)


def cancel_lecture(db: Session, lecture_id: str) -> Lecture:
    lecture = get_lecture_row(db, lecture_id)
    if lecture.status != LectureStatus.cancelled:
        lecture.status = LectureStatus.cancelled
        db.commit()
        db.refresh(lecture)
        logger.info("LECTURE CANCELLED | lecture_id=%s | course_id=%s", lecture.id, lecture.course_id)
    return lecture


def _attendance_counts(db: Session, lecture_ids: Sequence[str]) -> dict[str, tuple[int, int]]:
    if not lecture_ids:
        return {}
    stmt = (
        select(
            LectureAttendance.lecture_id,
            func.count(LectureAttendance.id),
            func.sum(case((LectureAttendance.status == AttendanceStatus.present, 1), else_=0)),
        )
        .where(LectureAttendance.lecture_id.in_(lecture_ids))
        .group_by(LectureAttendance.lecture_id)
    )
    return {lecture_id: (total, present or 0) for lecture_id, total, present in db.execute(stmt).all()}


def lecture_views(
    db: Session,
    lectures: Sequence[Lecture],
    *,
    courses: dict[str, Course] | None = None,
) -> list[LectureOut]:
    module_ids = {lecture.module_id for lecture in lectures if lecture.module_id}
    titles: dict[str, str] = {}
    if module_ids:
        titles = dict(db.execute(select(CourseModule.id, CourseModule.title).where(CourseModule.id.in_(module_ids))).all())
    counts = _attendance_counts(db, [lecture.id for lecture in lectures])
    views: list[LectureOut] = []
    for lecture in lectures:
        total, present = counts.get(lecture.id, (0, 0))
        course = (courses or {}).get(lecture.course_id)
        views.append(
            LectureOut.model_validate(lecture).model_copy(
                update={
                    "module_title": titles.get(lecture.module_id) if lecture.module_id else None,
                    "course_code": course.code if course else None,
                    "course_name": course.name if course else None,
                    "attendance_count": total,
                    "present_count": present,
                }
            )
        )
    return views


def get_lecture(db: Session, lecture_id: str) -> LectureOut:
    lecture = get_lecture_row(db, lecture_id)
    course = db.get(Course, lecture.course_id)
    return lecture_views(db, [lecture], courses={course.id: course} if course else None)[0]


def list_course_lectures(db: Session, course_id: str) -> list[LectureOut]:
    course = _get_course(db, course_id)
    lectures = list(
        db.execute(
            select(Lecture)
            .where(Lecture.course_id == course_id)
            .order_by(Lecture.lecture_date, Lecture.start_time)
        ).scalars()
    )
    return lecture_views(db, lectures, courses={course.id: course})


def list_course_lectures_by_module(db: Session, course_id: str) -> list[ModuleLectures]:
    lectures = list_course_lectures(db, course_id)
    modules = {
        module.id: module
        for module in db.execute(select(CourseModule).where(CourseModule.course_id == course_id)).scalars()
    }

    grouped: dict[str | None, list[LectureOut]] = {}
    for lecture in lectures:
        key = lecture.module_id if lecture.module_id in modules else None
        grouped.setdefault(key, []).append(lecture)

    def sort_key(item: tuple[str | None, list[LectureOut]]) -> tuple[int, int]:
        module = modules.get(item[0]) if item[0] else None
        return (0, module.sequence) if module else (1, 0)

    result: list[ModuleLectures] = []
    for module_id, items in sorted(grouped.items(), key=sort_key):
        module = modules.get(module_id) if module_id else None
        items.sort(key=lambda lecture: (lecture.week_number, lecture.lecture_date, lecture.start_time))
        result.append(
            ModuleLectures(
                module=(
                    ModuleSummary(
                        id=module.id,
                        title=module.title,
                        sequence=module.sequence,
                        description=module.description,
                    )
                    if module
                    else None
                ),
                lectures=items,
            )
        )
    return result
