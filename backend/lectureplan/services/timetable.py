from __future__ import annotations

import calendar as _calendar
import logging
from datetime import date, timedelta

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from lectureplan.core.exceptions import ResourceNotFoundError
from lectureplan.models.course import Course
from lectureplan.models.enrollment import Enrollment, EnrollmentStatus
from lectureplan.models.faculty import Faculty
from lectureplan.models.lecture import Lecture, LectureStatus
from lectureplan.schemas.timetable import (
    CourseLoad,
    FacultySummary,
    FacultyTimetableResponse,
    TimetableStats,
    TimetableView,
    ViewInfo,
)
from lectureplan.services.calendar import resolve_period
from lectureplan.services.lectures import lecture_views

logger = logging.getLogger(__name__)


def view_range(view: TimetableView, anchor: date | None) -> tuple[date | None, date | None]:
    """Date window for a view; the semester view and a missing anchor are unbounded."""
    if anchor is None or view == TimetableView.semester:
        return None, None
    if view == TimetableView.week:
        monday = anchor - timedelta(days=anchor.weekday())
        return monday, monday + timedelta(days=6)
    last_day = _calendar.monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=1), anchor.replace(day=last_day)


def faculty_timetable(
    db: Session,
    faculty_id: str,
    view: TimetableView = TimetableView.week,
    anchor: date | None = None,
    *,
    today: date | None = None,
) -> FacultyTimetableResponse:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)
    today = today or date.today()

    range_start, range_end = view_range(view, anchor)
    stmt = select(Lecture).where(Lecture.conducted_by == faculty_id)
    if range_start is not None and range_end is not None:
        stmt = stmt.where(Lecture.lecture_date >= range_start, Lecture.lecture_date <= range_end)
    lectures = list(db.execute(stmt.order_by(Lecture.lecture_date, Lecture.start_time)).scalars())

    course_rows = list(
        db.execute(
            select(Course)
            .where(Course.id.in_(select(Lecture.course_id).where(Lecture.conducted_by == faculty_id)))
            .order_by(Course.year, Course.code)
        ).scalars()
    )
    courses = {course.id: course for course in course_rows}
    views = lecture_views(db, lectures, courses=courses)

    loads: list[CourseLoad] = []
    if course_rows:
        totals = {
            course_id: (total, completed or 0)
            for course_id, total, completed in db.execute(
                select(
                    Lecture.course_id,
                    func.count(Lecture.id),
                    func.sum(case((Lecture.status == LectureStatus.completed, 1), else_=0)),
                )
                .where(Lecture.conducted_by == faculty_id)
                .group_by(Lecture.course_id)
            ).all()
        }
        enrolled = dict(
            db.execute(
                select(Enrollment.course_id, func.count(Enrollment.id))
                .where(Enrollment.course_id.in_(list(courses)), Enrollment.status == EnrollmentStatus.active)
                .group_by(Enrollment.course_id)
            ).all()
        )
        for course in course_rows:
            total, completed = totals.get(course.id, (0, 0))
            loads.append(
                CourseLoad(
                    id=course.id,
                    code=course.code,
                    name=course.name,
                    semester=resolve_period(course.semester_period).value,
                    year=course.year,
                    total_lectures=total,
                    completed_lectures=completed,
                    enrolled_students=enrolled.get(course.id, 0),
                )
            )

    upcoming = [item for item in views if item.lecture_date >= today and item.status == LectureStatus.scheduled]
    by_date: dict[str, list[str]] = {}
    by_week: dict[int, list[str]] = {}
    for item in views:
        by_date.setdefault(item.lecture_date.isoformat(), []).append(item.id)
        by_week.setdefault(item.week_number, []).append(item.id)

    logger.debug(
        "FACULTY TIMETABLE | faculty_id=%s | view=%s | anchor=%s | lectures=%s",
        faculty_id,
        view.value,
        anchor,
        len(views),
    )
    return FacultyTimetableResponse(
        faculty=FacultySummary(
            id=faculty.id,
            name=faculty.name,
            email=faculty.email,
            department=faculty.department or "",
        ),
        stats=TimetableStats(
            total_courses=len(loads),
            total_lectures=len(views),
            completed_lectures=sum(1 for item in views if item.status == LectureStatus.completed),
            upcoming_lectures=len(upcoming),
            cancelled_lectures=sum(1 for item in views if item.status == LectureStatus.cancelled),
        ),
        courses=loads,
        lectures=views,
        next_lecture=upcoming[0] if upcoming else None,
        by_date=by_date,
        by_week=by_week,
        view_info=ViewInfo(view=view, date=anchor, range_start=range_start, range_end=range_end),
    )
