import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from lectureplan.api.deps import get_db, get_lecture_store
from lectureplan.core.exceptions import CapacityError, ResourceNotFoundError
from lectureplan.models.course import Course
from lectureplan.models.course_module import CourseModule
from lectureplan.schemas.conflict import CourseSummary
from lectureplan.schemas.schedule import (
    AutoSchedulePreviewResponse,
    AutoScheduleRequest,
    PreferencesSummary,
    ScheduleConfirmRequest,
    ScheduleConfirmResponse,
    ScheduleConflictResponse,
)
from lectureplan.services.auto_scheduler import AutoScheduler
from lectureplan.services.calendar import TEACHING_WEEKS, resolve_period
from lectureplan.services.lecture_store import SqlAlchemyLectureStore
from lectureplan.services.slot_catalog import slot_for_start

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    return course


def _course_summary(course: Course) -> CourseSummary:
    return CourseSummary(
        id=course.id,
        code=course.code,
        name=course.name,
        semester=resolve_period(course.semester_period).value,
        year=course.year,
    )


@router.post("/{course_id}/auto-schedule", response_model=AutoSchedulePreviewResponse)
def preview_auto_schedule(
    course_id: str,
    payload: AutoScheduleRequest,
    db: Session = Depends(get_db),
    store: SqlAlchemyLectureStore = Depends(get_lecture_store),
) -> AutoSchedulePreviewResponse:
    course = _load_course(db, course_id)
    modules = list(
        db.execute(
            select(CourseModule).where(CourseModule.course_id == course_id).order_by(CourseModule.sequence)
        ).scalars()
    )
    logger.info(
        "AUTO SCHEDULE PREVIEW START | course_id=%s | faculty_id=%s | modules=%s | days=%s | times=%s",
        course_id,
        payload.faculty_id,
        len(modules),
        ",".join(payload.preferences.preferred_days) or "-",
        ",".join(payload.preferences.preferred_times) or "-",
    )

    proposal = AutoScheduler(store).propose(course, modules, payload.faculty_id, payload.preferences)
    if proposal.capacity is not None:
        raise CapacityError(
            f"Total module duration exceeds {TEACHING_WEEKS} weeks",
            details=proposal.capacity.model_dump(),
        )

    preferences = payload.preferences
    labels = [slot.label for slot in map(slot_for_start, preferences.preferred_times) if slot is not None]
    return AutoSchedulePreviewResponse(
        success=bool(proposal.placements),
        course=_course_summary(course),
        summary=proposal.summary,
        schedule=proposal.placements,
        conflicts=proposal.unresolved,
        preferences=PreferencesSummary(
            delivery_mode=preferences.delivery_mode,
            location=preferences.location or "Online",
            preferred_days=preferences.preferred_days,
            preferred_times=labels,
        ),
        next_steps=proposal.next_steps,
    )


@router.put(
    "/{course_id}/auto-schedule",
    response_model=ScheduleConfirmResponse,
    responses={409: {"model": ScheduleConflictResponse}},
)
def confirm_auto_schedule(
    course_id: str,
    payload: ScheduleConfirmRequest,
    db: Session = Depends(get_db),
    store: SqlAlchemyLectureStore = Depends(get_lecture_store),
):
    course = _load_course(db, course_id)
    result = AutoScheduler(store).confirm(db, course, payload.faculty_id, payload.schedule)
    if not result.success:
        body = ScheduleConflictResponse(
            message=f"{len(result.conflicts)} of {len(payload.schedule)} lectures conflict with the current timetable",
            conflicts=result.conflicts,
        )
        return JSONResponse(status_code=409, content=body.model_dump(mode="json"))

    return ScheduleConfirmResponse(
        success=True,
        message=f"Successfully scheduled {len(result.lectures)} lectures",
        lectures_created=len(result.lectures),
        lecture_ids=[lecture.id for lecture in result.lectures],
    )
