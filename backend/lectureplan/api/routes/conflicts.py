import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from lectureplan.api.deps import get_conflict_detector
from lectureplan.core.config import get_settings
from lectureplan.schemas.conflict import (
    ConflictCheckDetails,
    ConflictCheckRequest,
    ConflictCheckResponse,
    CourseSummary,
    RequestedSlot,
)
from lectureplan.services.calendar import resolve_period
from lectureplan.services.conflict_detector import ConflictDetector, LecturePlacement
from lectureplan.services.slot_catalog import day_name
from lectureplan.services.suggestions import suggest_alternatives

router = APIRouter()
logger = logging.getLogger(__name__)


def _check(payload: ConflictCheckRequest, detector: ConflictDetector) -> ConflictCheckResponse:
    course = detector.course(payload.course_id)
    placement = LecturePlacement(
        lecture_date=payload.lecture_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        faculty_id=payload.faculty_id,
        course_id=payload.course_id,
        location=payload.location,
        delivery_mode=payload.delivery_mode,
    )
    report = detector.detect(placement, exclude_lecture_id=payload.exclude_lecture_id)

    suggestions = []
    if report.has_blocking:
        suggestions = suggest_alternatives(
            detector,
            lecture_date=payload.lecture_date,
            faculty_id=payload.faculty_id,
            course_id=payload.course_id,
            location=payload.location if placement.is_physical else None,
            exclude_lecture_id=payload.exclude_lecture_id,
            limit=get_settings().max_slot_suggestions,
        )

    logger.info(
        "CONFLICT CHECK | course_id=%s | faculty_id=%s | date=%s | time=%s-%s | blocking=%s | warnings=%s | suggestions=%s",
        payload.course_id,
        payload.faculty_id,
        payload.lecture_date,
        payload.start_time,
        payload.end_time,
        len(report.blocking),
        len(report.warnings),
        len(suggestions),
    )
    return ConflictCheckResponse(
        has_conflicts=bool(report.conflicts),
        blocking_conflicts=len(report.blocking),
        warning_conflicts=len(report.warnings),
        conflicts=report.conflicts,
        suggestions=suggestions,
        details=ConflictCheckDetails(
            course=CourseSummary(
                id=course.id,
                code=course.code,
                name=course.name,
                semester=resolve_period(course.semester_period).value,
                year=course.year,
            ),
            requested_slot=RequestedSlot(
                date=payload.lecture_date,
                day_of_week=day_name(payload.lecture_date.weekday()),
                time=f"{payload.start_time} - {payload.end_time}",
                week_number=report.week_number,
                location=payload.location or "Online",
            ),
        ),
    )


@router.get("/check", response_model=ConflictCheckResponse)
def check_conflicts(
    payload: Annotated[ConflictCheckRequest, Query()],
    detector: ConflictDetector = Depends(get_conflict_detector),
) -> ConflictCheckResponse:
    return _check(payload, detector)


@router.post("/check", response_model=ConflictCheckResponse)
def check_conflicts_body(
    payload: ConflictCheckRequest,
    detector: ConflictDetector = Depends(get_conflict_detector),
) -> ConflictCheckResponse:
    return _check(payload, detector)
