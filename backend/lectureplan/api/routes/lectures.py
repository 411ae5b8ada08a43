from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lectureplan.api.deps import get_conflict_detector, get_db
from lectureplan.core.config import get_settings
from lectureplan.schemas.lecture import (
    LectureConflictResponse,
    LectureCreate,
    LectureOut,
    LectureUpdate,
    ModuleLectures,
)
from lectureplan.services import lectures as lecture_service
from lectureplan.services.conflict_detector import ConflictDetector

router = APIRouter()


def _conflict_response(result: lecture_service.LectureWriteResult) -> JSONResponse:
    blocking = result.report.blocking if result.report else []
    body = LectureConflictResponse(
        message="Lecture conflicts with the existing timetable",
        conflicts=blocking,
        suggestions=result.suggestions,
    )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))


@router.get("/courses/{course_id}/lectures", response_model=list[LectureOut] | list[ModuleLectures])
def list_lectures(
    course_id: str,
    group_by_module: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if group_by_module:
        return lecture_service.list_course_lectures_by_module(db, course_id)
    return lecture_service.list_course_lectures(db, course_id)


@router.post(
    "/courses/{course_id}/lectures",
    response_model=LectureOut,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": LectureConflictResponse}},
)
def create_lecture(
    course_id: str,
    payload: LectureCreate,
    db: Session = Depends(get_db),
    detector: ConflictDetector = Depends(get_conflict_detector),
):
    result = lecture_service.create_lecture(
        db,
        course_id,
        payload,
        detector=detector,
        suggestion_limit=get_settings().max_slot_suggestions,
    )
    if result.rejected:
        return _conflict_response(result)
    return lecture_service.get_lecture(db, result.lecture.id)


@router.get("/lectures/{lecture_id}", response_model=LectureOut)
def get_lecture(lecture_id: str, db: Session = Depends(get_db)) -> LectureOut:
    return lecture_service.get_lecture(db, lecture_id)


@router.put(
    "/lectures/{lecture_id}",
    response_model=LectureOut,
    responses={409: {"model": LectureConflictResponse}},
)
def update_lecture(
    lecture_id: str,
    payload: LectureUpdate,
    db: Session = Depends(get_db),
    detector: ConflictDetector = Depends(get_conflict_detector),
):
    result = lecture_service.update_lecture(
        db,
        lecture_id,
        payload,
        detector=detector,
        suggestion_limit=get_settings().max_slot_suggestions,
    )
    if result.rejected:
        return _conflict_response(result)
    return lecture_service.get_lecture(db, lecture_id)


@router.delete("/lectures/{lecture_id}", response_model=LectureOut)
def cancel_lecture(lecture_id: str, db: Session = Depends(get_db)) -> LectureOut:
    lecture_service.cancel_lecture(db, lecture_id)
    return lecture_service.get_lecture(db, lecture_id)
