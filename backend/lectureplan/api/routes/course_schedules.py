from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lectureplan.api.deps import get_conflict_detector, get_db
from lectureplan.schemas.course_schedule import (
    CourseScheduleResponse,
    LectureGenerateConflictResponse,
    LectureGenerateRequest,
    LectureGenerateResponse,
    ScheduleEntryConflictResponse,
    ScheduleEntryCreate,
    ScheduleEntryCreatedResponse,
    ScheduleEntryOut,
    ScheduleEntryUpdate,
)
from lectureplan.services import course_schedules as schedule_service
from lectureplan.services.conflict_detector import ConflictDetector

router = APIRouter()


def _conflict_response(result: schedule_service.ScheduleEntryWriteResult) -> JSONResponse:
    body = ScheduleEntryConflictResponse(
        message="Schedule entry conflicts with the weekly timetable",
        conflicts=result.conflicts,
    )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))


@router.get("/{course_id}/schedules", response_model=CourseScheduleResponse)
def get_course_schedule(course_id: str, db: Session = Depends(get_db)) -> CourseScheduleResponse:
    entries, validation = schedule_service.list_course_schedule(db, course_id)
    return CourseScheduleResponse(
        schedules=[ScheduleEntryOut.model_validate(entry) for entry in entries],
        validation=validation,
    )


@router.post(
    "/{course_id}/schedules",
    response_model=ScheduleEntryCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ScheduleEntryConflictResponse}},
)
def create_schedule_entry(course_id: str, payload: ScheduleEntryCreate, db: Session = Depends(get_db)):
    result = schedule_service.create_schedule_entry(db, course_id, payload)
    if result.rejected:
        return _conflict_response(result)
    entries, validation = schedule_service.list_course_schedule(db, course_id)
    return ScheduleEntryCreatedResponse(
        id=result.entry.id,
        schedules=[ScheduleEntryOut.model_validate(entry) for entry in entries],
        validation=validation,
    )


@router.put(
    "/{course_id}/schedules/{schedule_id}",
    response_model=ScheduleEntryOut,
    responses={409: {"model": ScheduleEntryConflictResponse}},
)
def update_schedule_entry(
    course_id: str,
    schedule_id: str,
    payload: ScheduleEntryUpdate,
    db: Session = Depends(get_db),
):
    result = schedule_service.update_schedule_entry(db, course_id, schedule_id, payload)
    if result.rejected:
        return _conflict_response(result)
    return ScheduleEntryOut.model_validate(result.entry)


@router.delete("/{course_id}/schedules/{schedule_id}")
def delete_schedule_entry(course_id: str, schedule_id: str, db: Session = Depends(get_db)) -> dict:
    schedule_service.delete_schedule_entry(db, course_id, schedule_id)
    return {"success": True}


@router.post(
    "/{course_id}/lectures/generate",
    response_model=LectureGenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": LectureGenerateConflictResponse}},
)
def generate_lectures(
    course_id: str,
    payload: LectureGenerateRequest,
    db: Session = Depends(get_db),
    detector: ConflictDetector = Depends(get_conflict_detector),
):
    result = schedule_service.generate_lectures(db, course_id, payload, detector=detector)
    if not result.success:
        body = LectureGenerateConflictResponse(
            message=f"{len(result.conflicts)} generated lectures conflict with the current timetable",
            conflicts=result.conflicts,
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))

    return LectureGenerateResponse(
        course_id=course_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        lectures_created=len(result.lectures),
        skipped_existing=result.skipped_existing,
        skipped_outside_teaching_weeks=result.skipped_outside_teaching_weeks,
        lecture_ids=[lecture.id for lecture in result.lectures],
    )
