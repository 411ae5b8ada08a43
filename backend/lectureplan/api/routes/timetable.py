from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lectureplan.api.deps import get_db
from lectureplan.schemas.course_schedule import WeeklyDay
from lectureplan.schemas.timetable import FacultyTimetableResponse, TimetableView
from lectureplan.services.course_schedules import weekly_timetable
from lectureplan.services.timetable import faculty_timetable

router = APIRouter()


@router.get("/faculty/{faculty_id}", response_model=FacultyTimetableResponse)
def get_faculty_timetable(
    faculty_id: str,
    view: TimetableView = Query(default=TimetableView.week),
    anchor: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
) -> FacultyTimetableResponse:
    return faculty_timetable(db, faculty_id, view, anchor)


@router.get("/weekly", response_model=list[WeeklyDay])
def get_weekly_timetable(
    faculty_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[WeeklyDay]:
    return weekly_timetable(db, faculty_id)
