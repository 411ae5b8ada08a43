import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field

from lectureplan.schemas.lecture import LectureOut


class TimetableView(str, Enum):
    week = "week"
    month = "month"
    semester = "semester"


class FacultySummary(BaseModel):
    id: str
    name: str
    email: str
    department: str = ""


class TimetableStats(BaseModel):
    total_courses: int
    total_lectures: int
    completed_lectures: int
    upcoming_lectures: int
    cancelled_lectures: int


class CourseLoad(BaseModel):
    id: str
    code: str
    name: str
    semester: str
    year: int
    total_lectures: int
    completed_lectures: int
    enrolled_students: int


class ViewInfo(BaseModel):
    view: TimetableView
    date: dt.date | None = None
    range_start: dt.date | None = None
    range_end: dt.date | None = None


class FacultyTimetableResponse(BaseModel):
    faculty: FacultySummary
    stats: TimetableStats
    courses: list[CourseLoad]
    lectures: list[LectureOut]
    next_lecture: LectureOut | None = None
    by_date: dict[str, list[str]] = Field(default_factory=dict)
    by_week: dict[int, list[str]] = Field(default_factory=dict)
    view_info: ViewInfo
