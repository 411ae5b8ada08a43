import datetime as dt

from pydantic import BaseModel, Field, field_validator, model_validator

from lectureplan.models.course_schedule import SessionType
from lectureplan.schemas.common import DAY_VALUES, parse_time_to_minutes, validate_time_value
from lectureplan.schemas.conflict import ConflictDetail

MAX_GENERATE_DAYS = 366


def _validate_day(value: str) -> str:
    if value not in DAY_VALUES:
        raise ValueError(f"Invalid day: {value}")
    return value


class ScheduleEntryCreate(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str
    room: str = Field(min_length=1, max_length=200)
    session_type: SessionType = SessionType.lecture

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_range(self) -> "ScheduleEntryCreate":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleEntryUpdate(BaseModel):
    day_of_week: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    room: str | None = Field(default=None, min_length=1, max_length=200)
    session_type: SessionType | None = None

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return _validate_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return validate_time_value(value)


class ScheduleEntryOut(BaseModel):
    id: str
    course_id: str
    day_of_week: str
    start_time: str
    end_time: str
    room: str | None
    session_type: SessionType
    created_at: dt.datetime | None = None

    model_config = {"from_attributes": True}


class ScheduleHours(BaseModel):
    valid: bool
    total_hours: float
    required_credits: int
    message: str


class CourseScheduleResponse(BaseModel):
    schedules: list[ScheduleEntryOut]
    validation: ScheduleHours


class ScheduleEntryCreatedResponse(CourseScheduleResponse):
    id: str


class ScheduleEntryConflictResponse(BaseModel):
    success: bool = False
    message: str
    conflicts: list[ConflictDetail]


class LectureGenerateRequest(BaseModel):
    start_date: dt.date
    end_date: dt.date
    faculty_id: str | None = Field(default=None, min_length=1, max_length=36)

    @model_validator(mode="after")
    def validate_range(self) -> "LectureGenerateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if (self.end_date - self.start_date).days >= MAX_GENERATE_DAYS:
            raise ValueError(f"Date range cannot exceed {MAX_GENERATE_DAYS} days")
        return self


class LectureGenerateResponse(BaseModel):
    course_id: str
    start_date: dt.date
    end_date: dt.date
    lectures_created: int
    skipped_existing: int
    skipped_outside_teaching_weeks: int
    lecture_ids: list[str] = Field(default_factory=list)


class GeneratedLectureConflicts(BaseModel):
    schedule_id: str
    lecture_date: dt.date
    start_time: str
    end_time: str
    conflicts: list[ConflictDetail]


class LectureGenerateConflictResponse(BaseModel):
    success: bool = False
    message: str
    lectures_created: int = 0
    conflicts: list[GeneratedLectureConflicts]


class WeeklyEntryOut(ScheduleEntryOut):
    course_code: str | None = None
    course_name: str | None = None
    faculty_id: str | None = None


class WeeklyDay(BaseModel):
    day: str
    entries: list[WeeklyEntryOut]
