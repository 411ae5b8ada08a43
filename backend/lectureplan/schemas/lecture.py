from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from lectureplan.models.lecture import DeliveryMode, LectureStatus
from lectureplan.schemas.common import parse_time_to_minutes, validate_time_value
from lectureplan.schemas.conflict import ConflictDetail, SlotSuggestion


class LectureCreate(BaseModel):
    module_id: str | None = Field(default=None, max_length=36)
    lecture_date: date
    start_time: str
    end_time: str
    delivery_mode: DeliveryMode
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = Field(default=None, max_length=500)
    topic: str | None = Field(default=None, max_length=500)
    conducted_by: str = Field(min_length=1, max_length=36)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_lecture(self) -> "LectureCreate":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.delivery_mode == DeliveryMode.physical:
            if not self.location:
                raise ValueError("Location is required for physical classes")
            self.meeting_link = None
        else:
            if not self.meeting_link:
                raise ValueError("Meeting link is required for online classes")
            self.location = None
        return self


class LectureUpdate(BaseModel):
    module_id: str | None = Field(default=None, max_length=36)
    lecture_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    delivery_mode: DeliveryMode | None = None
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = Field(default=None, max_length=500)
    topic: str | None = Field(default=None, max_length=500)
    status: LectureStatus | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return validate_time_value(value)


class LectureOut(BaseModel):
    id: str
    course_id: str
    module_id: str | None
    schedule_id: str | None = None
    lecture_date: date
    start_time: str
    end_time: str
    delivery_mode: DeliveryMode
    location: str | None
    meeting_link: str | None
    topic: str | None
    conducted_by: str
    week_number: int
    status: LectureStatus
    created_at: datetime | None = None
    module_title: str | None = None
    course_code: str | None = None
    course_name: str | None = None
    attendance_count: int = 0
    present_count: int = 0

    model_config = {"from_attributes": True}


class ModuleSummary(BaseModel):
    id: str
    title: str
    sequence: int
    description: str | None = None


class ModuleLectures(BaseModel):
    module: ModuleSummary | None
    lectures: list[LectureOut]


class LectureConflictResponse(BaseModel):
    success: bool = False
    message: str
    conflicts: list[ConflictDetail]
    suggestions: list[SlotSuggestion] = Field(default_factory=list)
