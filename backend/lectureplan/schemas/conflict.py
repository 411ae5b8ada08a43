import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from lectureplan.models.lecture import DeliveryMode
from lectureplan.schemas.common import parse_time_to_minutes, validate_time_value


class ConflictType(str, Enum):
    instructor = "instructor"
    room = "room"
    student = "student"
    exam_period = "exam_period"
    past_date = "past_date"
    weekend = "weekend"


class ConflictSeverity(str, Enum):
    error = "error"
    warning = "warning"


BLOCKING_TYPES = frozenset({ConflictType.instructor, ConflictType.room, ConflictType.student, ConflictType.exam_period})
RESOURCE_TYPES = frozenset({ConflictType.instructor, ConflictType.room, ConflictType.student})


class ConflictDetail(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    message: str
    affected_students: int | None = None
    conflicting_lecture_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_blocking(self) -> bool:
        return self.severity == ConflictSeverity.error


class ConflictReport(BaseModel):
    week_number: int | None = None
    conflicts: list[ConflictDetail] = Field(default_factory=list)

    @property
    def blocking(self) -> list[ConflictDetail]:
        return [item for item in self.conflicts if item.is_blocking]

    @property
    def warnings(self) -> list[ConflictDetail]:
        return [item for item in self.conflicts if not item.is_blocking]

    @property
    def has_blocking(self) -> bool:
        return any(item.is_blocking for item in self.conflicts)


class SlotSuggestion(BaseModel):
    date: dt.date
    day_of_week: str
    time_slot: str
    start_time: str
    end_time: str
    available: bool = True


class RequestedSlot(BaseModel):
    date: dt.date
    day_of_week: str
    time: str
    week_number: int
    location: str


class CourseSummary(BaseModel):
    id: str
    code: str
    name: str
    semester: str
    year: int


class ConflictCheckDetails(BaseModel):
    course: CourseSummary
    requested_slot: RequestedSlot


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    blocking_conflicts: int
    warning_conflicts: int
    conflicts: list[ConflictDetail]
    suggestions: list[SlotSuggestion]
    details: ConflictCheckDetails


class ConflictCheckRequest(BaseModel):
    lecture_date: dt.date
    start_time: str
    end_time: str
    faculty_id: str = Field(min_length=1, max_length=36)
    course_id: str = Field(min_length=1, max_length=36)
    location: str | None = Field(default=None, max_length=200)
    delivery_mode: DeliveryMode | None = None
    exclude_lecture_id: str | None = Field(default=None, max_length=36)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_range(self) -> "ConflictCheckRequest":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self
