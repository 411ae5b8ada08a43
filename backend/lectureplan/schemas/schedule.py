from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from lectureplan.models.lecture import DeliveryMode
from lectureplan.schemas.common import DAY_VALUES, parse_time_to_minutes, validate_time_value
from lectureplan.schemas.conflict import ConflictDetail, CourseSummary


class SchedulePreferences(BaseModel):
    preferred_days: list[str] = Field(default_factory=list, max_length=7)
    preferred_times: list[str] = Field(default_factory=list, max_length=24)
    delivery_mode: DeliveryMode = DeliveryMode.physical
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = Field(default=None, max_length=500)

    @field_validator("preferred_days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        days = [item.strip() for item in value]
        invalid = [item for item in days if item not in DAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid day value(s): {', '.join(invalid)}")
        return days

    @field_validator("preferred_times")
    @classmethod
    def validate_times(cls, value: list[str]) -> list[str]:
        return [validate_time_value(item.strip()) for item in value]

    @model_validator(mode="after")
    def validate_delivery_target(self) -> "SchedulePreferences":
        if self.delivery_mode == DeliveryMode.physical:
            if not (self.location or "").strip():
                raise ValueError("Location is required for physical delivery mode")
            self.meeting_link = None
        else:
            if not (self.meeting_link or "").strip():
                raise ValueError("Meeting link is required for online delivery mode")
            self.location = None
        return self


class AutoScheduleRequest(BaseModel):
    faculty_id: str = Field(min_length=1, max_length=36)
    preferences: SchedulePreferences


class ProposedLecture(BaseModel):
    module_id: str | None = None
    module_title: str | None = None
    module_sequence: int | None = None
    week_number: int | None = None
    lecture_date: date
    day_of_week: str | None = None
    start_time: str
    end_time: str
    time_slot: str | None = None
    delivery_mode: DeliveryMode
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = Field(default=None, max_length=500)
    topic: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_lecture(self) -> "ProposedLecture":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.delivery_mode == DeliveryMode.physical and not self.location:
            raise ValueError("Location is required for physical delivery mode")
        if self.delivery_mode == DeliveryMode.online and not self.meeting_link:
            raise ValueError("Meeting link is required for online delivery mode")
        return self


class UnresolvedWeek(BaseModel):
    module_id: str
    module_title: str
    week: int
    error: str


class CapacityModule(BaseModel):
    title: str
    sequence: int
    duration_weeks: int


class CapacityReport(BaseModel):
    total_weeks_needed: int
    max_weeks: int
    overshoot: int
    modules: list[CapacityModule]


class ScheduleSummary(BaseModel):
    total_modules: int
    total_weeks: int
    lectures_scheduled: int
    conflicts: int


class ScheduleProposal(BaseModel):
    placements: list[ProposedLecture] = Field(default_factory=list)
    unresolved: list[UnresolvedWeek] = Field(default_factory=list)
    capacity: CapacityReport | None = None
    summary: ScheduleSummary

    @property
    def next_steps(self) -> str:
        if self.placements and not self.unresolved:
            return "Review the schedule and confirm to save all lectures"
        return "Resolve conflicts before saving"


class PreferencesSummary(BaseModel):
    delivery_mode: DeliveryMode
    location: str
    preferred_days: list[str]
    preferred_times: list[str]


class AutoSchedulePreviewResponse(BaseModel):
    success: bool
    course: CourseSummary
    summary: ScheduleSummary
    schedule: list[ProposedLecture]
    conflicts: list[UnresolvedWeek]
    preferences: PreferencesSummary
    next_steps: str


class ScheduleConfirmRequest(BaseModel):
    faculty_id: str = Field(min_length=1, max_length=36)
    schedule: list[ProposedLecture] = Field(min_length=1, max_length=200)


class PlacementConflicts(BaseModel):
    index: int
    lecture_date: date
    start_time: str
    end_time: str
    conflicts: list[ConflictDetail]


class ScheduleConfirmResponse(BaseModel):
    success: bool
    message: str
    lectures_created: int
    lecture_ids: list[str] = Field(default_factory=list)


class ScheduleConflictResponse(BaseModel):
    success: bool = False
    message: str
    lectures_created: int = 0
    conflicts: list[PlacementConflicts]
