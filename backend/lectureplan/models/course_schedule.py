import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from lectureplan.db.base import Base


class SessionType(str, Enum):
    lecture = "lecture"
    lab = "lab"
    tutorial = "tutorial"
    seminar = "seminar"


class CourseSchedule(Base):
    """One recurring weekly meeting of a course."""

    __tablename__ = "course_schedules"
    __table_args__ = (
        Index("ix_course_schedules_day", "day_of_week"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str | None] = mapped_column(String(200), nullable=True)
    session_type: Mapped[SessionType] = mapped_column(
        SAEnum(SessionType, name="session_type"),
        nullable=False,
        default=SessionType.lecture,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
