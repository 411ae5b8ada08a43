import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from lectureplan.db.base import Base


class SemesterPeriod(str, Enum):
    january_april = "January-April"
    may_august = "May-August"
    september_december = "September-December"


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    semester_period: Mapped[SemesterPeriod] = mapped_column(
        SAEnum(SemesterPeriod, name="semester_period", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
