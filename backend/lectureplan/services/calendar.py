"""Semester calendar arithmetic.

A semester covers one of three four-month periods of a year and starts on the
first day of its first month. Week 1 is the seven days beginning on that date;
weeks 1-13 are teaching weeks and weeks 14-16 are the examination period.
"""

from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass
from datetime import date, timedelta

from lectureplan.core.exceptions import ConfigurationError
from lectureplan.models.course import SemesterPeriod

TEACHING_WEEKS = 13
EXAM_WEEKS = range(14, 17)
SEMESTER_WEEKS = 16

SEMESTER_START_MONTHS: dict[SemesterPeriod, int] = {
    SemesterPeriod.january_april: 1,
    SemesterPeriod.may_august: 5,
    SemesterPeriod.september_december: 9,
}

# Labels still found on older course records.
LEGACY_PERIOD_LABELS: dict[str, SemesterPeriod] = {
    "Semester 1": SemesterPeriod.january_april,
    "Semester 2": SemesterPeriod.may_august,
    "Semester 3": SemesterPeriod.september_december,
}


@dataclass(frozen=True)
class SemesterWeek:
    week_number: int
    start_date: date
    end_date: date
    is_exam_week: bool


def resolve_period(period: SemesterPeriod | str) -> SemesterPeriod:
    if isinstance(period, SemesterPeriod):
        return period
    value = str(period).strip()
    if value in LEGACY_PERIOD_LABELS:
        return LEGACY_PERIOD_LABELS[value]
    try:
        return SemesterPeriod(value)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown semester period: {period!r}") from exc


def semester_start(year: int, period: SemesterPeriod | str) -> date:
    return date(year, SEMESTER_START_MONTHS[resolve_period(period)], 1)


def semester_end(year: int, period: SemesterPeriod | str) -> date:
    end_month = SEMESTER_START_MONTHS[resolve_period(period)] + 3
    return date(year, end_month, _calendar.monthrange(year, end_month)[1])


def week_number(day: date, start: date) -> int:
    return (day - start).days // 7 + 1


def is_exam_week(week: int) -> bool:
    return week in EXAM_WEEKS


def is_teaching_week(week: int) -> bool:
    return 1 <= week <= TEACHING_WEEKS


def date_for_week(start: date, week: int, weekday: int) -> date:
    """Return the date falling on ``weekday`` (Monday=0) inside ``week``."""
    window_start = start + timedelta(days=(week - 1) * 7)
    return window_start + timedelta(days=(weekday - window_start.weekday()) % 7)


def semester_weeks(year: int, period: SemesterPeriod | str) -> list[SemesterWeek]:
    start = semester_start(year, period)
    weeks: list[SemesterWeek] = []
    for index in range(SEMESTER_WEEKS):
        week_start = start + timedelta(days=index * 7)
        weeks.append(
            SemesterWeek(
                week_number=index + 1,
                start_date=week_start,
                end_date=week_start + timedelta(days=6),
                is_exam_week=is_exam_week(index + 1),
            )
        )
    return weeks
