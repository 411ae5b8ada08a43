from __future__ import annotations

import re

from lectureplan.services.slot_catalog import DAY_NAMES, WEEKDAYS

DAY_VALUES = set(DAY_NAMES)
WEEKDAY_VALUES = set(WEEKDAYS)

TIME_PATTERN: re.Pattern[str] = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def validate_time_value(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value
