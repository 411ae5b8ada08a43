from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSlot:
    start: str
    end: str
    label: str


TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot(start="07:00", end="10:00", label="7:00 AM - 10:00 AM"),
    TimeSlot(start="10:00", end="13:00", label="10:00 AM - 1:00 PM"),
    TimeSlot(start="13:00", end="16:00", label="1:00 PM - 4:00 PM"),
    TimeSlot(start="16:00", end="19:00", label="4:00 PM - 7:00 PM"),
)

WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

DAY_NAMES: tuple[str, ...] = WEEKDAYS + ("Saturday", "Sunday")


def weekday_index(day: str) -> int:
    return DAY_NAMES.index(day)


def day_name(weekday: int) -> str:
    return DAY_NAMES[weekday]


def slot_for_start(start: str) -> TimeSlot | None:
    return next((slot for slot in TIME_SLOTS if slot.start == start), None)


def preferred_days(days: Iterable[str] | None) -> list[str]:
    """Caller order, weekends and duplicates dropped."""
    selected: list[str] = []
    for day in days or ():
        if day in WEEKDAYS and day not in selected:
            selected.append(day)
    return selected


def preferred_slots(starts: Iterable[str] | None) -> list[TimeSlot]:
    """Catalog order, unknown start times dropped."""
    wanted = set(starts or ())
    return [slot for slot in TIME_SLOTS if slot.start in wanted]


def candidate_pairs(
    days: Iterable[str] | None = None,
    starts: Iterable[str] | None = None,
) -> Iterator[tuple[str, TimeSlot, bool]]:
    """Yield ``(day, slot, preferred)`` in search priority order.

    Preferred pairs come first; the rest of the catalog follows in catalog
    order. Empty preferences select the whole catalog.
    """
    chosen_days = preferred_days(days) if days else list(WEEKDAYS)
    chosen_slots = preferred_slots(starts) if starts else list(TIME_SLOTS)

    seen: set[tuple[str, str]] = set()
    for day in chosen_days:
        for slot in chosen_slots:
            seen.add((day, slot.start))
            yield day, slot, True

    for day in WEEKDAYS:
        for slot in TIME_SLOTS:
            if (day, slot.start) not in seen:
                yield day, slot, False
