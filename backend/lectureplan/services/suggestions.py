from __future__ import annotations

from datetime import date

from lectureplan.models.lecture import DeliveryMode
from lectureplan.schemas.conflict import SlotSuggestion
from lectureplan.services.conflict_detector import ConflictDetector, LecturePlacement
from lectureplan.services.slot_catalog import TIME_SLOTS, day_name

DEFAULT_SUGGESTION_LIMIT = 5


def suggest_alternatives(
    detector: ConflictDetector,
    *,
    lecture_date: date,
    faculty_id: str,
    course_id: str,
    location: str | None = None,
    exclude_lecture_id: str | None = None,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[SlotSuggestion]:
    """Open catalog slots on the same date, in catalog order."""
    suggestions: list[SlotSuggestion] = []
    for slot in TIME_SLOTS:
        placement = LecturePlacement(
            lecture_date=lecture_date,
            start_time=slot.start,
            end_time=slot.end,
            faculty_id=faculty_id,
            course_id=course_id,
            location=location,
            delivery_mode=DeliveryMode.physical if location else DeliveryMode.online,
        )
        if not detector.is_available(placement, exclude_lecture_id=exclude_lecture_id):
            continue
        suggestions.append(
            SlotSuggestion(
                date=lecture_date,
                day_of_week=day_name(lecture_date.weekday()),
                time_slot=slot.label,
                start_time=slot.start,
                end_time=slot.end,
            )
        )
        if len(suggestions) >= limit:
            break
    return suggestions
