from lectureplan.services.slot_catalog import (
    TIME_SLOTS,
    WEEKDAYS,
    candidate_pairs,
    day_name,
    preferred_days,
    preferred_slots,
    slot_for_start,
    weekday_index,
)


def test_catalog_has_four_three_hour_slots():
    assert [(slot.start, slot.end) for slot in TIME_SLOTS] == [
        ("07:00", "10:00"),
        ("10:00", "13:00"),
        ("13:00", "16:00"),
        ("16:00", "19:00"),
    ]
    assert slot_for_start("10:00").label == "10:00 AM - 1:00 PM"
    assert slot_for_start("09:00") is None


def test_day_names_round_trip_with_python_weekdays():
    assert weekday_index("Monday") == 0
    assert weekday_index("Sunday") == 6
    assert day_name(4) == "Friday"


def test_preferred_days_keep_caller_order_without_weekends_or_duplicates():
    assert preferred_days(["Thursday", "Monday", "Saturday", "Thursday"]) == ["Thursday", "Monday"]
    assert preferred_days(None) == []


def test_preferred_slots_follow_catalog_order():
    assert [slot.start for slot in preferred_slots(["16:00", "07:00", "08:30"])] == ["07:00", "16:00"]


def test_candidate_pairs_yield_preferred_first_then_remaining_catalog():
    pairs = list(candidate_pairs(["Tuesday", "Monday"], ["10:00"]))

    assert [(day, slot.start, preferred) for day, slot, preferred in pairs[:2]] == [
        ("Tuesday", "10:00", True),
        ("Monday", "10:00", True),
    ]
    assert all(not preferred for _, _, preferred in pairs[2:])
    assert pairs[2][0] == "Monday" and pairs[2][1].start == "07:00"
    assert len(pairs) == len(WEEKDAYS) * len(TIME_SLOTS)
    assert len({(day, slot.start) for day, slot, _ in pairs}) == len(pairs)


def test_empty_preferences_select_whole_catalog_as_preferred():
    pairs = list(candidate_pairs([], []))
    assert len(pairs) == 20
    assert all(preferred for _, _, preferred in pairs)
    assert (pairs[0][0], pairs[0][1].start) == ("Monday", "07:00")
