from datetime import date, timedelta

import pytest
from sqlalchemy import select

from lectureplan.core.exceptions import ResourceNotFoundError, SchedulerError
from lectureplan.models.course_module import CourseModule
from lectureplan.models.lecture import DeliveryMode, Lecture, LectureStatus
from lectureplan.schemas.conflict import ConflictType
from lectureplan.schemas.schedule import ProposedLecture, SchedulePreferences
from lectureplan.services import auto_scheduler as auto_scheduler_module
from lectureplan.services.auto_scheduler import NO_AVAILABLE_SLOTS, AutoScheduler
from lectureplan.services.lecture_store import SqlAlchemyLectureStore
from lectureplan.services.slot_catalog import TIME_SLOTS

from conftest import WEEK1_MONDAY, WEEK1_TUESDAY

FACULTY_ID = "faculty-1"


def _preferences(**overrides) -> SchedulePreferences:
    values = {
        "preferred_days": ["Monday", "Tuesday"],
        "preferred_times": ["10:00"],
        "delivery_mode": "physical",
        "location": "R1",
    }
    values.update(overrides)
    return SchedulePreferences(**values)


def _modules(db_session, course):
    return list(db_session.execute(select(CourseModule).where(CourseModule.course_id == course.id)).scalars())


def _propose(db_session, course, preferences=None):
    scheduler = AutoScheduler(SqlAlchemyLectureStore(db_session))
    return scheduler.propose(course, _modules(db_session, course), FACULTY_ID, preferences or _preferences())


def test_two_modules_fill_five_weeks_in_preferred_slots(db_session, make_course):
    course = make_course(modules=[("Foundations", 2), ("Control Flow", 3)])

    proposal = _propose(db_session, course)

    assert proposal.unresolved == []
    assert [item.week_number for item in proposal.placements] == [1, 2, 3, 4, 5]
    assert all(item.day_of_week in {"Monday", "Tuesday"} for item in proposal.placements)
    assert all((item.start_time, item.end_time) == ("10:00", "13:00") for item in proposal.placements)
    # First open preferred pair wins, so an empty timetable lands on Mondays.
    assert [item.lecture_date for item in proposal.placements] == [
        WEEK1_MONDAY + timedelta(weeks=offset) for offset in range(5)
    ]
    assert [item.topic for item in proposal.placements[:3]] == [
        "Foundations - Week 1",
        "Foundations - Week 2",
        "Control Flow - Week 1",
    ]
    assert proposal.summary.lectures_scheduled == 5
    assert proposal.next_steps == "Review the schedule and confirm to save all lectures"


def test_busy_preferred_monday_moves_week_one_to_tuesday(db_session, make_course, make_lecture):
    other = make_course("COMP 232")
    make_lecture(other, FACULTY_ID, WEEK1_MONDAY, "10:00", "13:00", location="R1")
    course = make_course(modules=[("Foundations", 2), ("Control Flow", 3)])

    proposal = _propose(db_session, course)

    first = proposal.placements[0]
    assert (first.week_number, first.day_of_week, first.lecture_date) == (1, "Tuesday", WEEK1_TUESDAY)
    assert (first.start_time, first.end_time) == ("10:00", "13:00")
    assert all(item.day_of_week == "Monday" for item in proposal.placements[1:])
    assert proposal.unresolved == []


def test_falls_back_to_catalog_when_preferences_are_taken(db_session, make_course, make_lecture):
    other = make_course("COMP 232")
    make_lecture(other, FACULTY_ID, WEEK1_MONDAY, "10:00", "13:00", location="R7")
    course = make_course(modules=[("Foundations", 1)])

    proposal = _propose(db_session, course, _preferences(preferred_days=["Monday"]))

    only = proposal.placements[0]
    assert (only.day_of_week, only.start_time) == ("Monday", "07:00")
    assert only.lecture_date == WEEK1_MONDAY


def test_week_without_any_open_slot_is_reported_and_run_continues(db_session, make_course, make_lecture):
    other = make_course("COMP 232")
    for weekday in range(5):
        day = date(2030, 1, 1) + timedelta(days=(weekday - 1) % 7)
        for slot in TIME_SLOTS:
            make_lecture(other, FACULTY_ID, day, slot.start, slot.end, location=f"R{weekday}{slot.start}")
    course = make_course(modules=[("Foundations", 2)])

    proposal = _propose(db_session, course)

    assert [(item.week, item.error) for item in proposal.unresolved] == [(1, NO_AVAILABLE_SLOTS)]
    assert [item.week_number for item in proposal.placements] == [2]
    assert proposal.next_steps == "Resolve conflicts before saving"


def test_modules_over_thirteen_weeks_produce_capacity_report(db_session, make_course):
    course = make_course(modules=[("Part One", 7), ("Part Two", 7)])

    proposal = _propose(db_session, course)

    assert proposal.placements == []
    assert proposal.capacity is not None
    assert proposal.capacity.total_weeks_needed == 14
    assert proposal.capacity.max_weeks == 13
    assert proposal.capacity.overshoot == 1
    assert [(item.title, item.duration_weeks) for item in proposal.capacity.modules] == [
        ("Part One", 7),
        ("Part Two", 7),
    ]


def test_course_without_modules_is_rejected(db_session, make_course):
    course = make_course(modules=[])
    with pytest.raises(SchedulerError, match="No modules"):
        _propose(db_session, course)


def test_confirm_writes_every_placement_once(db_session, make_course):
    course = make_course(modules=[("Foundations", 2), ("Control Flow", 3)])
    proposal = _propose(db_session, course)
    scheduler = AutoScheduler(SqlAlchemyLectureStore(db_session))

    result = scheduler.confirm(db_session, course, FACULTY_ID, proposal.placements)

    assert result.success
    assert len(result.lectures) == 5
    stored = list(db_session.execute(select(Lecture).order_by(Lecture.lecture_date)).scalars())
    assert [lecture.week_number for lecture in stored] == [1, 2, 3, 4, 5]
    assert all(lecture.status == LectureStatus.scheduled for lecture in stored)
    assert all(lecture.location == "R1" and lecture.meeting_link is None for lecture in stored)
    assert all(lecture.conducted_by == FACULTY_ID for lecture in stored)


def test_confirming_the_same_schedule_twice_surfaces_conflicts(db_session, make_course):
    course = make_course(modules=[("Foundations", 2), ("Control Flow", 3)])
    proposal = _propose(db_session, course)
    scheduler = AutoScheduler(SqlAlchemyLectureStore(db_session))
    assert scheduler.confirm(db_session, course, FACULTY_ID, proposal.placements).success

    second = AutoScheduler(SqlAlchemyLectureStore(db_session)).confirm(
        db_session, course, FACULTY_ID, proposal.placements
    )

    assert not second.success
    assert len(second.conflicts) == 5
    kinds = {conflict.type for item in second.conflicts for conflict in item.conflicts}
    assert kinds == {ConflictType.instructor, ConflictType.room}
    assert len(db_session.execute(select(Lecture)).scalars().all()) == 5


def test_confirm_checks_placements_against_earlier_ones_in_the_batch(db_session, make_course):
    course = make_course(modules=[("Foundations", 1)])
    placement = ProposedLecture(
        lecture_date=WEEK1_MONDAY,
        start_time="10:00",
        end_time="13:00",
        delivery_mode=DeliveryMode.online,
        meeting_link="https://meet.example.com/comp120",
    )

    result = AutoScheduler(SqlAlchemyLectureStore(db_session)).confirm(
        db_session, course, FACULTY_ID, [placement, placement]
    )

    assert [item.index for item in result.conflicts] == [1]
    assert [conflict.type for conflict in result.conflicts[0].conflicts] == [ConflictType.instructor]
    assert db_session.execute(select(Lecture)).scalars().all() == []


def test_confirm_rejects_placements_outside_teaching_weeks(db_session, make_course):
    course = make_course(modules=[("Foundations", 1)])
    placement = ProposedLecture(
        lecture_date=date(2030, 4, 15),
        start_time="10:00",
        end_time="13:00",
        delivery_mode=DeliveryMode.physical,
        location="R1",
    )

    with pytest.raises(SchedulerError) as excinfo:
        AutoScheduler(SqlAlchemyLectureStore(db_session)).confirm(db_session, course, FACULTY_ID, [placement])

    assert excinfo.value.details["placements"][0]["week_number"] == 15


def test_confirm_rejects_modules_of_another_course(db_session, make_course):
    course = make_course("COMP 120", modules=[("Foundations", 1)])
    other = make_course("COMP 232", modules=[("Recursion", 1)])
    foreign_module = db_session.execute(
        select(CourseModule).where(CourseModule.course_id == other.id)
    ).scalar_one()
    placement = ProposedLecture(
        module_id=foreign_module.id,
        lecture_date=WEEK1_MONDAY,
        start_time="10:00",
        end_time="13:00",
        delivery_mode=DeliveryMode.physical,
        location="R1",
    )

    with pytest.raises(ResourceNotFoundError) as excinfo:
        AutoScheduler(SqlAlchemyLectureStore(db_session)).confirm(db_session, course, FACULTY_ID, [placement])

    assert excinfo.value.details == {"resource_type": "Module", "resource_id": foreign_module.id}
    assert db_session.execute(select(Lecture)).scalars().all() == []


def test_confirm_locks_every_placement_date_before_validating(db_session, make_course, monkeypatch):
    course = make_course(modules=[("Foundations", 2)])
    proposal = _propose(db_session, course)
    scheduler = AutoScheduler(SqlAlchemyLectureStore(db_session))
    locked = []
    monkeypatch.setattr(auto_scheduler_module, "lock_lecture_dates", lambda db, days: locked.extend(days))

    assert scheduler.confirm(db_session, course, FACULTY_ID, proposal.placements).success

    assert locked == [item.lecture_date for item in proposal.placements]
