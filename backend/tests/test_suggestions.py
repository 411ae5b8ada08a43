from datetime import date

from lectureplan.services.conflict_detector import ConflictDetector
from lectureplan.services.lecture_store import SqlAlchemyLectureStore
from lectureplan.services.suggestions import suggest_alternatives

from conftest import WEEK1_MONDAY

TODAY = date(2029, 12, 1)


def _suggest(db_session, course, **kwargs):
    detector = ConflictDetector(SqlAlchemyLectureStore(db_session), today=TODAY)
    params = {"lecture_date": WEEK1_MONDAY, "faculty_id": "f-1", "course_id": course.id, "location": "R1"}
    params.update(kwargs)
    return suggest_alternatives(detector, **params)


def test_free_day_offers_every_catalog_slot(db_session, make_course):
    course = make_course()
    suggestions = _suggest(db_session, course)

    assert [item.start_time for item in suggestions] == ["07:00", "10:00", "13:00", "16:00"]
    assert all(item.day_of_week == "Monday" and item.date == WEEK1_MONDAY for item in suggestions)
    assert suggestions[1].time_slot == "10:00 AM - 1:00 PM"


def test_slots_with_instructor_room_or_student_clashes_are_skipped(db_session, make_course, make_lecture, enroll):
    course = make_course("COMP 120")
    other = make_course("COMP 232")
    enroll(course, "s-1")
    enroll(other, "s-1")
    make_lecture(other, "f-1", WEEK1_MONDAY, "07:00", "10:00", location="R5")
    make_lecture(other, "f-9", WEEK1_MONDAY, "13:00", "16:00", location="R1")

    suggestions = _suggest(db_session, course)

    # 07:00 instructor, 13:00 room; the shared student also blocks both.
    assert [item.start_time for item in suggestions] == ["10:00", "16:00"]


def test_limit_caps_the_number_of_suggestions(db_session, make_course):
    course = make_course()
    assert len(_suggest(db_session, course, limit=2)) == 2


def test_fully_booked_day_returns_empty_list(db_session, make_course, make_lecture):
    course = make_course()
    other = make_course("COMP 232")
    make_lecture(other, "f-1", WEEK1_MONDAY, "07:00", "19:00", location="R5")

    assert _suggest(db_session, course) == []
