from datetime import date

from lectureplan.models.lecture import LectureStatus
from lectureplan.schemas.conflict import RequestedSlot
from lectureplan.schemas.timetable import TimetableView, ViewInfo


def _seed(make_faculty, make_course, make_lecture, enroll):
    faculty = make_faculty()
    comp120 = make_course("COMP 120")
    comp232 = make_course("COMP 232")
    enroll(comp120, "s-1", "s-2", "s-3")
    make_lecture(comp120, faculty.id, date(2030, 1, 7), "10:00", "13:00", status=LectureStatus.completed)
    make_lecture(comp232, faculty.id, date(2030, 1, 9), "07:00", "10:00", location="R2")
    make_lecture(comp120, faculty.id, date(2030, 1, 14), "10:00", "13:00", week_number=2)
    make_lecture(comp232, faculty.id, date(2030, 2, 4), "07:00", "10:00", location="R2", week_number=6)
    make_lecture(comp120, faculty.id, date(2030, 1, 21), "10:00", "13:00", status=LectureStatus.cancelled, week_number=3)
    make_lecture(comp120, "someone-else", date(2030, 1, 8), "10:00", "13:00", location="R3")
    return faculty


def test_week_view_covers_monday_to_sunday(client, make_faculty, make_course, make_lecture, enroll):
    faculty = _seed(make_faculty, make_course, make_lecture, enroll)

    response = client.get(f"/api/timetable/faculty/{faculty.id}", params={"view": "week", "date": "2030-01-10"})

    assert response.status_code == 200
    payload = response.json()
    assert [item["lecture_date"] for item in payload["lectures"]] == ["2030-01-07", "2030-01-09"]
    assert payload["view_info"]["date"] == "2030-01-10"
    assert payload["view_info"]["range_start"] == "2030-01-07"
    assert payload["view_info"]["range_end"] == "2030-01-13"
    assert payload["faculty"]["name"] == "Dr. Amara Okafor"


def test_month_view_and_course_totals(client, make_faculty, make_course, make_lecture, enroll):
    faculty = _seed(make_faculty, make_course, make_lecture, enroll)

    payload = client.get(
        f"/api/timetable/faculty/{faculty.id}",
        params={"view": "month", "date": "2030-01-20"},
    ).json()

    assert len(payload["lectures"]) == 4
    assert payload["stats"]["total_lectures"] == 4
    assert payload["stats"]["completed_lectures"] == 1
    assert payload["stats"]["cancelled_lectures"] == 1
    assert payload["stats"]["upcoming_lectures"] == 2
    assert payload["next_lecture"]["lecture_date"] == "2030-01-09"

    courses = {item["code"]: item for item in payload["courses"]}
    assert courses["COMP 120"]["total_lectures"] == 3
    assert courses["COMP 120"]["completed_lectures"] == 1
    assert courses["COMP 120"]["enrolled_students"] == 3
    assert courses["COMP 232"]["total_lectures"] == 2
    assert courses["COMP 232"]["enrolled_students"] == 0
    assert payload["stats"]["total_courses"] == 2


def test_semester_view_is_unfiltered(client, make_faculty, make_course, make_lecture, enroll):
    faculty = _seed(make_faculty, make_course, make_lecture, enroll)

    payload = client.get(f"/api/timetable/faculty/{faculty.id}", params={"view": "semester"}).json()

    assert len(payload["lectures"]) == 5
    assert sorted(payload["by_week"]) == ["1", "2", "3", "6"]
    assert len(payload["by_date"]["2030-01-07"]) == 1


def test_unknown_faculty(client):
    response = client.get("/api/timetable/faculty/missing")
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Faculty"


def test_invalid_view_is_rejected(client, make_faculty):
    faculty = make_faculty()
    assert client.get(f"/api/timetable/faculty/{faculty.id}", params={"view": "year"}).status_code == 422


def test_date_named_fields_accept_dates():
    info = ViewInfo(view=TimetableView.month, date=date(2030, 1, 10))
    assert info.date == date(2030, 1, 10)
    assert info.range_start is None

    slot = RequestedSlot(date="2030-01-07", day_of_week="Monday", time="10:00 - 13:00", week_number=1, location="R1")
    assert slot.date == date(2030, 1, 7)
