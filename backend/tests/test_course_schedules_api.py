from datetime import date

from sqlalchemy import select

from lectureplan.models.lecture import Lecture

FACULTY_ID = "f-1"


def _entry(**overrides):
    values = {
        "day_of_week": "Monday",
        "start_time": "10:00",
        "end_time": "13:00",
        "room": "R1",
        "session_type": "lecture",
    }
    values.update(overrides)
    return values


def _add_entry(client, course, **overrides):
    response = client.post(f"/api/courses/{course.id}/schedules", json=_entry(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_create_entry_reports_credit_hours(client, make_course):
    course = make_course(credits=3)

    response = client.post(f"/api/courses/{course.id}/schedules", json=_entry())

    assert response.status_code == 201
    payload = response.json()
    assert [item["id"] for item in payload["schedules"]] == [payload["id"]]
    assert payload["validation"] == {
        "valid": True,
        "total_hours": 3.0,
        "required_credits": 3,
        "message": "Schedule meets credit requirements",
    }


def test_schedule_is_ordered_by_weekday_and_flags_missing_hours(client, make_course):
    course = make_course(credits=3)
    _add_entry(client, course, day_of_week="Wednesday", start_time="07:00", end_time="08:00")
    _add_entry(client, course, day_of_week="Monday", start_time="13:00", end_time="13:30")

    payload = client.get(f"/api/courses/{course.id}/schedules").json()

    assert [item["day_of_week"] for item in payload["schedules"]] == ["Monday", "Wednesday"]
    assert payload["validation"]["valid"] is False
    assert payload["validation"]["total_hours"] == 1.5
    assert payload["validation"]["message"] == "Schedule has 1.5 hours but course requires 3 credits (hours)"


def test_room_clash_with_another_course_is_rejected(client, make_course):
    comp120 = make_course("COMP 120")
    comp232 = make_course("COMP 232")
    _add_entry(client, comp120)

    response = client.post(
        f"/api/courses/{comp232.id}/schedules",
        json=_entry(start_time="11:00", end_time="12:00"),
    )

    assert response.status_code == 409
    conflicts = response.json()["conflicts"]
    assert [item["type"] for item in conflicts] == ["room"]
    assert conflicts[0]["message"] == "Room R1 is already booked on Monday from 10:00 to 13:00 for COMP 120 course"
    assert client.get(f"/api/courses/{comp232.id}/schedules").json()["schedules"] == []


def test_back_to_back_entries_do_not_clash(client, make_course):
    comp120 = make_course("COMP 120")
    comp232 = make_course("COMP 232")
    _add_entry(client, comp120)

    response = client.post(f"/api/courses/{comp232.id}/schedules", json=_entry(start_time="13:00", end_time="16:00"))

    assert response.status_code == 201


def test_instructor_clash_across_courses(client, make_course):
    comp120 = make_course("COMP 120", faculty_id=FACULTY_ID)
    comp232 = make_course("COMP 232", faculty_id=FACULTY_ID)
    _add_entry(client, comp120)

    response = client.post(f"/api/courses/{comp232.id}/schedules", json=_entry(room="R2"))

    assert response.status_code == 409
    conflict = response.json()["conflicts"][0]
    assert conflict["type"] == "instructor"
    assert conflict["details"]["conflicting_course"]["code"] == "COMP 120"


def test_same_course_may_run_parallel_sessions(client, make_course):
    course = make_course(faculty_id=FACULTY_ID)
    _add_entry(client, course)

    response = client.post(f"/api/courses/{course.id}/schedules", json=_entry(room="LAB-1", session_type="lab"))

    assert response.status_code == 201


def test_shared_students_clash(client, make_course, enroll):
    comp120 = make_course("COMP 120")
    comp232 = make_course("COMP 232")
    enroll(comp120, "s-1", "s-2")
    enroll(comp232, "s-2")
    _add_entry(client, comp120)

    response = client.post(f"/api/courses/{comp232.id}/schedules", json=_entry(room="R2"))

    assert response.status_code == 409
    conflict = response.json()["conflicts"][0]
    assert conflict["type"] == "student"
    assert conflict["affected_students"] == 1


def test_entry_validation(client, make_course):
    course = make_course()

    bad_day = client.post(f"/api/courses/{course.id}/schedules", json=_entry(day_of_week="Funday"))
    reversed_times = client.post(
        f"/api/courses/{course.id}/schedules",
        json=_entry(start_time="13:00", end_time="10:00"),
    )
    missing_room = client.post(f"/api/courses/{course.id}/schedules", json=_entry(room=""))

    assert bad_day.status_code == 422
    assert reversed_times.status_code == 422
    assert missing_room.status_code == 422
    assert client.get("/api/courses/missing/schedules").status_code == 404


def test_update_entry_checks_clashes_but_not_itself(client, make_course):
    comp120 = make_course("COMP 120")
    comp232 = make_course("COMP 232")
    _add_entry(client, comp120)
    entry_id = _add_entry(client, comp232, day_of_week="Tuesday")

    own_slot = client.put(f"/api/courses/{comp232.id}/schedules/{entry_id}", json={"end_time": "12:00"})
    assert own_slot.status_code == 200
    assert own_slot.json()["end_time"] == "12:00"

    clash = client.put(f"/api/courses/{comp232.id}/schedules/{entry_id}", json={"day_of_week": "Monday"})
    assert clash.status_code == 409
    assert clash.json()["conflicts"][0]["type"] == "room"
    stored = client.get(f"/api/courses/{comp232.id}/schedules").json()["schedules"][0]
    assert stored["day_of_week"] == "Tuesday"

    session_only = client.put(f"/api/courses/{comp232.id}/schedules/{entry_id}", json={"session_type": "tutorial"})
    assert session_only.json()["session_type"] == "tutorial"


def test_update_entry_errors(client, make_course):
    course = make_course()
    other = make_course("COMP 232")
    entry_id = _add_entry(client, course)

    assert client.put(f"/api/courses/{course.id}/schedules/{entry_id}", json={}).status_code == 400
    inverted = client.put(f"/api/courses/{course.id}/schedules/{entry_id}", json={"start_time": "14:00"})
    assert inverted.status_code == 400
    assert client.put(f"/api/courses/{other.id}/schedules/{entry_id}", json={"room": "R9"}).status_code == 404


def test_generate_creates_one_lecture_per_matching_weekday(client, make_course):
    course = make_course(faculty_id=FACULTY_ID)
    entry_id = _add_entry(client, course)

    response = client.post(
        f"/api/courses/{course.id}/lectures/generate",
        json={"start_date": "2030-01-01", "end_date": "2030-01-21"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["lectures_created"] == 3
    assert payload["skipped_existing"] == 0
    lectures = client.get(f"/api/courses/{course.id}/lectures").json()
    assert [item["lecture_date"] for item in lectures] == ["2030-01-07", "2030-01-14", "2030-01-21"]
    assert [item["week_number"] for item in lectures] == [1, 2, 3]
    assert {item["schedule_id"] for item in lectures} == {entry_id}
    assert {item["conducted_by"] for item in lectures} == {FACULTY_ID}
    assert lectures[0]["location"] == "R1"
    assert lectures[0]["topic"] == "Lecture"


def test_generate_twice_skips_existing_lectures(client, make_course):
    course = make_course(faculty_id=FACULTY_ID)
    _add_entry(client, course)
    body = {"start_date": "2030-01-01", "end_date": "2030-01-21"}

    client.post(f"/api/courses/{course.id}/lectures/generate", json=body)
    second = client.post(f"/api/courses/{course.id}/lectures/generate", json=body).json()

    assert second["lectures_created"] == 0
    assert second["skipped_existing"] == 3
    assert len(client.get(f"/api/courses/{course.id}/lectures").json()) == 3


def test_generate_skips_exam_weeks(client, make_course):
    course = make_course(faculty_id=FACULTY_ID)
    _add_entry(client, course)

    payload = client.post(
        f"/api/courses/{course.id}/lectures/generate",
        json={"start_date": "2030-03-25", "end_date": "2030-04-15"},
    ).json()

    assert payload["lectures_created"] == 2
    assert payload["skipped_outside_teaching_weeks"] == 2


def test_generate_is_all_or_nothing_on_conflict(client, db_session, make_course, make_lecture):
    course = make_course(faculty_id=FACULTY_ID)
    other = make_course("COMP 232")
    make_lecture(other, FACULTY_ID, date(2030, 1, 14), "10:00", "13:00", location="R9", week_number=2)
    _add_entry(client, course)

    response = client.post(
        f"/api/courses/{course.id}/lectures/generate",
        json={"start_date": "2030-01-01", "end_date": "2030-01-21"},
    )

    assert response.status_code == 409
    payload = response.json()
    assert payload["lectures_created"] == 0
    assert [item["lecture_date"] for item in payload["conflicts"]] == ["2030-01-14"]
    assert payload["conflicts"][0]["conflicts"][0]["type"] == "instructor"
    stored = db_session.execute(select(Lecture).where(Lecture.course_id == course.id)).scalars().all()
    assert stored == []


def test_generate_preconditions(client, make_course):
    unassigned = make_course("COMP 120")
    _add_entry(client, unassigned)
    empty = make_course("COMP 232")
    body = {"start_date": "2030-01-01", "end_date": "2030-01-21"}

    no_faculty = client.post(f"/api/courses/{unassigned.id}/lectures/generate", json=body)
    no_entries = client.post(f"/api/courses/{empty.id}/lectures/generate", json={**body, "faculty_id": FACULTY_ID})
    reversed_range = client.post(
        f"/api/courses/{unassigned.id}/lectures/generate",
        json={"start_date": "2030-01-21", "end_date": "2030-01-01", "faculty_id": FACULTY_ID},
    )

    assert no_faculty.status_code == 400
    assert no_entries.status_code == 400
    assert no_entries.json()["message"] == "No weekly schedule found for this course"
    assert reversed_range.status_code == 422


def test_deleting_an_entry_keeps_generated_lectures(client, make_course):
    course = make_course(faculty_id=FACULTY_ID)
    entry_id = _add_entry(client, course)
    client.post(
        f"/api/courses/{course.id}/lectures/generate",
        json={"start_date": "2030-01-07", "end_date": "2030-01-07"},
    )

    response = client.delete(f"/api/courses/{course.id}/schedules/{entry_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    lectures = client.get(f"/api/courses/{course.id}/lectures").json()
    assert len(lectures) == 1
    assert lectures[0]["schedule_id"] is None
    assert client.delete(f"/api/courses/{course.id}/schedules/{entry_id}").status_code == 404


def test_weekly_timetable_groups_entries_by_day(client, make_course):
    mine = make_course("COMP 120", faculty_id=FACULTY_ID)
    theirs = make_course("COMP 232", faculty_id="f-2")
    _add_entry(client, mine, day_of_week="Wednesday", start_time="13:00", end_time="16:00")
    _add_entry(client, mine, day_of_week="Wednesday", start_time="07:00", end_time="10:00", room="R2")
    _add_entry(client, theirs, day_of_week="Monday", room="R3")

    everyone = client.get("/api/timetable/weekly").json()
    assert [item["day"] for item in everyone] == [
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ]
    assert len(everyone[0]["entries"]) == 1

    personal = client.get("/api/timetable/weekly", params={"faculty_id": FACULTY_ID}).json()
    assert personal[0]["entries"] == []
    wednesday = personal[2]["entries"]
    assert [item["start_time"] for item in wednesday] == ["07:00", "13:00"]
    assert wednesday[0]["course_code"] == "COMP 120"
