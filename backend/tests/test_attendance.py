from school_admin.extensions import db
from school_admin.models import Attendance, AttendanceDetail, AttendanceDetailStatusEnum, Enrollment, DayOfWeekEnum

from conftest import MONDAY, SATURDAY


def enroll_students(app, make_user, school, count, section=0):
    ids = [make_user() for _ in range(count)]
    with app.app_context():
        for student_id in ids:
            db.session.add(Enrollment(student_id=student_id, section_id=school["section_ids"][section],
                                      school_year_id=school["school_year_id"], level="primary"))
        db.session.commit()
    return ids


def bulk(client, headers, school, records, on_date=MONDAY, **extra):
    return client.post('/api/attendance/bulk', headers=headers, json={
        "date": on_date.isoformat(),
        "section_id": school["section_ids"][0],
        "records": records,
        **extra,
    })


def test_bulk_creates_attendance_on_first_schedule_of_the_day(app, client, teacher_headers, school,
                                                             make_user, make_schedule):
    later = make_schedule(slot=1)
    first = make_schedule(slot=0, course=1, teacher=1)
    a, b = enroll_students(app, make_user, school, 2)

    response = bulk(client, teacher_headers, school, [
        {"student_id": a, "status": "present"},
        {"student_id": b, "status": "late", "notes": "bus"},
    ])
    body = response.get_json()["data"]

    assert response.status_code == 200
    assert (body["processed"], body["created"], body["updated"], body["failed"]) == (2, 2, 0, 0)
    with app.app_context():
        attendance = Attendance.query.one()
        assert attendance.course_schedule_id == first != later
        assert attendance.teacher_id == school["teacher_ids"][1]
        assert attendance.status.value == "taken"
        assert {d.student_id: d.status.value for d in attendance.details} == {a: "present", b: "late"}


def test_bulk_upsert_updates_instead_of_duplicating(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule()
    (student,) = enroll_students(app, make_user, school, 1)

    bulk(client, teacher_headers, school, [{"student_id": student, "status": "absent"}])
    response = bulk(client, teacher_headers, school, [{"student_id": student, "status": "excused", "notes": "doctor"}])
    body = response.get_json()["data"]

    assert body["created"] == 0
    assert body["updated"] == 1
    assert body["results"][0]["action"] == "updated"
    with app.app_context():
        assert Attendance.query.count() == 1
        details = AttendanceDetail.query.all()
        assert len(details) == 1
        assert details[0].status.value == "excused"
        assert details[0].notes == "doctor"


def test_bulk_reports_per_item_failures(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule()
    (enrolled,) = enroll_students(app, make_user, school, 1)
    (other_section,) = enroll_students(app, make_user, school, 1, section=1)

    response = bulk(client, teacher_headers, school, [
        {"student_id": other_section, "status": "present"},
        {"student_id": enrolled, "status": "present"},
    ])
    body = response.get_json()["data"]

    assert body["failed"] == 1
    assert body["created"] == 1
    assert body["results"][0] == {
        "student_id": other_section,
        "success": False,
        "message": "Student is not enrolled in this section",
    }
    assert body["results"][1]["success"] is True


def test_bulk_without_schedule_for_the_day(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule(day=DayOfWeekEnum.monday)
    (student,) = enroll_students(app, make_user, school, 1)

    body = bulk(client, teacher_headers, school, [{"student_id": student, "status": "present"}],
                on_date=SATURDAY).get_json()["data"]

    assert body["failed"] == 1
    assert body["results"][0]["message"].startswith("No course schedule found")
    with app.app_context():
        assert Attendance.query.count() == 0


def test_bulk_with_explicit_schedule_of_another_section(client, teacher_headers, school, make_schedule):
    other = make_schedule(section=1)
    response = bulk(client, teacher_headers, school, [{"student_id": 1, "status": "present"}],
                    course_schedule_id=other)
    assert response.status_code == 400


def test_bulk_validates_status(client, teacher_headers, school):
    response = bulk(client, teacher_headers, school, [{"student_id": 1, "status": "sleeping"}])
    assert response.status_code == 400


def test_students_cannot_take_attendance(client, student_headers, school):
    response = bulk(client, student_headers, school, [{"student_id": 1, "status": "present"}])
    assert response.status_code == 403


def test_create_attendance_once_per_schedule_and_day(app, client, teacher_headers, school, make_user, make_schedule):
    schedule = make_schedule()
    (student,) = enroll_students(app, make_user, school, 1)
    payload = {
        "date": MONDAY.isoformat(),
        "section_id": school["section_ids"][0],
        "course_schedule_id": schedule,
        "details": [{"student_id": student, "status": "present"}],
    }

    created = client.post('/api/attendance', headers=teacher_headers, json=payload)
    assert created.status_code == 201
    data = created.get_json()["data"]
    assert data["teacher_id"] == school["teacher_ids"][0]
    assert data["present_count"] == 1

    assert client.post('/api/attendance', headers=teacher_headers, json=payload).status_code == 400


def test_update_attendance_replaces_details(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule()
    a, b = enroll_students(app, make_user, school, 2)
    bulk(client, teacher_headers, school, [{"student_id": a, "status": "present"},
                                           {"student_id": b, "status": "present"}])
    with app.app_context():
        attendance_id = Attendance.query.one().id

    response = client.put(f'/api/attendance/{attendance_id}', headers=teacher_headers, json={
        "status": "finalized",
        "details": [{"student_id": a, "status": "absent"}],
    })
    data = response.get_json()["data"]

    assert response.status_code == 200
    assert data["status"] == "finalized"
    assert [(d["student_id"], d["status"]) for d in data["details"]] == [(a, "absent")]


def test_monthly_report(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule(day=DayOfWeekEnum.monday)
    make_schedule(day=DayOfWeekEnum.tuesday)
    a, b = enroll_students(app, make_user, school, 2)

    bulk(client, teacher_headers, school, [{"student_id": a, "status": "present"},
                                           {"student_id": b, "status": "absent"}])
    tuesday = MONDAY.replace(day=MONDAY.day + 1)
    bulk(client, teacher_headers, school, [{"student_id": a, "status": "late"},
                                           {"student_id": b, "status": "present"}], on_date=tuesday)

    response = client.get(
        f'/api/attendance/report/monthly?section_id={school["section_ids"][0]}&month=3&year=2024',
        headers=teacher_headers,
    )
    report = response.get_json()["data"]

    assert response.status_code == 200
    assert report["totals"] == {"present": 2, "late": 1, "absent": 1, "excused": 0}
    assert report["days"][0] == {"date": "2024-03-04", "present": 1, "late": 0, "absent": 1, "excused": 0, "total": 2}
    assert report["days"][1]["date"] == "2024-03-05"
    by_student = {s["student"]["id"]: s for s in report["students"]}
    assert [r["status"] for r in by_student[a]["records"]] == ["present", "late"]
    assert by_student[b]["totals"]["absent"] == 1

    empty = client.get(
        f'/api/attendance/report/monthly?section_id={school["section_ids"][0]}&month=4&year=2024',
        headers=teacher_headers,
    ).get_json()["data"]
    assert empty["days"] == []
    assert len(empty["students"]) == 2


def test_monthly_report_requires_parameters(client, teacher_headers):
    assert client.get('/api/attendance/report/monthly?month=3', headers=teacher_headers).status_code == 400


def test_stats_and_dashboard_rate(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule()
    a, b = enroll_students(app, make_user, school, 2)
    bulk(client, teacher_headers, school, [{"student_id": a, "status": "present"},
                                           {"student_id": b, "status": "absent"}])

    stats = client.get('/api/attendance/stats', headers=teacher_headers).get_json()["data"]
    by_status = {s["status"]: s for s in stats["by_status"]}
    assert stats["total"] == 2
    assert by_status["present"]["percentage"] == 50.0
    assert by_status["excused"]["count"] == 0

    dashboard = client.get('/api/dashboard/stats', headers=teacher_headers).get_json()["data"]
    assert dashboard["attendance_rate"] == 50.0
    assert dashboard["active_sections"] == 2


def test_list_attendance_by_student_and_date(app, client, teacher_headers, school, make_user, make_schedule):
    make_schedule()
    a, b = enroll_students(app, make_user, school, 2)
    bulk(client, teacher_headers, school, [{"student_id": a, "status": "present"}])

    by_student = client.get(f'/api/attendance?student_id={a}', headers=teacher_headers).get_json()
    assert by_student["total"] == 1
    assert client.get(f'/api/attendance?student_id={b}', headers=teacher_headers).get_json()["total"] == 0
    assert client.get('/api/attendance?date=2024-03-05', headers=teacher_headers).get_json()["total"] == 0
    assert client.get('/api/attendance?date=03/05/2024', headers=teacher_headers).status_code == 400


def test_monthly_report_keeps_details_of_missing_students(app, client, teacher_headers, school, make_user,
                                                          make_schedule):
    make_schedule(day=DayOfWeekEnum.monday)
    (student,) = enroll_students(app, make_user, school, 1)
    bulk(client, teacher_headers, school, [{"student_id": student, "status": "present"}])

    with app.app_context():
        attendance = Attendance.query.one()
        db.session.add(AttendanceDetail(attendance_id=attendance.id, student_id=9999,
                                        status=AttendanceDetailStatusEnum.absent))
        db.session.commit()

    response = client.get(
        f'/api/attendance/report/monthly?section_id={school["section_ids"][0]}&month=3&year=2024',
        headers=teacher_headers,
    )
    report = response.get_json()["data"]

    assert response.status_code == 200
    missing = [s for s in report["students"] if s["student"] is None]
    assert len(missing) == 1
    assert missing[0]["totals"]["absent"] == 1
    assert report["totals"]["present"] == 1


def test_monthly_report_rejects_out_of_range_year(client, teacher_headers, school):
    response = client.get(
        f'/api/attendance/report/monthly?section_id={school["section_ids"][0]}&month=3&year=10000',
        headers=teacher_headers,
    )

    assert response.status_code == 400
    assert response.get_json()["success"] is False
