import io

from openpyxl import Workbook

from school_admin.extensions import db
from school_admin.models import Section, User, Enrollment, RoleEnum


def enroll(client, headers, school, student_id, section=0):
    return client.post('/api/enrollments', headers=headers, json={
        "student_id": student_id,
        "section_id": school["section_ids"][section],
        "school_year_id": school["school_year_id"],
    })


def current_students(app, section_id):
    with app.app_context():
        return db.session.get(Section, section_id).current_students


def test_enrollment_increments_current_students(app, client, admin_headers, school, make_user):
    response = enroll(client, admin_headers, school, make_user())

    assert response.status_code == 201
    assert response.get_json()["data"]["level"] == "primary"
    assert current_students(app, school["section_ids"][0]) == 1


def test_full_section_rejects_without_changing_count(app, client, admin_headers, school, make_user):
    for _ in range(2):
        assert enroll(client, admin_headers, school, make_user()).status_code == 201

    response = enroll(client, admin_headers, school, make_user())

    assert response.status_code == 400
    assert "maximum capacity" in response.get_json()["message"]
    assert current_students(app, school["section_ids"][0]) == 2
    with app.app_context():
        assert Enrollment.query.count() == 2


def test_duplicate_enrollment_is_rejected(app, client, admin_headers, school, make_user):
    student = make_user()
    assert enroll(client, admin_headers, school, student).status_code == 201

    duplicate = enroll(client, admin_headers, school, student)
    assert duplicate.status_code == 400
    assert current_students(app, school["section_ids"][0]) == 1


def test_only_students_can_be_enrolled(client, admin_headers, school, make_user):
    response = enroll(client, admin_headers, school, make_user(RoleEnum.teacher))
    assert response.status_code == 400


def test_delete_enrollment_frees_a_seat(app, client, admin_headers, school, make_user):
    enrollment_id = enroll(client, admin_headers, school, make_user()).get_json()["data"]["id"]

    response = client.delete(f'/api/enrollments/{enrollment_id}', headers=admin_headers)

    assert response.status_code == 200
    assert current_students(app, school["section_ids"][0]) == 0


def test_students_in_section(client, admin_headers, teacher_headers, school, make_user):
    enroll(client, admin_headers, school, make_user(first_name="Zoe", last_name="Zapata"))
    enroll(client, admin_headers, school, make_user(first_name="Abel", last_name="Arce"))

    body = client.get(f'/api/enrollments/section/{school["section_ids"][0]}/students',
                      headers=teacher_headers).get_json()
    assert body["count"] == 2
    assert [s["last_name"] for s in body["data"]] == ["Arce", "Zapata"]


def test_list_enrollments_filters_by_section(client, admin_headers, school, make_user):
    enroll(client, admin_headers, school, make_user(), section=0)
    enroll(client, admin_headers, school, make_user(), section=1)

    body = client.get(f'/api/enrollments?section_id={school["section_ids"][1]}', headers=admin_headers).get_json()
    assert body["total"] == 1
    assert body["data"][0]["section"]["id"] == school["section_ids"][1]


def test_bulk_enrollment_from_csv(app, client, admin_headers, school, make_user):
    make_user(RoleEnum.teacher, dni="88888888")
    csv = (
        "first_name,last_name,dni,gender,birthdate\n"
        "Mia,Lopez,60000001,F,2017-05-02\n"
        "Teo,Vega,88888888,M,2017-01-10\n"
        ",Nadie,60000003,,\n"
        "Leo,Rios,60000004,M,2017-08-20\n"
        "Ivy,Paz,60000005,F,2017-09-09\n"
    )
    response = client.post(
        '/api/enrollments/bulk',
        headers=admin_headers,
        data={
            "file": (io.BytesIO(csv.encode()), "students.csv"),
            "school_year_name": "2024",
            "section_name": "1A",
        },
        content_type="multipart/form-data",
    )
    body = response.get_json()["data"]

    assert response.status_code == 201
    assert body["enrolled"] == 2
    assert body["failed"] == 3
    messages = [r.get("message") for r in body["results"] if not r["success"]]
    assert "is not a student" in messages[0]
    assert messages[1] == "Incomplete student data"
    assert "maximum capacity" in messages[2]

    with app.app_context():
        mia = User.query.filter_by(dni="60000001").one()
        assert mia.role == RoleEnum.student
        assert mia.check_password("60000001")
        assert mia.birthdate.isoformat() == "2017-05-02"
    assert current_students(app, school["section_ids"][0]) == 2


def test_bulk_enrollment_requires_known_section(client, admin_headers, school):
    response = client.post(
        '/api/enrollments/bulk',
        headers=admin_headers,
        data={
            "file": (io.BytesIO(b"first_name,last_name,dni\n"), "students.csv"),
            "school_year_name": "2024",
            "section_name": "9Z",
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 404


def test_bulk_enrollment_from_excel_template(app, client, admin_headers, school):
    workbook = Workbook()
    sheet = workbook.active
    for line in range(1, 12):
        sheet.append([f"Enrollment template line {line}"])
    sheet.append(["Mia", "Lopez", "60000001", "F", "2017-05-02"])
    sheet.append([None, "Nadie", "60000003", None, None])
    sheet.append(["Leo", "Rios", "60000004", "M", "2017-08-20"])
    buffer = io.BytesIO()
    workbook.save(buffer)
    buffer.seek(0)

    response = client.post(
        '/api/enrollments/bulk',
        headers=admin_headers,
        data={
            "file": (buffer, "students.xlsx"),
            "school_year_name": "2024",
            "section_name": "1A",
        },
        content_type="multipart/form-data",
    )
    body = response.get_json()["data"]

    assert response.status_code == 201
    assert body["enrolled"] == 2
    assert body["failed"] == 1
    assert [r["row"] for r in body["results"]] == [12, 13, 14]
    assert body["results"][1]["message"] == "Incomplete student data"

    with app.app_context():
        leo = User.query.filter_by(dni="60000004").one()
        assert leo.first_name == "Leo"
        assert leo.birthdate.isoformat() == "2017-08-20"
        assert Enrollment.query.filter_by(student_id=leo.id).count() == 1
    assert current_students(app, school["section_ids"][0]) == 2
