import io

from school_admin.extensions import db
from school_admin.models import User, Incident, RoleEnum, IncidentTypeEnum
from school_admin.models.base import utcnow


def test_list_users_pagination_envelope(client, make_user, admin_headers):
    for _ in range(4):
        make_user(RoleEnum.student)

    response = client.get('/api/users?page=2&limit=2&role=student', headers=admin_headers)
    body = response.get_json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["total"] == 4
    assert body["count"] == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total_pages": 2}
    assert all(u["role"] == "student" for u in body["data"])


def test_list_users_search(client, make_user, admin_headers):
    make_user(first_name="Valentina", last_name="Rojas")
    make_user(first_name="Pedro", last_name="Castillo")

    body = client.get('/api/users?search=valen', headers=admin_headers).get_json()
    assert [u["first_name"] for u in body["data"]] == ["Valentina"]


def test_invalid_enum_filter_is_400(client, admin_headers):
    response = client.get('/api/users?role=janitor', headers=admin_headers)
    assert response.status_code == 400


def test_create_update_and_get_user(client, admin_headers):
    created = client.post('/api/users', headers=admin_headers, json={
        "first_name": "Carla", "last_name": "Diaz", "dni": "55555555",
        "email": "carla@school.edu", "role": "teacher", "password": "secret123",
    })
    assert created.status_code == 201
    user_id = created.get_json()["data"]["id"]

    updated = client.put(f'/api/users/{user_id}', headers=admin_headers, json={"status": "inactive"})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["status"] == "inactive"

    fetched = client.get(f'/api/users/{user_id}', headers=admin_headers).get_json()
    assert fetched["data"]["role"] == "teacher"
    assert client.get('/api/users/9999', headers=admin_headers).status_code == 404


def test_create_user_rejects_bad_email(client, admin_headers):
    response = client.post('/api/users', headers=admin_headers, json={
        "first_name": "A", "last_name": "B", "dni": "1", "email": "not-an-email",
    })
    assert response.status_code == 400
    assert response.get_json()["errors"][0]["field"] == "email"


def test_change_password(client, make_user, admin_headers):
    user_id = make_user(dni="77777777", password="secret123")

    response = client.put(f'/api/users/{user_id}/change-password', headers=admin_headers,
                          json={"new_password": "brandnew"})
    assert response.status_code == 200
    login = client.post('/api/auth/login', json={"dni": "77777777", "password": "brandnew"})
    assert login.status_code == 200


def test_delete_user_refused_while_referenced(app, client, make_user, admin_headers):
    victim = make_user()
    reporter = make_user(RoleEnum.teacher)
    free = make_user()
    with app.app_context():
        db.session.add(Incident(incident_type=IncidentTypeEnum.other, incident_date=utcnow(),
                                reporter_name="X", description="d", location="l",
                                victim_id=victim, registered_by=reporter))
        db.session.commit()

    assert client.delete(f'/api/users/{victim}', headers=admin_headers).status_code == 400
    assert client.delete(f'/api/users/{free}', headers=admin_headers).status_code == 200
    with app.app_context():
        assert db.session.get(User, free) is None


def test_bulk_register_reports_duplicates(app, client, make_user, admin_headers):
    make_user(dni="10000001", email="taken@school.edu")
    csv = (
        "first_name,last_name,dni,email,role\n"
        "Ana,Perez,20000001,ana@school.edu,student\n"
        "Luis,Soto,10000001,luis@school.edu,student\n"
        "Eva,Ruiz,20000002,taken@school.edu,teacher\n"
        "Ana,Twin,20000001,twin@school.edu,student\n"
    )
    response = client.post(
        '/api/users/bulk-register',
        headers=admin_headers,
        data={"file": (io.BytesIO(csv.encode()), "users.csv")},
        content_type="multipart/form-data",
    )
    body = response.get_json()

    assert response.status_code == 201
    assert body["data"]["success_count"] == 1
    assert [e["message"] for e in body["data"]["errors"]] == ["Duplicate DNI", "Duplicate email", "Duplicate DNI"]
    with app.app_context():
        created = User.query.filter_by(dni="20000001").one()
        assert created.check_password("20000001")


def test_bulk_register_rejects_unknown_format(client, admin_headers):
    response = client.post(
        '/api/users/bulk-register',
        headers=admin_headers,
        data={"file": (io.BytesIO(b"hello"), "users.txt")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


def test_delete_user_refused_while_attendance_references_them(app, client, make_user, admin_headers,
                                                              teacher_headers, school, make_schedule):
    make_schedule()
    student = make_user()
    enrolled = client.post('/api/enrollments', headers=admin_headers, json={
        "student_id": student,
        "section_id": school["section_ids"][0],
        "school_year_id": school["school_year_id"],
    })
    enrollment_id = enrolled.get_json()["data"]["id"]
    client.post('/api/attendance/bulk', headers=teacher_headers, json={
        "date": "2024-03-04",
        "section_id": school["section_ids"][0],
        "records": [{"student_id": student, "status": "present"}],
    })

    assert client.delete(f'/api/enrollments/{enrollment_id}', headers=admin_headers).status_code == 200
    response = client.delete(f'/api/users/{student}', headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Cannot delete user: has attendance records"
    with app.app_context():
        assert db.session.get(User, student) is not None
