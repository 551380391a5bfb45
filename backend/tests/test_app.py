from school_admin.extensions import db
from school_admin.models import Staff


def test_root_and_health(client):
    assert client.get('/').get_json()["success"] is True
    health = client.get('/api/health')
    assert health.status_code == 200
    assert health.get_json()["database"] == "reachable"


def test_unknown_route_uses_error_envelope(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_malformed_token_is_401(client):
    response = client.get('/api/sections', headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.get_json() == {"success": False, "message": "Not authorized, invalid token"}


def test_staff_crud_and_delete_guard(app, client, admin_headers, school, make_schedule):
    created = client.post('/api/staff', headers=admin_headers, json={
        "dni": "30303030", "first_name": "Nora", "last_name": "Silva", "email": "NORA@school.edu",
        "role": "psychologist", "level": "general", "phone": "999111222", "address": "Jr. Lima 1",
    })
    assert created.status_code == 201
    staff_id = created.get_json()["data"]["id"]
    assert created.get_json()["data"]["email"] == "nora@school.edu"

    duplicate = client.post('/api/staff', headers=admin_headers, json={
        "dni": "30303030", "first_name": "X", "last_name": "Y", "email": "other@school.edu",
        "role": "teacher", "level": "primary", "phone": "1", "address": "a",
    })
    assert duplicate.status_code == 400

    listed = client.get('/api/staff?role=psychologist', headers=admin_headers).get_json()
    assert [s["id"] for s in listed["data"]] == [staff_id]

    make_schedule(teacher=0)
    assert client.delete(f'/api/staff/{school["teacher_ids"][0]}', headers=admin_headers).status_code == 400
    assert client.delete(f'/api/staff/{staff_id}', headers=admin_headers).status_code == 200
    with app.app_context():
        assert db.session.get(Staff, staff_id) is None


def test_staff_link_requires_existing_user(client, admin_headers):
    response = client.post('/api/staff', headers=admin_headers, json={
        "dni": "1", "first_name": "X", "last_name": "Y", "email": "x@school.edu",
        "role": "teacher", "level": "primary", "phone": "1", "address": "a", "user_id": 404,
    })
    assert response.status_code == 404


def test_audit_log_file_records_logins(app, client, make_user):
    make_user(dni="51515151", password="secret123")
    client.post('/api/auth/login', json={"dni": "51515151", "password": "secret123"})

    with open(app.config["AUDIT_LOG_FILE"], encoding="utf-8") as fh:
        assert "LOGIN_SUCCESS" in fh.read()


def test_unexpected_error_uses_error_envelope(app):
    @app.route('/api/explode')
    def explode():
        raise RuntimeError("boom")

    response = app.test_client().get('/api/explode')

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "message": "Internal server error"}
