from conftest import auth_header
from models import db
from models.refresh_token import RefreshToken
from models.user import User


def test_list_users_paginates_and_filters(client, admin, make_user):
    for _ in range(3):
        make_user("nurse")
    make_user("client")

    resp = client.get("/api/v1/users?role=nurse&limit=2&page=1", headers=auth_header(admin))
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert all(u["role"] == "nurse" for u in body["data"])


def test_list_users_search(client, admin, make_user):
    target = make_user(email="kemi.special@example.com")
    make_user()
    resp = client.get("/api/v1/users?search=kemi.special", headers=auth_header(admin))
    assert [u["id"] for u in resp.get_json()["data"]] == [target.id]


def test_list_users_is_admin_only(client, patient, nurse):
    assert client.get("/api/v1/users", headers=auth_header(patient)).status_code == 403
    assert client.get("/api/v1/users", headers=auth_header(nurse)).status_code == 403
    assert client.get("/api/v1/users").status_code == 401


def test_user_stats(client, admin, patient, nurse):
    resp = client.get("/api/v1/users/stats", headers=auth_header(admin))
    data = resp.get_json()["data"]
    assert data["total"] == 3
    assert data["roles"] == {"clients": 1, "nurses": 1, "admins": 1}
    assert len(data["recent"]) == 3


def test_update_own_profile(client, patient):
    resp = client.put("/api/v1/users/profile", headers=auth_header(patient), json={
        "city": "Ibadan", "preferredLanguage": "yo", "medicalHistory": {"allergies": ["penicillin"]},
    })
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["city"] == "Ibadan"
    assert data["preferredLanguage"] == "yo"
    assert data["medicalHistory"] == {"allergies": ["penicillin"]}


def test_phone_change_resets_verification(client, patient):
    assert patient.is_phone_verified is True
    resp = client.put("/api/v1/users/profile", headers=auth_header(patient), json={"phone": "08091234567"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["isPhoneVerified"] is False


def test_profile_rejects_unknown_and_protected_fields(client, patient):
    resp = client.put("/api/v1/users/profile", headers=auth_header(patient), json={"role": "admin"})
    assert resp.status_code == 400
    assert db.session.get(User, patient.id).role == "client"


def test_phone_already_taken(client, patient, make_user):
    other = make_user()
    resp = client.put("/api/v1/users/profile", headers=auth_header(patient), json={"phone": other.phone})
    assert resp.status_code == 409


def test_nurse_can_view_user_but_not_edit(client, nurse, patient):
    assert client.get(f"/api/v1/users/{patient.id}", headers=auth_header(nurse)).status_code == 200
    resp = client.put(f"/api/v1/users/{patient.id}", headers=auth_header(nurse), json={"city": "Jos"})
    assert resp.status_code == 403


def test_get_missing_user(client, admin):
    assert client.get("/api/v1/users/9999", headers=auth_header(admin)).status_code == 404


def test_admin_suspends_user(client, admin, patient):
    headers = auth_header(patient)
    resp = client.put(f"/api/v1/users/{patient.id}/status", headers=auth_header(admin),
                      json={"status": "suspended"})
    assert resp.status_code == 200
    # existing tokens stop working once the account is suspended
    assert client.get("/api/v1/auth/profile", headers=headers).status_code == 401


def test_invalid_status_value(client, admin, patient):
    resp = client.put(f"/api/v1/users/{patient.id}/status", headers=auth_header(admin),
                      json={"status": "banned"})
    assert resp.status_code == 400


def test_admin_changes_role(client, admin, patient):
    resp = client.put(f"/api/v1/users/{patient.id}/role", headers=auth_header(admin), json={"role": "nurse"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["role"] == "nurse"


def test_admin_cannot_demote_self(client, admin):
    resp = client.put(f"/api/v1/users/{admin.id}/role", headers=auth_header(admin), json={"role": "client"})
    assert resp.status_code == 403


def test_nurse_with_open_assignments_keeps_role(client, admin, patient, nurse, make_booking):
    make_booking(patient, status="confirmed", nurse=nurse)
    resp = client.put(f"/api/v1/users/{nurse.id}/role", headers=auth_header(admin), json={"role": "client"})
    assert resp.status_code == 409


def test_delete_user(client, admin, make_user):
    user = make_user()
    resp = client.delete(f"/api/v1/users/{user.id}", headers=auth_header(admin))
    assert resp.status_code == 200
    assert db.session.get(User, user.id) is None


def test_delete_user_with_bookings_conflicts(client, admin, patient, make_booking):
    make_booking(patient)
    resp = client.delete(f"/api/v1/users/{patient.id}", headers=auth_header(admin))
    assert resp.status_code == 409


def test_admin_cannot_delete_self(client, admin):
    assert client.delete(f"/api/v1/users/{admin.id}", headers=auth_header(admin)).status_code == 403


def test_delete_registered_user_removes_refresh_tokens(client, admin):
    resp = client.post("/api/v1/auth/register", json={
        "email": "bola@example.com",
        "phone": "08067778888",
        "password": "Str0ng!Pass",
        "confirmPassword": "Str0ng!Pass",
        "firstName": "Bola",
        "lastName": "Ahmed",
    })
    assert resp.status_code == 201
    user_id = resp.get_json()["user"]["id"]
    assert RefreshToken.query.filter_by(user_id=user_id).count() == 1

    resp = client.delete(f"/api/v1/users/{user_id}", headers=auth_header(admin))
    assert resp.status_code == 200
    assert db.session.get(User, user_id) is None
    assert RefreshToken.query.filter_by(user_id=user_id).count() == 0
