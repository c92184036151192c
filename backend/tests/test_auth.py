from __future__ import annotations

from conftest import auth_headers, make_user

from myjantes.core.security import decode_token
from myjantes.models.user import Role


def test_register_then_login(client) -> None:
    r = client.post(
        "/api/auth/register",
        json={"email": "Marie@Example.com", "password": "motdepasse", "name": "Marie"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["user"]["email"] == "marie@example.com"
    assert body["user"]["role"] == "client"
    assert decode_token(body["token"])["sub"] == "marie@example.com"

    r = client.post("/api/auth/login", json={"email": "marie@example.com", "password": "motdepasse"})
    assert r.status_code == 200
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {r.json()['token']}"})
    assert me.json()["name"] == "Marie"


def test_register_duplicate_email(client, customer) -> None:
    r = client.post(
        "/api/auth/register",
        json={"email": customer.email, "password": "motdepasse", "name": "Doublon"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Email déjà utilisé"


def test_login_wrong_password(client, customer) -> None:
    r = client.post("/api/auth/login", json={"email": customer.email, "password": "mauvais-mdp"})
    assert r.status_code == 401
    assert r.json()["message"] == "Identifiants invalides"


def test_bad_token_is_401(client) -> None:
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_profile_and_password_change(client, customer, customer_headers) -> None:
    r = client.put("/api/auth/profile", json={"phone": "0600000000"}, headers=customer_headers)
    assert r.status_code == 200
    assert r.json()["phone"] == "0600000000"
    assert r.json()["name"] == customer.name

    bad = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "wrong", "newPassword": "nouveau123"},
        headers=customer_headers,
    )
    assert bad.status_code == 400

    ok = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "nouveau123"},
        headers=customer_headers,
    )
    assert ok.status_code == 200
    r = client.post("/api/auth/login", json={"email": customer.email, "password": "nouveau123"})
    assert r.status_code == 200


def test_admin_user_management(client, db, admin, admin_headers) -> None:
    r = client.post(
        "/api/admin/users",
        json={"email": "tech@myjantes.fr", "password": "atelier1", "name": "Technicien"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    emp_id = r.json()["id"]
    assert r.json()["role"] == "employee"

    employees = client.get("/api/admin/employees", headers=admin_headers).json()
    assert [e["id"] for e in employees] == [emp_id]

    assert client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/admin/users/{emp_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/admin/employees", headers=admin_headers).json() == []

    r = client.post("/api/auth/login", json={"email": "tech@myjantes.fr", "password": "atelier1"})
    assert r.status_code == 401


def test_employee_is_not_admin(client, db) -> None:
    emp = make_user(db, email="emp@myjantes.fr", role=Role.EMPLOYEE)
    assert client.get("/api/admin/users", headers=auth_headers(emp)).status_code == 403
