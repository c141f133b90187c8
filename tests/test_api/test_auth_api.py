"""Tests for registration, login and session resolution."""

from medecho.core.auth import ACCESS_COOKIE
from medecho.core.seed import DEMO_PASSWORD

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"


class TestRegister:
    async def test_register_patient(self, client):
        response = await client.post(
            REGISTER,
            json={"name": "Ada Patient", "email": "Ada@Example.com", "password": "longenough"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "PATIENT"
        assert body["user"]["email"] == "ada@example.com"
        assert body["token_type"] == "bearer"
        assert ACCESS_COOKIE in response.cookies

    async def test_doctor_gets_default_specialization(self, client):
        response = await client.post(
            REGISTER,
            json={"name": "Dr. New", "email": "new@clinic.org", "password": "longenough", "role": "DOCTOR"},
        )
        assert response.json()["user"]["specialization"] == "General Practitioner"

    async def test_duplicate_email(self, client):
        response = await client.post(
            REGISTER,
            json={"name": "John Again", "email": "JOHN@example.com", "password": "longenough"},
        )
        assert response.status_code == 409

    async def test_short_password(self, client):
        response = await client.post(
            REGISTER, json={"name": "Short", "email": "short@example.com", "password": "abc"}
        )
        assert response.status_code == 400

    async def test_admin_cannot_self_register(self, client):
        response = await client.post(
            REGISTER,
            json={"name": "Root", "email": "root@example.com", "password": "longenough", "role": "ADMIN"},
        )
        assert response.status_code == 403


class TestLogin:
    async def test_login_sets_cookie_session(self, client):
        response = await client.post(LOGIN, json={"email": "john@example.com", "password": DEMO_PASSWORD})
        assert response.status_code == 200

        me = await client.get("/api/v1/auth/me")
        assert me.status_code == 200
        assert me.json()["id"] == "p1"

    async def test_bearer_session(self, client, doctor_headers):
        me = await client.get("/api/v1/auth/me", headers=doctor_headers)
        assert me.json()["id"] == "d1"

    async def test_wrong_password(self, client):
        response = await client.post(LOGIN, json={"email": "john@example.com", "password": "nope-nope"})
        assert response.status_code == 401

    async def test_unknown_email(self, client):
        response = await client.post(LOGIN, json={"email": "ghost@example.com", "password": DEMO_PASSWORD})
        assert response.status_code == 401

    async def test_portal_role_mismatch(self, client):
        response = await client.post(
            LOGIN, json={"email": "john@example.com", "password": DEMO_PASSWORD, "role": "DOCTOR"}
        )
        assert response.status_code == 403
        assert "Patient portal" in response.json()["detail"]

    async def test_logout_clears_cookie(self, client):
        await client.post(LOGIN, json={"email": "john@example.com", "password": DEMO_PASSWORD})
        await client.post("/api/v1/auth/logout")

        assert (await client.get("/api/v1/auth/me")).status_code == 401


class TestAnonymous:
    async def test_me_requires_login(self, client):
        assert (await client.get("/api/v1/auth/me")).status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
