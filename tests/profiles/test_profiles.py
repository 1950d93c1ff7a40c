"""Profile read/update and server-side role resolution."""

from httpx import AsyncClient

from tuitionhub.config import get_settings


class TestProfile:
    async def test_get_own_profile(self, client: AsyncClient, tutor):
        response = await client.get("/api/v1/profiles/me", headers=tutor.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == tutor.user_id
        assert data["role"] == "tutor"
        assert data["phone"] == "9123456780"

    async def test_update_fields(self, client: AsyncClient, tutor):
        response = await client.patch("/api/v1/profiles/me", headers=tutor.headers, json={
            "full_name": "Ravi Kumar",
            "city": "Nagpur",
            "locality": "Dharampeth",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["full_name"] == "Ravi Kumar"
        assert data["city"] == "Nagpur"
        assert data["locality"] == "Dharampeth"
        assert data["updated_at"] is not None

    async def test_switch_role_to_student(self, client: AsyncClient, tutor):
        response = await client.patch("/api/v1/profiles/me", headers=tutor.headers, json={"role": "student"})
        assert response.status_code == 200
        assert response.json()["role"] == "student"

    async def test_cannot_self_assign_admin(self, client: AsyncClient, tutor):
        response = await client.patch("/api/v1/profiles/me", headers=tutor.headers, json={"role": "admin"})
        assert response.status_code == 422

        profile = await client.get("/api/v1/profiles/me", headers=tutor.headers)
        assert profile.json()["role"] == "tutor"

    async def test_admin_cannot_drop_role(self, client: AsyncClient, admin):
        response = await client.patch("/api/v1/profiles/me", headers=admin.headers, json={"role": "student"})
        assert response.status_code == 403

    async def test_phone_length_validated(self, client: AsyncClient, tutor):
        response = await client.patch("/api/v1/profiles/me", headers=tutor.headers, json={"phone": "12345"})
        assert response.status_code == 422

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/profiles/me")
        assert response.status_code in (401, 403)


class TestAdminAllowList:
    async def test_demoted_admin_gets_previous_role_back(self, client: AsyncClient, student, monkeypatch):
        settings = get_settings()
        monkeypatch.setattr(settings, "admin_emails", [*settings.admin_emails, student.email])
        promoted = await client.get("/api/v1/profiles/me", headers=student.headers)
        assert promoted.json()["role"] == "admin"

        monkeypatch.setattr(settings, "admin_emails", [e for e in settings.admin_emails if e != student.email])
        demoted = await client.get("/api/v1/profiles/me", headers=student.headers)
        assert demoted.json()["role"] == "student"

    async def test_account_created_as_admin_falls_back_to_default(self, client: AsyncClient, admin, monkeypatch):
        monkeypatch.setattr(get_settings(), "admin_emails", [])
        response = await client.get("/api/v1/profiles/me", headers=admin.headers)
        assert response.json()["role"] == "tutor"
