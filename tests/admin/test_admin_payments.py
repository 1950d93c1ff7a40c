"""Admin review of manual payments and the unlock grant."""

from httpx import AsyncClient
from sqlalchemy import func, select, update

from tuitionhub.admin import service as admin_service
from tuitionhub.database import get_session
from tuitionhub.db.models import ManualPayment, Unlock


async def _submit(client: AsyncClient, account, post_id: int | None, purpose: str = "post_view") -> dict:
    body = {"purpose": purpose}
    if post_id is not None:
        body["target_post_id"] = post_id
    response = await client.post("/api/v1/payments/manual", headers=account.headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestAdminGate:
    async def test_non_admin_forbidden(self, client: AsyncClient, tutor):
        for path in ("/api/v1/admin/stats", "/api/v1/admin/payments", "/api/v1/admin/users"):
            response = await client.get(path, headers=tutor.headers)
            assert response.status_code == 403

    async def test_non_admin_cannot_approve(self, client: AsyncClient, tutor, post):
        payment = await _submit(client, tutor, post["id"])
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=tutor.headers)
        assert response.status_code == 403

    async def test_anonymous_rejected(self, client: AsyncClient):
        response = await client.get("/api/v1/admin/stats")
        assert response.status_code in (401, 403)


class TestApprove:
    async def test_approve_post_view_grants_one_unlock(self, client: AsyncClient, tutor, admin, post, db_session):
        payment = await _submit(client, tutor, post["id"])
        assert payment["status"] == "pending"
        assert payment["amount"] == 100

        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["payment"]["status"] == "approved"
        assert data["payment"]["reviewed_by"] == admin.user_id
        assert data["unlock"]["tutor_id"] == tutor.user_id
        assert data["unlock"]["post_id"] == post["id"]
        assert data["unlock"]["status"] == "paid"
        assert data["unlock"]["amount"] == 100
        assert data["unlock"]["currency"] == "INR"

        unlocks = (await db_session.execute(select(Unlock))).scalars().all()
        assert len(unlocks) == 1
        assert (unlocks[0].tutor_id, unlocks[0].post_id, unlocks[0].status) == (tutor.user_id, post["id"], "paid")
        stored = await db_session.get(ManualPayment, payment["id"])
        assert stored.status == "approved"

    async def test_second_approval_conflicts(self, client: AsyncClient, tutor, admin, post, db_session):
        payment = await _submit(client, tutor, post["id"])
        first = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        second = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        assert first.status_code == 200
        assert second.status_code == 409
        assert "Invalid transition" in second.json()["detail"]

        count = await db_session.scalar(select(func.count()).select_from(Unlock))
        assert count == 1

    async def test_approved_cannot_be_rejected(self, client: AsyncClient, tutor, admin, post):
        payment = await _submit(client, tutor, post["id"])
        await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/reject", headers=admin.headers)
        assert response.status_code == 409

    async def test_duplicate_payments_yield_single_unlock(
        self, client: AsyncClient, tutor, admin, post, db_session
    ):
        first = await _submit(client, tutor, post["id"])
        second = await _submit(client, tutor, post["id"])

        one = await client.post(f"/api/v1/admin/payments/{first['id']}/approve", headers=admin.headers)
        two = await client.post(f"/api/v1/admin/payments/{second['id']}/approve", headers=admin.headers)
        assert one.status_code == two.status_code == 200
        assert one.json()["unlock"] is not None
        assert two.json()["unlock"] is None
        assert two.json()["payment"]["status"] == "approved"

        count = await db_session.scalar(select(func.count()).select_from(Unlock))
        assert count == 1

    async def test_post_create_approval_grants_nothing(self, client: AsyncClient, student, admin, db_session):
        payment = await _submit(client, student, None, purpose="post_create")
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        assert response.status_code == 200
        assert response.json()["unlock"] is None
        assert await db_session.scalar(select(func.count()).select_from(Unlock)) == 0

    async def test_unknown_payment(self, client: AsyncClient, admin):
        response = await client.post("/api/v1/admin/payments/999/approve", headers=admin.headers)
        assert response.status_code == 404


class TestReject:
    async def test_reject_creates_no_unlock(self, client: AsyncClient, tutor, admin, post, db_session):
        payment = await _submit(client, tutor, post["id"])
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/reject", headers=admin.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["payment"]["status"] == "rejected"
        assert data["payment"]["reviewed_by"] == admin.user_id
        assert data["unlock"] is None

        assert await db_session.scalar(select(func.count()).select_from(Unlock)) == 0

    async def test_rejected_cannot_be_approved(self, client: AsyncClient, tutor, admin, post, db_session):
        payment = await _submit(client, tutor, post["id"])
        await client.post(f"/api/v1/admin/payments/{payment['id']}/reject", headers=admin.headers)
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        assert response.status_code == 409
        assert await db_session.scalar(select(func.count()).select_from(Unlock)) == 0


class TestPaymentListing:
    async def test_list_joins_payer_profile(self, client: AsyncClient, tutor, admin, post):
        await _submit(client, tutor, post["id"])
        response = await client.get("/api/v1/admin/payments", headers=admin.headers)
        assert response.status_code == 200
        [row] = response.json()
        assert row["payer_user_id"] == tutor.user_id
        assert row["payer_name"] == "Ravi Tutor"
        assert row["payer_phone"] == "9123456780"

    async def test_status_filter(self, client: AsyncClient, tutor, admin, post):
        approved = await _submit(client, tutor, post["id"])
        pending = await _submit(client, tutor, post["id"])
        await client.post(f"/api/v1/admin/payments/{approved['id']}/approve", headers=admin.headers)

        response = await client.get("/api/v1/admin/payments", params={"status": "pending"}, headers=admin.headers)
        assert [p["id"] for p in response.json()] == [pending["id"]]

        response = await client.get("/api/v1/admin/payments", params={"status": "approved"}, headers=admin.headers)
        assert [p["id"] for p in response.json()] == [approved["id"]]

    async def test_invalid_status_filter(self, client: AsyncClient, admin):
        response = await client.get("/api/v1/admin/payments", params={"status": "done"}, headers=admin.headers)
        assert response.status_code == 422


class TestApprovalAtomicity:
    async def test_failed_unlock_insert_keeps_payment_pending(
        self, client: AsyncClient, tutor, admin, post, db_session, monkeypatch
    ):
        first = await _submit(client, tutor, post["id"])
        second = await _submit(client, tutor, post["id"])
        granted = await client.post(f"/api/v1/admin/payments/{first['id']}/approve", headers=admin.headers)
        assert granted.json()["unlock"] is not None

        # A concurrent approval already inserted the Unlock after this one checked for it.
        async def _not_found(*_args):
            return False

        monkeypatch.setattr(admin_service, "_unlock_exists", _not_found)
        response = await client.post(f"/api/v1/admin/payments/{second['id']}/approve", headers=admin.headers)
        assert response.status_code == 409
        assert "conflicting change" in response.json()["detail"]

        stored = await db_session.get(ManualPayment, second["id"])
        assert stored.status == "pending"
        assert stored.reviewed_by is None
        unlocks = (await db_session.execute(select(Unlock))).scalars().all()
        assert [u.manual_payment_id for u in unlocks] == [first["id"]]

    async def test_payment_reviewed_between_read_and_update(
        self, client: AsyncClient, tutor, admin, post, db_session, monkeypatch
    ):
        payment = await _submit(client, tutor, post["id"])
        load_payment = admin_service._load_payment

        async def _load_then_reject_elsewhere(db, payment_id):
            loaded = await load_payment(db, payment_id)
            async for other in get_session():
                await other.execute(
                    update(ManualPayment).where(ManualPayment.id == payment_id).values(status="rejected")
                )
                await other.commit()
                break
            return loaded

        monkeypatch.setattr(admin_service, "_load_payment", _load_then_reject_elsewhere)
        response = await client.post(f"/api/v1/admin/payments/{payment['id']}/approve", headers=admin.headers)
        assert response.status_code == 409
        assert "already been reviewed" in response.json()["detail"]

        stored = await db_session.get(ManualPayment, payment["id"])
        assert stored.status == "rejected"
        assert await db_session.scalar(select(func.count()).select_from(Unlock)) == 0
