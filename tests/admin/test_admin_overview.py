"""Admin overview statistics and moderation listings."""

from httpx import AsyncClient


class TestOverview:
    async def test_stats(self, client: AsyncClient, tutor, student, admin, post):
        body = {"purpose": "post_view", "target_post_id": post["id"]}
        approved = (await client.post("/api/v1/payments/manual", headers=tutor.headers, json=body)).json()
        await client.post("/api/v1/payments/manual", headers=tutor.headers, json=body)
        await client.post(f"/api/v1/admin/payments/{approved['id']}/approve", headers=admin.headers)
        await client.post("/api/v1/wallet/topups", headers=student.headers, json={"amount": 250, "utr_number": "U1"})

        response = await client.get("/api/v1/admin/stats", headers=admin.headers)
        assert response.status_code == 200
        assert response.json() == {
            "total_users": 3,
            "total_posts": 1,
            "pending_payments": 1,
            "approved_payments": 1,
            "rejected_payments": 0,
            "total_revenue": 100.0,
            "pending_wallet_transactions": 1,
        }

    async def test_users_listing(self, client: AsyncClient, tutor, student, admin):
        response = await client.get("/api/v1/admin/users", headers=admin.headers)
        assert response.status_code == 200
        roles = {u["email"]: u["role"] for u in response.json()}
        assert roles == {
            "tutor@example.com": "tutor",
            "student@example.com": "student",
            "admin@example.com": "admin",
        }

    async def test_posts_listing(self, client: AsyncClient, admin, post):
        response = await client.get("/api/v1/admin/posts", headers=admin.headers)
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [post["id"]]
