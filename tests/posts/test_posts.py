"""Tuition post creation, browsing and owner-only edits."""

from httpx import AsyncClient


class TestCreatePost:
    async def test_student_creates_post_and_reads_it_back(self, client: AsyncClient, student, valid_post):
        response = await client.post("/api/v1/posts", json=valid_post, headers=student.headers)
        assert response.status_code == 201
        created = response.json()

        fetched = await client.get(f"/api/v1/posts/{created['id']}")
        assert fetched.status_code == 200
        data = fetched.json()
        assert data["asked_price"] == 500
        assert data["price_type"] == "hourly"
        assert data["student_id"] == student.user_id
        for key in ("title", "subjects", "city", "locality", "timing", "gender_pref", "tuition_type", "description"):
            assert data[key] == valid_post[key]

    async def test_tutor_cannot_post(self, client: AsyncClient, tutor, valid_post):
        response = await client.post("/api/v1/posts", json=valid_post, headers=tutor.headers)
        assert response.status_code == 403

    async def test_requires_auth(self, client: AsyncClient, valid_post):
        response = await client.post("/api/v1/posts", json=valid_post)
        assert response.status_code in (401, 403)

    async def test_locality_defaults_from_profile(self, client: AsyncClient, student, valid_post):
        await client.patch("/api/v1/profiles/me", headers=student.headers, json={"locality": "Baner"})
        valid_post.pop("locality")
        response = await client.post("/api/v1/posts", json=valid_post, headers=student.headers)
        assert response.json()["locality"] == "Baner"

    async def test_validation(self, client: AsyncClient, student, valid_post):
        for field, value in [
            ("title", "Hey"),
            ("subjects", []),
            ("timing", "Night"),
            ("tuition_type", "Anywhere"),
            ("asked_price", 0),
            ("description", "short"),
        ]:
            body = {**valid_post, field: value}
            response = await client.post("/api/v1/posts", json=body, headers=student.headers)
            assert response.status_code == 422, field


class TestBrowse:
    async def _seed(self, client: AsyncClient, headers: dict[str, str], valid_post: dict) -> None:
        for city, course, price, kind in [
            ("Pune", "CBSE Class 10", 500, "Home Tuition"),
            ("Mumbai", "JEE Physics", 1500, "Online"),
            ("Pune", "ICSE Class 8", 300, "At Tutor Home"),
        ]:
            body = {**valid_post, "city": city, "course": course, "asked_price": price, "tuition_type": kind}
            response = await client.post("/api/v1/posts", json=body, headers=headers)
            assert response.status_code == 201

    async def test_newest_first(self, client: AsyncClient, student, valid_post):
        await self._seed(client, student.headers, valid_post)
        response = await client.get("/api/v1/posts")
        assert response.status_code == 200
        courses = [p["course"] for p in response.json()]
        assert courses == ["ICSE Class 8", "JEE Physics", "CBSE Class 10"]

    async def test_city_filter_is_case_insensitive(self, client: AsyncClient, student, valid_post):
        await self._seed(client, student.headers, valid_post)
        response = await client.get("/api/v1/posts", params={"city": "pun"})
        assert {p["city"] for p in response.json()} == {"Pune"}
        assert len(response.json()) == 2

    async def test_price_and_type_filters(self, client: AsyncClient, student, valid_post):
        await self._seed(client, student.headers, valid_post)
        response = await client.get("/api/v1/posts", params={"min_price": 400, "max_price": 2000})
        assert sorted(p["asked_price"] for p in response.json()) == [500, 1500]

        response = await client.get("/api/v1/posts", params={"tuition_type": "Online"})
        assert [p["course"] for p in response.json()] == ["JEE Physics"]

    async def test_course_filter_and_pagination(self, client: AsyncClient, student, valid_post):
        await self._seed(client, student.headers, valid_post)
        response = await client.get("/api/v1/posts", params={"course": "class"})
        assert len(response.json()) == 2

        page = await client.get("/api/v1/posts", params={"limit": 1, "offset": 1})
        assert [p["course"] for p in page.json()] == ["JEE Physics"]

    async def test_unknown_post(self, client: AsyncClient):
        response = await client.get("/api/v1/posts/999")
        assert response.status_code == 404


class TestEditPost:
    async def test_owner_updates(self, client: AsyncClient, student, post):
        response = await client.patch(
            f"/api/v1/posts/{post['id']}", headers=student.headers, json={"asked_price": 650, "timing": "Morning"}
        )
        assert response.status_code == 200
        assert response.json()["asked_price"] == 650
        assert response.json()["timing"] == "Morning"
        assert response.json()["title"] == post["title"]

    async def test_other_user_cannot_update(self, client: AsyncClient, tutor, post):
        response = await client.patch(f"/api/v1/posts/{post['id']}", headers=tutor.headers, json={"asked_price": 1})
        assert response.status_code == 403

    async def test_owner_deletes(self, client: AsyncClient, student, post):
        response = await client.delete(f"/api/v1/posts/{post['id']}", headers=student.headers)
        assert response.status_code == 204
        assert (await client.get(f"/api/v1/posts/{post['id']}")).status_code == 404

    async def test_other_user_cannot_delete(self, client: AsyncClient, tutor, post):
        response = await client.delete(f"/api/v1/posts/{post['id']}", headers=tutor.headers)
        assert response.status_code == 403
