"""Location capture: device coordinates, reverse geocoding and the IP fallback."""

from httpx import AsyncClient


class TestLocation:
    async def test_coordinates_are_reverse_geocoded(self, client: AsyncClient, tutor, geo_stub):
        response = await client.post(
            "/api/v1/profiles/me/location", headers=tutor.headers, json={"lat": 18.5074, "lon": 73.8077}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "geocoded"
        assert data["profile"]["city"] == "Pune"
        assert data["profile"]["locality"] == "Kothrud"
        assert data["profile"]["lat"] == 18.5074
        assert any("lat=18.5074" in url for url in geo_stub.requests)

    async def test_town_used_when_no_city(self, client: AsyncClient, tutor, geo_stub):
        geo_stub.reverse = {"address": {"town": "Lonavala", "neighbourhood": "Tungarli"}}
        response = await client.post(
            "/api/v1/profiles/me/location", headers=tutor.headers, json={"lat": 18.75, "lon": 73.40}
        )
        assert response.json()["profile"]["city"] == "Lonavala"
        assert response.json()["profile"]["locality"] == "Tungarli"

    async def test_geocoder_failure_keeps_coordinates(self, client: AsyncClient, tutor, geo_stub):
        geo_stub.reverse = None
        response = await client.post(
            "/api/v1/profiles/me/location", headers=tutor.headers, json={"lat": 12.97, "lon": 77.59}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "coordinates"
        assert data["profile"]["lat"] == 12.97
        assert data["profile"]["lon"] == 77.59

    async def test_ip_fallback_without_coordinates(self, client: AsyncClient, tutor):
        response = await client.post("/api/v1/profiles/me/location", headers=tutor.headers, json={})
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "ip"
        assert data["profile"]["city"] == "Mumbai"
        assert data["profile"]["locality"] == "Maharashtra"

    async def test_no_location_available(self, client: AsyncClient, tutor, geo_stub):
        geo_stub.ip = None
        response = await client.post("/api/v1/profiles/me/location", headers=tutor.headers, json={})
        assert response.status_code == 503
        assert response.json()["detail"] == "Unable to get location. Please enter manually."

    async def test_half_coordinates_rejected(self, client: AsyncClient, tutor, geo_stub):
        response = await client.post("/api/v1/profiles/me/location", headers=tutor.headers, json={"lat": 10.0})
        assert response.status_code == 422
        assert geo_stub.requests == []
