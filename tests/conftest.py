"""Shared test fixtures.

Tests run against a throwaway SQLite file through aiosqlite and an in-process
fakeredis server. The proof bucket and the geocoding HTTP APIs are replaced
through dependency overrides.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def _write_test_keys(directory: str) -> tuple[str, str]:
    """Generate an RSA key pair for signing test JWTs."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path = os.path.join(directory, "jwt_private.pem")
    public_path = os.path.join(directory, "jwt_public.pem")
    with open(private_path, "wb") as f:
        f.write(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
    with open(public_path, "wb") as f:
        f.write(
            key.public_key().public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )
    return private_path, public_path


_TMPDIR = tempfile.mkdtemp(prefix="tuitionhub_test_")
_PRIVATE_KEY, _PUBLIC_KEY = _write_test_keys(_TMPDIR)

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "Passw0rd123"

os.environ.update({
    "TH_DATABASE_URL": f"sqlite+aiosqlite:///{os.path.join(_TMPDIR, 'test.db')}",
    "TH_REDIS_URL": "redis://localhost:6379/15",
    "TH_JWT_PRIVATE_KEY_PATH": _PRIVATE_KEY,
    "TH_JWT_PUBLIC_KEY_PATH": _PUBLIC_KEY,
    "TH_ADMIN_EMAILS": f'["{ADMIN_EMAIL}"]',
    "TH_LOG_FORMAT": "console",
    "TH_STORAGE_PUBLIC_BASE_URL": "https://storage.test",
    "TH_STORAGE_BUCKET": "proofs",
})

import fakeredis.aioredis  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from tuitionhub import redis_client  # noqa: E402
from tuitionhub.auth.jwt import reset_keys  # noqa: E402
from tuitionhub.config import get_settings  # noqa: E402
from tuitionhub.database import close_db, get_engine, get_session, init_db  # noqa: E402
from tuitionhub.db.base import Base  # noqa: E402
from tuitionhub.db import models  # noqa: E402,F401
from tuitionhub.geo.service import GeoService, get_geo_service  # noqa: E402
from tuitionhub.payments.storage import BaseProofStorage, ProofStorageError, get_proof_storage  # noqa: E402

get_settings.cache_clear()
reset_keys()

from tuitionhub.main import create_app  # noqa: E402


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------


class FakeProofStorage(BaseProofStorage):
    """Records uploads in memory; set ``fail`` to simulate a bucket outage."""

    def __init__(self) -> None:
        self.uploads: list[tuple[str, int, str]] = []
        self.fail = False

    async def upload(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail:
            msg = "Proof upload failed: bucket unavailable"
            raise ProofStorageError(msg)
        self.uploads.append((key, len(data), content_type))

    def public_url(self, key: str) -> str:
        return f"https://storage.test/proofs/{key}"


@dataclass
class GeoStub:
    """Canned answers for the reverse-geocode and IP lookup endpoints. None means HTTP 503."""

    reverse: dict[str, Any] | None = field(
        default_factory=lambda: {"address": {"city": "Pune", "suburb": "Kothrud"}}
    )
    ip: dict[str, Any] | None = field(default_factory=lambda: {"city": "Mumbai", "region": "Maharashtra"})
    requests: list[str] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        payload = self.reverse if request.url.path.startswith("/reverse") else self.ip
        if payload is None:
            return httpx.Response(503, json={"error": "unavailable"})
        return httpx.Response(200, json=payload)


# ---------------------------------------------------------------------------
# App / client
# ---------------------------------------------------------------------------


@pytest.fixture
def proof_storage() -> FakeProofStorage:
    return FakeProofStorage()


@pytest.fixture
def geo_stub() -> GeoStub:
    return GeoStub()


@pytest_asyncio.fixture
async def client(proof_storage: FakeProofStorage, geo_stub: GeoStub) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a fresh schema and an empty fake Redis."""
    settings = get_settings()
    app = create_app()

    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    redis_client._pool = fakeredis.aioredis.FakeRedis(decode_responses=True)

    geo = GeoService(
        geocode_url="https://geo.test/reverse",
        ip_url="https://ip.test",
        user_agent="tuitionhub-tests",
        timeout=settings.location_timeout_seconds,
        transport=httpx.MockTransport(geo_stub.handler),
    )
    app.dependency_overrides[get_proof_storage] = lambda: proof_storage
    app.dependency_overrides[get_geo_service] = lambda: geo

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await redis_client.close_redis()
    await close_db()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:  # noqa: ARG001
    """Direct database session for assertions. Query it after the HTTP calls of a test."""
    async for session in get_session():
        yield session
        break


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@dataclass
class Account:
    user_id: int
    email: str
    headers: dict[str, str]
    refresh_token: str


SignUp = Callable[..., Awaitable[Account]]


@pytest.fixture
def sign_up(client: AsyncClient) -> SignUp:
    """Register an account, optionally switching its role, and return its auth headers."""

    async def _sign_up(
        email: str,
        *,
        role: str | None = None,
        full_name: str | None = None,
        phone: str | None = None,
    ) -> Account:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": PASSWORD, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        headers = {"Authorization": f"Bearer {data['access_token']}"}

        changes = {k: v for k, v in {"role": role, "phone": phone}.items() if v is not None}
        if changes:
            patched = await client.patch("/api/v1/profiles/me", json=changes, headers=headers)
            assert patched.status_code == 200, patched.text

        return Account(
            user_id=data["user"]["id"],
            email=email,
            headers=headers,
            refresh_token=data["refresh_token"],
        )

    return _sign_up


@pytest_asyncio.fixture
async def student(sign_up: SignUp) -> Account:
    return await sign_up("student@example.com", role="student", full_name="Asha Student", phone="9876543210")


@pytest_asyncio.fixture
async def tutor(sign_up: SignUp) -> Account:
    return await sign_up("tutor@example.com", role="tutor", full_name="Ravi Tutor", phone="9123456780")


@pytest_asyncio.fixture
async def admin(sign_up: SignUp) -> Account:
    return await sign_up(ADMIN_EMAIL, full_name="Site Admin")


VALID_POST: dict[str, Any] = {
    "title": "Maths tutor for class 10",
    "course": "CBSE Class 10",
    "subjects": ["Mathematics", "Science"],
    "board": "CBSE",
    "class_level": "10",
    "city": "Pune",
    "locality": "Kothrud",
    "timing": "Evening",
    "gender_pref": "Any",
    "tuition_type": "Home Tuition",
    "price_type": "hourly",
    "asked_price": 500,
    "description": "Need help with algebra and geometry before board exams.",
}


@pytest_asyncio.fixture
async def post(client: AsyncClient, student: Account, valid_post: dict[str, Any]) -> dict[str, Any]:
    response = await client.post("/api/v1/posts", json=valid_post, headers=student.headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def valid_post() -> dict[str, Any]:
    return dict(VALID_POST)


@pytest.fixture
def password() -> str:
    return PASSWORD
