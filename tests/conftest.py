"""Shared test fixtures: async SQLite file DB, in-memory identity and storage, test client."""

import base64
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.api.deps import get_webhook_secret
from app.core.database import get_session, get_session_factory
from app.core.errors import UpstreamFailure
from app.main import app
from app.services.identity import IDENTITY_FAILED, MetadataValue, Principal, get_identity_gateway
from app.services.storage import UPLOAD_FAILED, get_blob_store

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"identity-webhook-test-secret").decode()


class FakeIdentity:
    """In-memory identity provider. Tokens map straight to principal ids."""

    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}
        self.principals: dict[str, Principal] = {}
        self.patches: list[tuple[str, dict[str, MetadataValue]]] = []
        self.fail_patches = False

    def sign_in(self, principal_id: str, email: str | None = None) -> dict[str, str]:
        token = f"token-{principal_id}"
        self.tokens[token] = principal_id
        self.principals.setdefault(
            principal_id, Principal(id=principal_id, email=email or f"{principal_id}@test.com"),
        )
        return {"Authorization": f"Bearer {token}"}

    async def authenticate(self, token: str | None) -> str | None:
        return self.tokens.get(token) if token else None

    async def get_principal(self, principal_id: str) -> Principal:
        principal = self.principals.get(principal_id) or Principal(id=principal_id, email=None)
        return Principal(id=principal.id, email=principal.email, metadata=dict(principal.metadata))

    async def patch_metadata(self, principal_id: str, partial: dict[str, MetadataValue]) -> None:
        if self.fail_patches:
            raise UpstreamFailure(IDENTITY_FAILED, upstream_status=503)
        self.patches.append((principal_id, dict(partial)))
        principal = self.principals.setdefault(principal_id, Principal(id=principal_id, email=None))
        principal.metadata.update(partial)


class FakeBlobStore:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.fail_uploads = False

    async def put_object(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise UpstreamFailure(UPLOAD_FAILED, upstream_status=503)
        self.objects[(bucket, path)] = (data, content_type)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://storage.test/{bucket}/{path}"


@pytest.fixture
async def engine(tmp_path):
    # File-backed so the public page can open several connections at once
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
async def client(test_session_factory, identity, blob_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB, identity and storage overrides."""

    async def _override_session():
        async with test_session_factory() as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_session_factory] = lambda: test_session_factory
    app.dependency_overrides[get_identity_gateway] = lambda: identity
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def onboard(client: AsyncClient, identity: FakeIdentity):
    """Sign a principal in and complete onboarding; returns its auth headers."""

    async def _onboard(principal_id: str, **overrides) -> dict[str, str]:
        headers = identity.sign_in(principal_id)
        form = {
            "first_name": "Ana",
            "last_name": "Diaz",
            "phone": "+54 11 5555-1234",
            "address": "Calle 123",
            "brand_name": "Café Luz",
            **overrides,
        }
        resp = await client.post("/v1/onboarding", json=form, headers=headers)
        assert resp.status_code == 200, resp.text
        return headers

    return _onboard


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET
