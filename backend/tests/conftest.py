"""Test fixtures: settings, in-memory SQLite database, FastAPI test client, fakes."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwk, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from family_cloud.config import Settings
from family_cloud.database import get_db
from family_cloud.main import create_app
from family_cloud.models.base import Base
from family_cloud.services.listing import ListingError, ListPage, ObjectEntry

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeStore:
    """In-memory stand-in for S3ObjectStore that records every listing call."""

    def __init__(
        self,
        pages: Optional[list[ListPage]] = None,
        fail_on_call: Optional[int] = None,
        delay: float = 0.0,
    ):
        self.pages = pages or [ListPage()]
        self.fail_on_call = fail_on_call
        self.delay = delay
        self.calls: list[dict] = []

    @classmethod
    def paged(cls, *batches: list[ObjectEntry], **kwargs) -> "FakeStore":
        """One page per batch, chained with continuation tokens."""
        pages = [
            ListPage(
                items=list(batch),
                is_truncated=i < len(batches) - 1,
                next_continuation_token=f"token-{i + 1}" if i < len(batches) - 1 else None,
            )
            for i, batch in enumerate(batches)
        ]
        return cls(pages, **kwargs)

    async def list_page(self, prefix="", delimiter=None, continuation_token=None) -> ListPage:
        self.calls.append(
            {"prefix": prefix, "delimiter": delimiter, "continuation_token": continuation_token}
        )
        index = len(self.calls) - 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_call == index:
            raise ListingError("AccessDenied", "Access Denied")
        return self.pages[min(index, len(self.pages) - 1)]

    async def presign_upload(self, key: str) -> str:
        return f"https://bucket.test/{key}?method=PUT"

    async def presign_download(self, key: str) -> str:
        return f"https://bucket.test/{key}?method=GET"


def entry(key: str, size: int, minutes: int = 0) -> ObjectEntry:
    return ObjectEntry(key=key, size=size, last_modified=T0 + timedelta(minutes=minutes))


@pytest.fixture
def make_entry():
    return entry


@pytest.fixture
def fake_store_cls():
    return FakeStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        secret_key="test-secret-key",
        client_url="http://frontend.test",
        cognito_client_id="test-client",
        cognito_jwks_url="https://cognito.test/.well-known/jwks.json",
        cognito_user_pool_id="us-east-1_pool",
        cognito_identity_pool_id="us-east-1:identity-pool",
        google_client_id="google-client",
        s3_bucket="test-bucket",
        database_path=str(tmp_path / "test.db"),
    )


@pytest.fixture(scope="session")
def rsa_key():
    """RSA key pair: private PEM for signing, public JWK as an identity provider serves it."""
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    private = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = private.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    public_jwk = jwk.construct(public_pem, algorithm="RS256").to_dict()
    public_jwk["kid"] = "test-kid"
    return private_pem, public_jwk


@pytest.fixture
def sign_rs256(rsa_key):
    """Sign claims the way Cognito or Google would."""
    private_pem, _ = rsa_key

    def _sign(claims: dict, kid: str = "test-kid") -> str:
        claims = {"exp": datetime.now(timezone.utc) + timedelta(hours=1), **claims}
        return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})

    return _sign


@pytest_asyncio.fixture
async def db_session():
    """Provide an async in-memory SQLite session for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest_asyncio.fixture
async def client(app, db_session: AsyncSession):
    """Provide an async test client with overridden DB dependency."""

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
