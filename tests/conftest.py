"""
Pytest configuration and fixtures for Salesforce sign-in tests.

Provides fixtures for:
- Database session
- Test members
- A fake Salesforce (token and identity endpoints)
- Test client
"""

import os

# Settings are cached on first import, so configure them before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BASE_URL", "http://test/")
os.environ.setdefault("SALESFORCE_CLIENT_ID", "test-client-id")
os.environ.setdefault("SALESFORCE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from salesforce_auth.api.routes.salesforce import get_salesforce_auth
from salesforce_auth.core.auth import SalesforceAuth
from salesforce_auth.domain.models import Base, Member
from salesforce_auth.infrastructure.database import get_db
from salesforce_auth.main import app

BASE_URL = "http://test/"
IDENTITY_URL = "https://login.salesforce.com/id/00D000000000001/005000000000001"


class FakeSalesforce:
    """Stands in for the Salesforce token and identity endpoints."""

    def __init__(self):
        self.token_status = 200
        self.token_body: object = {
            "id": IDENTITY_URL,
            "access_token": "sf-access-token",
            "instance_url": "https://example.my.salesforce.com",
            "token_type": "Bearer",
        }
        self.identity_status = 200
        self.identity_body: object = {
            "user_id": "005000000000001",
            "organization_id": "00D000000000001",
            "email": "member@example.com",
            "username": "member@example.com.sandbox",
        }
        self.fail_with: Optional[Exception] = None
        self.identity_fail_with: Optional[Exception] = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_with is not None:
            raise self.fail_with

        if request.url.path == "/services/oauth2/token":
            return self._respond(self.token_status, self.token_body)

        if request.url.path.startswith("/id/"):
            if self.identity_fail_with is not None:
                raise self.identity_fail_with
            return self._respond(self.identity_status, self.identity_body)

        return httpx.Response(404, json={"error": "not_found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @staticmethod
    def _respond(status_code: int, body: object) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def fake_salesforce() -> FakeSalesforce:
    """Fake Salesforce endpoints with a valid default login."""
    return FakeSalesforce()


@pytest.fixture
def identify_calls() -> list:
    """Records (member, identity) pairs passed to identify hooks."""
    return []


@pytest.fixture
def salesforce_auth(fake_salesforce: FakeSalesforce, identify_calls: list) -> SalesforceAuth:
    """Salesforce auth wired to the fake Salesforce."""
    return SalesforceAuth(
        client_id="test-client-id",
        client_secret="test-client-secret",
        base_url=BASE_URL,
        transport=fake_salesforce.transport,
        identify_hooks=[lambda member, identity: identify_calls.append((member, identity))],
    )


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test_db.sqlite'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def test_member(test_db: AsyncSession) -> Member:
    """Create the member matching the fake Salesforce identity."""
    member = Member(email="member@example.com", first_name="Test", surname="Member")
    test_db.add(member)
    await test_db.commit()
    await test_db.refresh(member)
    return member


@pytest_asyncio.fixture
async def client(
    test_db: AsyncSession, salesforce_auth: SalesforceAuth
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database and Salesforce overrides."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_salesforce_auth] = lambda: salesforce_auth

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
