from typing import List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork, build_unit_of_work_factory
from src.app.services.audit_log import AuditLog
from src.app.services.crypto import RecordSigner, SecretCipher
from src.app.services.notifier import ResetNotifier
from src.app.services.passwords import PasswordHasher
from src.app.services.rate_limiter import RateLimiter, default_policies
from src.app.services.security_settings import SecuritySettings
from src.app.services.two_factor import TwoFactorService
from src.depends import (
    get_audit_log,
    get_password_hasher,
    get_rate_limiter,
    get_reset_notifier,
    get_settings,
    get_two_factor_service,
    get_unit_of_work,
)
from src.domain.entities import User

PASSWORD = "OldPass123!"


class CapturingNotifier(ResetNotifier):
    """Keeps every reset hand-off so tests can follow the emailed link."""

    def __init__(self):
        self.sent: List[dict] = []

    async def send_reset(self, email, token, reset_url, expires_at):
        self.sent.append({"email": email, "token": token, "reset_url": reset_url, "expires_at": expires_at})

    @property
    def last_token(self) -> str:
        return self.sent[-1]["token"]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def settings():
    return SecuritySettings()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def two_factor_service():
    return TwoFactorService(SecretCipher("integration-test-secret"))


@pytest.fixture
def notifier():
    return CapturingNotifier()


@pytest.fixture
def audit_log(session_factory):
    return AuditLog(build_unit_of_work_factory(session_factory), RecordSigner("integration-secret"))


@pytest.fixture
def rate_limiter(session_factory, settings, audit_log):
    return RateLimiter(build_unit_of_work_factory(session_factory), default_policies(settings), audit_log)


@pytest_asyncio.fixture
async def client(session_factory, settings, hasher, two_factor_service, notifier, audit_log, rate_limiter):
    from src.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_two_factor_service] = lambda: two_factor_service
    app.dependency_overrides[get_reset_notifier] = lambda: notifier
    app.dependency_overrides[get_audit_log] = lambda: audit_log
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_user(session_factory, hasher):
    """Insert a committed user; returns the detached row."""

    async def create(email="user@example.com", password=PASSWORD, **kwargs) -> User:
        kwargs.setdefault("email_verified", True)
        user = User(email=email, password_hash=hasher.hash(password), **kwargs)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return create


@pytest.fixture
def fetch_one(session_factory):
    """Run a select in a fresh session and return the first row."""

    async def fetch(stmt):
        async with session_factory() as session:
            result = await session.exec(stmt)
            return result.first()

    return fetch


@pytest.fixture
def fetch_all(session_factory):
    async def fetch(stmt):
        async with session_factory() as session:
            result = await session.exec(stmt)
            return result.all()

    return fetch


@pytest.fixture
def login(client):
    """Password login; returns the parsed response body."""

    async def do_login(email="user@example.com", password=PASSWORD, **extra):
        response = await client.post("/auth/login", json={"email": email, "password": password, **extra})
        assert response.status_code == 200, response.text
        return response.json()

    return do_login
