"""
Shared fixtures for the taskhub test suite.

Environment variables are set before any taskhub module is imported,
because settings are read once at import time.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-signing-key-that-is-long-enough-0123456789"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["BOOTSTRAP_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Iterable, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import taskhub.models  # noqa: E402,F401
from taskhub.core.context import CurrentCaller  # noqa: E402
from taskhub.core.database import Base  # noqa: E402
from taskhub.core.rbac import ADMIN_ROLE, ALL_PERMISSIONS  # noqa: E402
from taskhub.core.security import get_password_hash  # noqa: E402
from taskhub.models.tenant import Tenant  # noqa: E402
from taskhub.models.user import User  # noqa: E402
from taskhub.repositories.role import role_repository  # noqa: E402
from taskhub.repositories.tenant import tenant_repository  # noqa: E402
from taskhub.repositories.user import user_repository  # noqa: E402
from taskhub.services.bootstrap import ensure_authorization_catalog  # noqa: E402

TEST_PASSWORD = "Secret123"


# ==================== Database ====================

@pytest.fixture
async def engine():
    """Fresh in-memory database with the real schema"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded_db(db):
    """Database with the permission catalog and system roles"""
    await ensure_authorization_catalog(db)
    return db


# ==================== Tenants and users ====================

async def _create_tenant(db: AsyncSession, name: str) -> Tenant:
    tenant = Tenant(name=name, slug=name.lower().replace(" ", "-"))
    await tenant_repository.add(db, CurrentCaller.system(), tenant)
    return tenant


@pytest.fixture
async def tenant_a(seeded_db):
    return await _create_tenant(seeded_db, "Tenant A")


@pytest.fixture
async def tenant_b(seeded_db):
    return await _create_tenant(seeded_db, "Tenant B")


@pytest.fixture
def make_user(seeded_db):
    """Factory creating an active user in a tenant holding the named system roles"""

    async def _make_user(
        tenant: Tenant,
        email: str,
        *,
        roles: Iterable[str] = (),
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email,
            password_hash=get_password_hash(password),
            first_name="Test",
            last_name="User",
            is_active=is_active,
        )
        ctx = CurrentCaller(user_id=None, tenant_id=tenant.id)
        await user_repository.add(seeded_db, ctx, user, commit=False)

        role_ids = []
        for name in roles:
            role = await role_repository.get_system_role(seeded_db, name)
            role_ids.append(role.id)
        await user_repository.replace_roles(seeded_db, user.id, role_ids)
        await seeded_db.commit()
        return user

    return _make_user


@pytest.fixture
def caller_for():
    """Caller context as it would be rebuilt from a user's credential"""

    def _caller_for(user: User, permissions: Optional[Iterable[str]] = None) -> CurrentCaller:
        return CurrentCaller.for_user(user, ALL_PERMISSIONS if permissions is None else permissions)

    return _caller_for


@pytest.fixture
async def admin_a(tenant_a, make_user):
    return await make_user(tenant_a, "admin@a.example.com", roles=[ADMIN_ROLE])


@pytest.fixture
async def admin_b(tenant_b, make_user):
    return await make_user(tenant_b, "admin@b.example.com", roles=[ADMIN_ROLE])
