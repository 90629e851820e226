"""
CampusBuzz - Test Configuration and Fixtures
"""
import os
from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

# Set testing environment (antes de importar la app: settings se lee al importar)
os.environ['APP_ENV'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_campusbuzz.db'
os.environ['DATABASE_AUTO_CREATE'] = 'false'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['TICKET_SIGNING_SECRET'] = 'test-ticket-signing-secret'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'

from main import app
from app.core.security import hash_password
from shared.auth.jwt_handler import issue_session
from shared.database.connection import Base, get_db
from shared.database.models import User, Event

fake = Faker()

TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_campusbuzz.db'
TEST_PASSWORD = 'testpassword123'
TEST_SIGNING_SECRET = 'test-ticket-signing-secret'

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, is_admin: bool = False) -> User:
    user = User(
        name=fake.name(),
        email=f'{fake.unique.user_name().lower()}@campus.edu',
        password_hash=hash_password(TEST_PASSWORD),
        is_admin=is_admin
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = issue_session(user)['access_token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a regular (non-admin) user"""
    return await _create_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin user"""
    return await _create_user(db_session, is_admin=True)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


def event_data(**overrides) -> dict:
    """Payload válido para POST /events"""
    data = {
        'title': fake.sentence(nb_words=3).rstrip('.'),
        'description': fake.paragraph(),
        'date': (date.today() + timedelta(days=14)).isoformat(),
        'time': '18:30',
        'location': 'Main Auditorium',
        'category': 'tech',
        'price': 0,
        'host': 'Coding Club',
    }
    data.update(overrides)
    return data


async def _create_event(db_session: AsyncSession, owner: User, **overrides) -> Event:
    fields = {
        'title': 'Hackathon',
        'description': 'Overnight build session',
        'date': date.today() + timedelta(days=7),
        'time': '20:00',
        'location': 'Lab 3',
        'category': 'tech',
        'price': 0,
        'host': 'Coding Club',
        'is_approved': True,
    }
    fields.update(overrides)
    event = Event(owner_id=owner.id, **fields)
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest.fixture
async def approved_event(db_session: AsyncSession, admin_user: User) -> Event:
    """Approved event owned by the admin"""
    return await _create_event(db_session, admin_user)


@pytest.fixture
async def pending_event(db_session: AsyncSession, test_user: User) -> Event:
    """Unapproved event owned by test_user"""
    return await _create_event(db_session, test_user, title='Poetry Night', is_approved=False)


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory: await make_event(owner, **fields)"""
    async def _make(owner: User, **overrides) -> Event:
        return await _create_event(db_session, owner, **overrides)
    return _make


@pytest.fixture
def event_payload():
    """Factory del payload de POST /events"""
    return event_data


@pytest.fixture
def session_factory(db_session: AsyncSession):
    """Sesiones independientes sobre la misma base (para requests concurrentes)"""
    return TestSessionLocal
