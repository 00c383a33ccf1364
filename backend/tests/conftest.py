"""
NoteNexus - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'test'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['REDIS_URL'] = 'redis://localhost:6379/15'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['STORAGE_MODE'] = 'local'
os.environ['UPLOAD_PATH'] = tempfile.mkdtemp(prefix='notenexus-uploads-')

from notenexus.main import app
from notenexus.core.database import Base, get_db
from notenexus.core.redis_client import RedisClient, get_redis
from notenexus.core.security import get_password_hash
from notenexus.models import File, Note, NoteBranch, Subject, Tip, TipStatus, User, UserRole
from notenexus.services.email_service import EmailService, get_email_service
from notenexus.utils.storage_client import StorageClient, get_storage

from helpers import DEFAULT_PASSWORD, bearer, fake, unique_email
from mocks.mock_redis import FakeRedis

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh tables for each test; the session is for setup and assertions"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory():
    """Separate sessions, for reading back what a request committed"""
    return TestSessionLocal


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis(fake_redis: FakeRedis) -> RedisClient:
    client = RedisClient()
    client.redis = fake_redis
    return client


@pytest.fixture
def mailer() -> MagicMock:
    """Email service double; every send succeeds unless a test says otherwise"""
    service = MagicMock(spec=EmailService)
    service.is_configured = True
    service.send_otp_email = AsyncMock(return_value=True)
    service.send_contact_message = AsyncMock(return_value=True)
    service.send_email = AsyncMock(return_value=True)
    return service


@pytest.fixture
def storage(tmp_path) -> StorageClient:
    return StorageClient(mode='local', upload_dir=tmp_path / 'uploads')


@pytest.fixture
async def client(
    db_session: AsyncSession,
    redis: RedisClient,
    mailer: MagicMock,
    storage: StorageClient
) -> AsyncGenerator[AsyncClient, None]:
    """Test client with database, Redis, email and storage overridden.

    Each request gets its own session, like in production.
    """
    async def override_get_db():
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================
# Data factories
# ============================================

@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make(role: UserRole = UserRole.STUDENT, email: Optional[str] = None,
                    password: str = DEFAULT_PASSWORD, name: Optional[str] = None) -> User:
        user = User(
            email=(email or unique_email()).lower(),
            name=name or fake.name(),
            hashed_password=get_password_hash(password),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest.fixture
async def test_user(make_user) -> User:
    """Create a student"""
    return await make_user()


@pytest.fixture
async def other_user(make_user) -> User:
    """A second student"""
    return await make_user()


@pytest.fixture
async def admin_user(make_user) -> User:
    """Create the admin"""
    return await make_user(role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authentication headers for the student"""
    return bearer(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return bearer(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Authentication headers for the admin"""
    return bearer(admin_user)


@pytest.fixture
async def subject(db_session: AsyncSession) -> Subject:
    record = Subject(name='Data Structures', branch='CSE', semester=3)
    db_session.add(record)
    await db_session.commit()
    return record


@pytest.fixture
def make_tip(db_session: AsyncSession):
    async def _make(owner: User, status: TipStatus = TipStatus.PENDING,
                    approved_by: Optional[User] = None, title: Optional[str] = None) -> Tip:
        tip = Tip(
            title=title or fake.sentence(nb_words=4),
            content=fake.paragraph(nb_sentences=3),
            posted_by_id=owner.id,
            status=status,
            approved_by_id=approved_by.id if approved_by else None,
        )
        db_session.add(tip)
        await db_session.commit()
        return tip
    return _make


@pytest.fixture
def make_note(db_session: AsyncSession):
    async def _make(owner: User, subject: Subject, branches: List[str] = None,
                    approved_by: Optional[User] = None, semester: int = 3,
                    title: Optional[str] = None) -> Note:
        note = Note(
            title=title or fake.sentence(nb_words=3),
            semester=semester,
            subject_id=subject.id,
            file_url=f"/uploads/{fake.uuid4()}-notes.pdf",
            uploaded_by_id=owner.id,
            approved_by_id=approved_by.id if approved_by else None,
            branch_tags=[NoteBranch(branch=b) for b in (branches or ['CSE'])],
        )
        db_session.add(note)
        await db_session.commit()
        return note
    return _make


@pytest.fixture
def make_file(db_session: AsyncSession):
    async def _make(owner: User, approved_by: Optional[User] = None) -> File:
        record = File(
            filename='syllabus.pdf',
            url=f"/uploads/{fake.uuid4()}-syllabus.pdf",
            content_type='application/pdf',
            size=1024,
            uploaded_by_id=owner.id,
            approved_by_id=approved_by.id if approved_by else None,
        )
        db_session.add(record)
        await db_session.commit()
        return record
    return _make
