"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone

# Point the import-time engine at memory BEFORE importing app modules
os.environ["MEMECACHED_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
from botocore.exceptions import ClientError
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from memecached.api.deps import get_storage
from memecached.db import enable_sqlite_pragmas, get_db
from memecached.db.base import Base
from memecached.db.models import Meme, User, UserStatus
from memecached.main import app
from memecached.services.meme_tags import MemeTagLinker
from memecached.services.storage import ObjectStorage, build_public_url
from memecached.services.tag import TagResolver


class FakeS3Client:
    """Records the boto3 S3 calls made by ObjectStorage."""

    def __init__(self) -> None:
        self.deleted: list[str] = []
        self.batches: list[list[str]] = []
        self.presigned: list[str] = []
        self.fail = False
        self.error_keys: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        if self.fail:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "storage unavailable"}},
                operation,
            )

    def generate_presigned_url(self, method, Params, ExpiresIn):
        self._maybe_fail("GeneratePresignedUrl")
        self.presigned.append(Params["Key"])
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?X-Amz-Expires={ExpiresIn}"

    def delete_object(self, Bucket, Key):
        self._maybe_fail("DeleteObject")
        self.deleted.append(Key)
        return {}

    def delete_objects(self, Bucket, Delete):
        self._maybe_fail("DeleteObjects")
        keys = [obj["Key"] for obj in Delete["Objects"]]
        self.batches.append(keys)
        failed = [key for key in keys if key in self.error_keys]
        self.deleted.extend(key for key in keys if key not in failed)
        return {"Errors": [{"Key": key, "Code": "AccessDenied"} for key in failed]}


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine with foreign keys enforced."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_pragmas(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


async def create_user(
    session: AsyncSession,
    email: str = "owner@example.com",
    status: UserStatus = UserStatus.APPROVED,
) -> User:
    """Helper to create a user account."""
    user = User(email=email, name=email.split("@")[0], status=status)
    session.add(user)
    await session.commit()
    return user


async def create_meme(
    session: AsyncSession,
    owner: User,
    description: str = "A meme",
    tags: list[str] | None = None,
    created_at: datetime | None = None,
    filename: str | None = None,
) -> Meme:
    """Helper to create a meme row with tags."""
    created = created_at or datetime.now(timezone.utc)
    meme = Meme(
        user_id=owner.id,
        image_url=build_public_url(f"{owner.id}/{filename or 'image.png'}"),
        description=description,
        created_at=created,
        updated_at=created,
    )
    session.add(meme)
    await session.flush()

    if tags:
        resolved = await TagResolver(session).resolve(tags)
        await MemeTagLinker(session).link(meme.id, resolved)

    await session.commit()
    return meme


@pytest.fixture
async def owner(db_session):
    """An approved user."""
    return await create_user(db_session)


@pytest.fixture
async def other_user(db_session):
    """A second approved user."""
    return await create_user(db_session, email="other@example.com")


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def s3() -> FakeS3Client:
    """Fake boto3 client behind the storage adapter."""
    return FakeS3Client()


@pytest.fixture
async def app_client(db_engine, s3):
    """Create an unauthenticated client with overridden dependencies."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    storage = ObjectStorage(bucket="test-bucket", client=s3)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def client(app_client, owner):
    """Client authenticated as ``owner``."""
    app_client.headers["X-User-Id"] = owner.id
    return app_client


@pytest.fixture
def make_user(db_session):
    """Factory fixture for users."""

    async def _make(email: str, status: UserStatus = UserStatus.APPROVED) -> User:
        return await create_user(db_session, email=email, status=status)

    return _make


@pytest.fixture
def make_meme(db_session, owner):
    """Factory fixture for memes, owned by ``owner`` unless given another user."""

    async def _make(
        description: str = "A meme",
        tags: list[str] | None = None,
        created_at: datetime | None = None,
        user: User | None = None,
        filename: str | None = None,
    ) -> Meme:
        return await create_meme(
            db_session,
            user or owner,
            description=description,
            tags=tags,
            created_at=created_at,
            filename=filename,
        )

    return _make
