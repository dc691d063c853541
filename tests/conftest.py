import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

import io
from datetime import datetime

import httpx
import pytest
from botocore.exceptions import ClientError

import photorate.models  # noqa: F401
from photorate.database import Base, build_engine, build_session_factory, get_db
from photorate.main import app
from photorate.models import Photo, User
from photorate.services.auth import hash_password
from photorate.services.reset import PasswordResetService, get_reset_service
from photorate.services.storage import StorageService, get_storage_service


class FakeS3Client:
    """Keeps objects in memory."""

    def __init__(self):
        self.objects = {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[key] = fileobj.read()

    def generate_presigned_url(self, method, Params, ExpiresIn):
        return f"http://storage.test/{Params['Bucket']}/{Params['Key']}"

    def list_objects_v2(self, Bucket, Prefix=""):
        return {"Contents": [{"Key": k} for k in self.objects if k.startswith(Prefix)]}

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404"}}, "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)


class FakeRedis:
    def __init__(self):
        self.data = {}

    def set(self, key, value, ex=None):
        self.data[key] = value

    def getdel(self, key):
        return self.data.pop(key, None)

    def ping(self):
        return True


def make_storage() -> StorageService:
    storage = StorageService.__new__(StorageService)
    storage.client = FakeS3Client()
    storage.bucket = "photorate-test"
    return storage


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'photorate.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_call(session_factory):
    """Run a service call in its own short-lived session."""

    async def _call(fn, *args, **kwargs):
        async with session_factory() as session:
            return await fn(session, *args, **kwargs)

    return _call


@pytest.fixture
def storage():
    return make_storage()


@pytest.fixture
def resets():
    return PasswordResetService(client=FakeRedis())


@pytest.fixture
async def client(session_factory, storage, resets):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_reset_service] = lambda: resets

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    async def _make_user(points: int = 10, email: str | None = None) -> User:
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                email=email or f"user{counter['n']}@example.com",
                password_hash=hash_password("secret"),
                points=points,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_photo(session_factory):
    async def _make_photo(
        owner: User,
        gender: str = "female",
        age: int = 25,
        is_active: bool = True,
        created_at: datetime | None = None,
    ) -> Photo:
        async with session_factory() as session:
            photo = Photo(
                user_id=owner.id,
                s3_key=f"photos/{owner.id}-{gender}-{age}.jpg",
                original_filename="photo.jpg",
                content_type="image/jpeg",
                gender=gender,
                age=age,
                is_active=is_active,
            )
            if created_at is not None:
                photo.created_at = created_at
            session.add(photo)
            await session.commit()
            return photo

    return _make_photo


@pytest.fixture
def balance_of(session_factory):
    async def _balance_of(user: User) -> int:
        async with session_factory() as session:
            return (await session.get(User, user.id)).points

    return _balance_of
