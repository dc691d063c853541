import uuid

import pytest
from sqlalchemy import update

from photorate.database import get_db
from photorate.config import get_settings
from photorate.errors import NotFound, Unavailable
from photorate.main import app
from photorate.models import User
from photorate.services import photos as photo_service
from photorate.services import storage as storage_module

API = "/api"


async def register(client, email: str, password: str = "Secret!123"):
    response = await client.post(f"{API}/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    body = response.json()
    return body["token"], body["user"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def upload(client, token: str, gender: str = "female", age: str = "25"):
    return await client.post(
        f"{API}/photos/upload",
        headers=auth(token),
        files={"photo": ("me.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
        data={"gender": gender, "age": age},
    )


async def points(client, token: str) -> int:
    response = await client.get(f"{API}/me", headers=auth(token))
    assert response.status_code == 200
    return response.json()["points"]


async def test_points_economy_end_to_end(client, storage):
    token_a, user_a = await register(client, "a@example.com")
    token_b, _ = await register(client, "b@example.com")
    assert user_a["points"] == 10

    response = await upload(client, token_a)
    assert response.status_code == 201, response.text
    photo = response.json()["photo"]
    assert photo["isActive"] is False
    assert photo["url"].startswith("http://storage.test/")
    assert len(storage.client.objects) == 1

    # Hidden photos are not served
    response = await client.get(f"{API}/photos/to-rate", headers=auth(token_b))
    assert response.json() == {"photos": []}

    response = await client.post(
        f"{API}/photos/toggle-active",
        headers=auth(token_a),
        json={"photoId": photo["id"], "isActive": True},
    )
    assert response.status_code == 200, response.text
    assert response.json()["photo"]["isActive"] is True

    response = await client.get(f"{API}/photos/to-rate", headers=auth(token_b))
    served = response.json()["photos"]
    assert [p["id"] for p in served] == [photo["id"]]

    response = await client.post(
        f"{API}/photos/rate", headers=auth(token_b), json={"photoId": photo["id"]}
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Photo rated successfully", "points": 11}
    assert await points(client, token_a) == 9

    response = await client.post(
        f"{API}/photos/rate", headers=auth(token_b), json={"photoId": photo["id"]}
    )
    assert response.status_code == 400
    assert response.json() == {"message": "You have already rated this photo"}
    assert await points(client, token_b) == 11

    response = await client.get(f"{API}/photos/to-rate", headers=auth(token_b))
    assert response.json() == {"photos": []}

    response = await client.get(f"{API}/stats/photo/{photo['id']}", headers=auth(token_a))
    assert response.status_code == 200
    assert response.json()["stats"]["total"] == 1


async def test_self_rating_over_http(client):
    token, _ = await register(client, "self@example.com")
    photo = (await upload(client, token)).json()["photo"]

    response = await client.post(f"{API}/photos/rate", headers=auth(token), json={"photoId": photo["id"]})

    assert response.status_code == 400
    assert response.json() == {"message": "Cannot rate your own photo"}
    assert await points(client, token) == 10


async def test_activation_refused_when_broke(client, session_factory):
    token, user = await register(client, "broke@example.com")
    photo = (await upload(client, token)).json()["photo"]

    async with session_factory() as session:
        await session.execute(update(User).where(User.id == uuid.UUID(user["id"])).values(points=0))
        await session.commit()

    response = await client.post(
        f"{API}/photos/toggle-active",
        headers=auth(token),
        json={"photoId": photo["id"], "isActive": True},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Not enough points to activate photo"}

    response = await client.get(f"{API}/photos/my-photos", headers=auth(token))
    assert response.json()["photos"][0]["isActive"] is False


async def test_rating_unknown_photo(client):
    token, _ = await register(client, "r@example.com")
    response = await client.post(f"{API}/photos/rate", headers=auth(token), json={"photoId": str(uuid.uuid4())})
    assert response.status_code == 404
    assert response.json() == {"message": "Photo not found"}


@pytest.mark.parametrize("body", [{}, {"photoId": "not-a-uuid"}])
async def test_rating_malformed_body(client, body):
    token, _ = await register(client, "m@example.com")
    response = await client.post(f"{API}/photos/rate", headers=auth(token), json=body)
    assert response.status_code == 400
    assert "message" in response.json()


async def test_to_rate_rejects_non_numeric_age(client):
    token, _ = await register(client, "n@example.com")
    response = await client.get(
        f"{API}/photos/to-rate", headers=auth(token), params={"minAge": "x", "maxAge": "30"}
    )
    assert response.status_code == 400
    assert response.json() == {"message": "minAge must be a number"}


@pytest.mark.parametrize(
    "path, method",
    [
        ("/photos/to-rate", "get"),
        ("/photos/my-photos", "get"),
        ("/photos/rate", "post"),
        ("/me", "get"),
    ],
)
async def test_protected_routes_need_a_token(client, path, method):
    response = await getattr(client, method)(f"{API}{path}")
    assert response.status_code == 401
    assert response.json() == {"message": "Authentication failed"}


async def test_garbage_token(client):
    response = await client.get(f"{API}/me", headers=auth("not.a.jwt"))
    assert response.status_code == 401


async def test_duplicate_registration(client):
    await register(client, "dup@example.com")
    response = await client.post(f"{API}/register", json={"email": "DUP@example.com", "password": "x"})
    assert response.status_code == 400
    assert response.json() == {"message": "User already exists"}


async def test_register_requires_fields(client):
    response = await client.post(f"{API}/register", json={"email": "only@example.com"})
    assert response.status_code == 400
    assert response.json() == {"message": "Email and password are required"}


async def test_login(client):
    await register(client, "login@example.com", password="Secret!123")

    response = await client.post(f"{API}/login", json={"email": "login@example.com", "password": "Secret!123"})
    assert response.status_code == 200
    assert await points(client, response.json()["token"]) == 10

    response = await client.post(f"{API}/login", json={"email": "login@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


@pytest.mark.parametrize(
    "data, message",
    [
        ({"gender": "female"}, "Gender and age are required"),
        ({"gender": "alien", "age": "20"}, "gender must be one of: male, female, other"),
        ({"gender": "male", "age": "0"}, "age must be positive"),
    ],
)
async def test_upload_validates_tags(client, data, message):
    token, _ = await register(client, "tags@example.com")
    response = await client.post(
        f"{API}/photos/upload",
        headers=auth(token),
        files={"photo": ("me.jpg", b"jpeg", "image/jpeg")},
        data=data,
    )
    assert response.status_code == 400
    assert response.json() == {"message": message}


async def test_upload_rejects_unsupported_file_type(client, storage):
    token, _ = await register(client, "gif@example.com")
    response = await client.post(
        f"{API}/photos/upload",
        headers=auth(token),
        files={"photo": ("anim.gif", b"GIF89a", "image/gif")},
        data={"gender": "male", "age": "30"},
    )
    assert response.status_code == 400
    assert storage.client.objects == {}


async def test_forgot_and_reset_password(client, resets):
    await register(client, "forgot@example.com", password="Old!pass1")

    response = await client.post(f"{API}/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 404

    response = await client.post(f"{API}/forgot-password", json={"email": "forgot@example.com"})
    assert response.status_code == 200
    [key] = resets.redis.data
    token = key.split(":")[-1]

    response = await client.post(f"{API}/reset-password", json={"token": token, "password": "New!pass1"})
    assert response.status_code == 200

    response = await client.post(f"{API}/reset-password", json={"token": token, "password": "Again!1"})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid or expired reset token"}

    response = await client.post(f"{API}/login", json={"email": "forgot@example.com", "password": "New!pass1"})
    assert response.status_code == 200


async def test_liveness(client):
    response = await client.get("/health/live")
    assert response.json() == {"status": "alive"}


async def test_to_rate_always_returns_a_list(client):
    token, _ = await register(client, "list@example.com")
    response = await client.get(f"{API}/photos/to-rate", headers=auth(token))
    assert response.status_code == 200
    assert list(response.json()) == ["photos"]
    assert response.json()["photos"] == []


async def test_upload_removes_stored_file_when_record_fails(client, storage, monkeypatch):
    token, _ = await register(client, "orphan@example.com")

    async def failing_create_photo(*args, **kwargs):
        raise Unavailable("Database unavailable")

    monkeypatch.setattr(photo_service, "create_photo", failing_create_photo)

    response = await upload(client, token)

    assert response.status_code == 503
    assert storage.client.objects == {}

    response = await client.get(f"{API}/photos/my-photos", headers=auth(token))
    assert response.json() == {"photos": []}


async def test_upload_rejects_oversized_file_before_storing(client, storage, monkeypatch):
    token, _ = await register(client, "big@example.com")
    monkeypatch.setattr(storage_module.settings, "max_upload_size_mb", 0)

    response = await upload(client, token)

    assert response.status_code == 400
    assert "File too large" in response.json()["message"]
    assert storage.client.objects == {}


async def test_download_own_photo_file(client):
    token, _ = await register(client, "file@example.com")
    photo = (await upload(client, token)).json()["photo"]

    response = await client.get(f"{API}/photos/{photo['id']}/file", headers=auth(token))

    assert response.status_code == 200
    assert response.content == b"\xff\xd8\xff fake jpeg"
    assert response.headers["content-type"] == "image/jpeg"


async def test_hidden_photo_file_is_private(client):
    token_a, _ = await register(client, "owner@example.com")
    token_b, _ = await register(client, "viewer@example.com")
    photo = (await upload(client, token_a)).json()["photo"]

    response = await client.get(f"{API}/photos/{photo['id']}/file", headers=auth(token_b))
    assert response.status_code == 404

    await client.post(
        f"{API}/photos/toggle-active",
        headers=auth(token_a),
        json={"photoId": photo["id"], "isActive": True},
    )
    response = await client.get(f"{API}/photos/{photo['id']}/file", headers=auth(token_b))
    assert response.status_code == 200


async def test_photo_file_missing_from_storage(client, storage):
    token, _ = await register(client, "gone@example.com")
    photo = (await upload(client, token)).json()["photo"]
    storage.client.objects.clear()

    response = await client.get(f"{API}/photos/{photo['id']}/file", headers=auth(token))

    assert response.status_code == 404
    assert response.json() == {"message": "Photo file not found"}


async def test_readiness(client):
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


async def test_readiness_reports_unavailable_database(client):
    class BrokenSession:
        async def execute(self, *args, **kwargs):
            raise ConnectionError("database is down")

    app.dependency_overrides[get_db] = lambda: BrokenSession()

    response = await client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not ready"}


async def test_health_lists_each_service(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["services"] == {
        "database": "healthy",
        "redis": "healthy",
        "storage": "healthy",
    }


def test_storage_file_lookup(storage):
    key = storage.store_photo(b"jpeg bytes", "me.JPG", "image/jpeg")

    assert key.startswith("photos/") and key.endswith(".jpg")
    assert storage.file_exists(key) is True
    assert storage.download_file(key) == b"jpeg bytes"

    assert storage.delete_file(key) is True
    assert storage.file_exists(key) is False
    with pytest.raises(NotFound):
        storage.download_file(key)


async def test_new_user_balance_comes_from_settings(session_factory):
    async with session_factory() as session:
        user = User(email="default@example.com", password_hash="x")
        session.add(user)
        await session.commit()
        assert user.points == get_settings().initial_points
