import uuid

import pytest

from videotube.config import settings
from videotube.core.security import verify_password
from videotube.main import app
from videotube.models.user import User


pytestmark = pytest.mark.asyncio

PNG = ("avatar.png", b"\x89PNG fake bytes", "image/png")


async def register_user(client, username: str, email: str, password: str, *, avatar=PNG, cover=None):
    files = {}
    if avatar is not None:
        files["avatar"] = avatar
    if cover is not None:
        files["coverImage"] = cover
    return await client.post(
        "/api/v1/users/register",
        data={"username": username, "email": email, "fullName": "Test User", "password": password},
        files=files,
    )


async def login_user(client, password: str, *, username: str | None = None, email: str | None = None):
    body = {"password": password}
    if username is not None:
        body["username"] = username
    if email is not None:
        body["email"] = email
    return await client.post("/api/v1/users/login", json=body)


async def test_register_and_login_flow(client, storage):
    username = f"User_{uuid.uuid4().hex[:6]}"
    email = f"{username}@Example.com"
    password = "StrongPass!23"

    resp = await register_user(client, username, email, password, cover=("cover.png", b"c", "image/png"))
    body = resp.json()
    assert resp.status_code == 201, resp.text
    assert body["success"] is True
    assert body["data"]["username"] == username.lower()
    assert body["data"]["email"] == email.lower()
    assert body["data"]["avatar"].startswith("https://cdn.test/image/")
    assert body["data"]["coverImage"].startswith("https://cdn.test/image/")
    assert "password" not in body["data"] and "password_hash" not in body["data"]
    assert "refreshToken" not in body["data"]
    assert len(storage.uploads) == 2

    # Stored once-hashed: the plaintext verifies directly against the digest
    stored = await User.get(username=username.lower())
    assert verify_password(password, stored.password_hash)

    # Duplicate username should fail
    dup = await register_user(client, username, f"other_{email}", password)
    assert dup.status_code == 409
    assert dup.json()["success"] is False

    # Login by username, case-insensitive
    login_resp = await login_user(client, password, username=username.upper())
    login_body = login_resp.json()
    assert login_resp.status_code == 200, login_resp.text
    assert login_body["data"]["user"]["username"] == username.lower()
    assert login_body["data"]["accessToken"]
    assert login_body["data"]["refreshToken"]
    set_cookie = " ".join(login_resp.headers.get_list("set-cookie"))
    assert "accessToken=" in set_cookie and "refreshToken=" in set_cookie
    assert "HttpOnly" in set_cookie

    # Login by email also works
    email_login = await login_user(client, password, email=email)
    assert email_login.status_code == 200


async def test_register_duplicate_email_conflict(client):
    first = await register_user(client, "alpha_one", "same@example.com", "Pass!234")
    assert first.status_code == 201
    second = await register_user(client, "alpha_two", "SAME@example.com", "Pass!234")
    assert second.status_code == 409


async def test_register_missing_field(client):
    resp = await client.post(
        "/api/v1/users/register",
        data={"username": "nofields", "email": "", "fullName": "X", "password": "p"},
        files={"avatar": PNG},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "All fields are required"


async def test_register_missing_avatar(client, storage):
    resp = await register_user(client, "noavatar", "noavatar@example.com", "Pass!234", avatar=None)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Avatar file is required"
    assert storage.uploads == []
    assert await User.filter(username="noavatar").count() == 0


async def test_register_upload_failure_creates_nothing(client, storage, upload_dir):
    storage.fail = True
    resp = await register_user(client, "unlucky", "unlucky@example.com", "Pass!234")
    assert resp.status_code == 502
    assert resp.json()["success"] is False
    assert await User.filter(username="unlucky").count() == 0
    # Staged file cleaned up even though the upload failed
    assert list(upload_dir.iterdir()) == []


async def test_login_validation_and_errors(client, create_user):
    user, password = await create_user()

    neither = await client.post("/api/v1/users/login", json={"password": password})
    assert neither.status_code == 400

    both = await login_user(client, password, username=user.username, email=user.email)
    assert both.status_code == 400

    no_password = await client.post("/api/v1/users/login", json={"username": user.username})
    assert no_password.status_code == 400

    unknown = await login_user(client, password, username="ghost_user")
    assert unknown.status_code == 404

    wrong = await login_user(client, "wrong-password", username=user.username)
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid user credentials"


async def test_profile_requires_token(client, create_user, auth_header_factory):
    anonymous = await client.get("/api/v1/users/profile")
    assert anonymous.status_code == 401
    assert anonymous.json() == {
        "statusCode": 401,
        "success": False,
        "message": "Unauthorized request",
    }

    bad = await client.get("/api/v1/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401

    user, password = await create_user()
    headers = await auth_header_factory(user.username, password)
    resp = await client.get("/api/v1/users/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == str(user.id)


async def test_cookie_token_takes_precedence_over_header(client, create_user):
    alice, alice_pw = await create_user()
    bob, bob_pw = await create_user()
    alice_token = (await login_user(client, alice_pw, username=alice.username)).json()["data"]["accessToken"]
    bob_token = (await login_user(client, bob_pw, username=bob.username)).json()["data"]["accessToken"]

    resp = await client.get(
        "/api/v1/users/profile",
        headers={"Cookie": f"accessToken={alice_token}", "Authorization": f"Bearer {bob_token}"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["username"] == alice.username


async def test_refresh_rotation_and_reuse(client, create_user):
    user, password = await create_user()
    tokens = (await login_user(client, password, username=user.username)).json()["data"]

    first = await client.post("/api/v1/users/refreshToken", json={"refreshToken": tokens["refreshToken"]})
    assert first.status_code == 200, first.text
    rotated = first.json()["data"]
    assert rotated["refreshToken"] != tokens["refreshToken"]

    # New access token works
    profile = await client.get(
        "/api/v1/users/profile", headers={"Authorization": f"Bearer {rotated['accessToken']}"}
    )
    assert profile.status_code == 200

    # Replaying the old refresh token is rejected
    replay = await client.post("/api/v1/users/refreshToken", json={"refreshToken": tokens["refreshToken"]})
    assert replay.status_code == 401

    missing = await client.post("/api/v1/users/refreshToken", json={})
    assert missing.status_code == 401


async def test_logout_revokes_refresh(client, create_user):
    user, password = await create_user()
    tokens = (await login_user(client, password, username=user.username)).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

    out = await client.post("/api/v1/users/logout", headers=headers)
    assert out.status_code == 200
    assert (await User.get(id=user.id)).refresh_token is None

    again = await client.post("/api/v1/users/refreshToken", json={"refreshToken": tokens["refreshToken"]})
    assert again.status_code == 401


async def test_change_password(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.username, password)

    wrong_old = await client.post(
        "/api/v1/users/changePassword",
        json={"oldPassword": "nope", "newPassword": "NewPass#456"},
        headers=headers,
    )
    assert wrong_old.status_code == 401

    blank_new = await client.post(
        "/api/v1/users/changePassword",
        json={"oldPassword": password, "newPassword": "  "},
        headers=headers,
    )
    assert blank_new.status_code == 400

    changed = await client.post(
        "/api/v1/users/changePassword",
        json={"oldPassword": password, "newPassword": "NewPass#456"},
        headers=headers,
    )
    assert changed.status_code == 200

    assert (await login_user(client, password, username=user.username)).status_code == 401
    assert (await login_user(client, "NewPass#456", username=user.username)).status_code == 200


async def test_change_avatar_and_cover(client, create_user, auth_header_factory, storage):
    user, password = await create_user()
    headers = await auth_header_factory(user.username, password)

    missing = await client.post("/api/v1/users/changeAvatar", headers=headers)
    assert missing.status_code == 400

    avatar = await client.post("/api/v1/users/changeAvatar", files={"avatar": PNG}, headers=headers)
    assert avatar.status_code == 200
    assert avatar.json()["data"]["avatar"].startswith("https://cdn.test/image/")

    cover = await client.post(
        "/api/v1/users/changeCoverImage",
        files={"coverImage": ("cover.jpg", b"jpg", "image/jpeg")},
        headers=headers,
    )
    assert cover.status_code == 200
    assert cover.json()["data"]["coverImage"].startswith("https://cdn.test/image/")
    assert [rt for _, rt in storage.uploads] == ["image", "image"]


async def test_update_account(client, create_user, auth_header_factory):
    user, password = await create_user()
    other, _ = await create_user()
    headers = await auth_header_factory(user.username, password)

    taken = await client.patch("/api/v1/users/account", json={"email": other.email}, headers=headers)
    assert taken.status_code == 409

    nothing = await client.patch("/api/v1/users/account", json={}, headers=headers)
    assert nothing.status_code == 400

    resp = await client.patch(
        "/api/v1/users/account",
        json={"fullName": "Renamed Person", "email": "Fresh@Example.com"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["fullName"] == "Renamed Person"
    assert resp.json()["data"]["email"] == "fresh@example.com"


async def test_register_without_configured_storage(client, monkeypatch, upload_dir):
    """No Cloudinary credentials: input errors still come first, uploads fail as 502."""
    monkeypatch.setattr(app.state, "storage", None)
    for field in ("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret"):
        monkeypatch.setattr(settings, field, None)

    blank = await client.post(
        "/api/v1/users/register",
        data={"username": "", "email": "", "fullName": "", "password": ""},
    )
    assert blank.status_code == 400
    assert blank.json()["message"] == "All fields are required"

    full = await register_user(client, "nostorage", "nostorage@example.com", "Pass!234")
    assert full.status_code == 502
    assert full.json()["success"] is False
    assert await User.filter(username="nostorage").count() == 0
    assert list(upload_dir.iterdir()) == []
