import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from videotube.config import settings
from videotube.core import db as db_module
from videotube.core.errors import UploadFailed
from videotube.core.security import hash_password
from videotube.main import app
from videotube.models.user import User
from videotube.services import ObjectStorage, UploadedMedia
from videotube.services.storage_base import discard_local_file


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


class FakeStorage(ObjectStorage):
    """
    In-process stand-in for Cloudinary.
    Honours the upload contract: the staged file is consumed either way.
    """

    def __init__(self):
        self.uploads: list[tuple[str, str]] = []
        self.fail = False

    @property
    def name(self) -> str:
        return "Fake"

    def is_available(self) -> bool:
        return True

    async def upload(self, local_path: str, resource_type: str = "auto") -> UploadedMedia:
        try:
            assert os.path.exists(local_path), "upload called without a staged file"
            if self.fail:
                raise UploadFailed()
            self.uploads.append((local_path, resource_type))
            n = len(self.uploads)
            return UploadedMedia(
                url=f"https://cdn.test/{resource_type}/{n}",
                public_id=f"fake-{n}",
                duration=42.5 if resource_type == "video" else None,
            )
        finally:
            discard_local_file(local_path)


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Stage multipart uploads under the test's tmp dir."""
    staging = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_tmp_dir", str(staging))
    return staging


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(app.state, "storage", fake, raising=False)
    return fake


@pytest_asyncio.fixture
async def db():
    """Fresh schema for tests that talk to the ORM without going through HTTP."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(storage):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly via ORM, bypassing uploads.
    """

    async def _create_user(password: str = "UserPass!23", username: str | None = None) -> tuple[User, str]:
        handle = (username or f"user_{uuid.uuid4().hex[:6]}").lower()
        user = await User.create(
            username=handle,
            email=f"{handle}@example.com",
            full_name=handle.replace("_", " ").title(),
            password_hash=hash_password(password),
            avatar=f"https://cdn.test/avatar/{handle}.png",
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/users/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
