from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from tests.fakes import FakeFirestore, FakeIdentityProvider, FakeMailService


def png_bytes(width: int = 1, height: int = 1) -> bytes:
    output = BytesIO()
    Image.new("RGB", (width, height), color=(200, 40, 40)).save(output, format="PNG")
    return output.getvalue()


PNG_1X1 = png_bytes()

ADMIN_UID = "admin-uid"
ADMIN_TOKEN = "admin-token"
ADMIN_EMAIL = "admin@lbd.events"


@pytest.fixture(autouse=True)
def settings_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("MEDIA_DIR", str(tmp_path / "media"))
    monkeypatch.setenv("MEDIA_BASE_URL", "http://testserver/media")
    monkeypatch.setenv("FIREBASE_CREDENTIALS_JSON", str(tmp_path / "missing_firebase.json"))
    monkeypatch.setenv("SMTP_HOST", "")
    monkeypatch.setenv("EVENTS_COLLECTION", "events")
    monkeypatch.setenv("USERS_COLLECTION", "users")

    from lbd_events.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture()
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture()
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def mailer() -> FakeMailService:
    return FakeMailService()


@pytest.fixture()
def app_client(fake_db: FakeFirestore, identity: FakeIdentityProvider, mailer: FakeMailService):
    from lbd_events.api import deps
    from lbd_events.db.firestore import get_db
    from lbd_events.main import create_app

    app = create_app()
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[deps.get_identity_provider] = lambda: identity
    app.dependency_overrides[deps.get_mail_service] = lambda: mailer
    with TestClient(app) as client:
        yield client


def seed_admin(
    fake_db: FakeFirestore,
    identity: FakeIdentityProvider,
    uid: str = ADMIN_UID,
    token: str = ADMIN_TOKEN,
    email: str = ADMIN_EMAIL,
    active: bool = True,
) -> dict[str, str]:
    identity.register(token=token, uid=uid, email=email)
    fake_db.collection("users").document(uid).set(
        {
            "id": uid,
            "username": email.split("@")[0],
            "email": email,
            "role": "admin",
            "isActive": active,
            "createdAt": datetime.now(UTC),
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(fake_db: FakeFirestore, identity: FakeIdentityProvider) -> dict[str, str]:
    return seed_admin(fake_db, identity)
