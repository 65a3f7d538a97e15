import asyncio
from io import BytesIO

import pytest
from fastapi import UploadFile
from PIL import Image
from starlette.datastructures import Headers

from lbd_events.core.config import clear_settings_cache
from lbd_events.services import storage as storage_module
from lbd_events.services.storage import MAX_DIMENSIONS, StorageError, StorageImageError, StorageService, clean_folder
from lbd_events.services.uploads import ImageValidationError
from tests.conftest import PNG_1X1, png_bytes


def make_upload(content: bytes, content_type: str = "image/png", filename: str = "banner.png") -> UploadFile:
    return UploadFile(file=BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))


@pytest.fixture()
def backend(monkeypatch: pytest.MonkeyPatch):
    def use(name: str) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", name)
        clear_settings_cache()

    return use


def test_clean_folder():
    assert clean_folder(None) == "events"
    assert clean_folder("/events//gallery/") == "events/gallery"
    with pytest.raises(StorageImageError):
        clean_folder("events/../secrets")


def test_large_images_are_downscaled():
    storage = StorageService()

    url = asyncio.run(storage.save_upload(make_upload(png_bytes(2400, 1260)), folder="events"))

    stored = storage.settings.media_path / url.removeprefix("http://testserver/media/")
    with Image.open(stored) as image:
        assert image.size == MAX_DIMENSIONS


def test_oversized_file_is_rejected_before_storage():
    storage = StorageService()
    content = PNG_1X1 + b"\0" * (10 * 1024 * 1024)

    with pytest.raises(ImageValidationError):
        asyncio.run(storage.save_upload(make_upload(content)))
    assert not any(storage.settings.media_path.rglob("*.png"))


def test_local_public_id_round_trip():
    storage = StorageService()
    url = asyncio.run(storage.save_upload(make_upload(PNG_1X1)))

    public_id = storage.extract_public_id(url)
    assert public_id is not None and public_id.startswith("events/")

    storage.delete(public_id)
    with pytest.raises(StorageError):
        storage.delete(public_id)


def test_cloudinary_upload_and_delete(backend, monkeypatch: pytest.MonkeyPatch):
    backend("cloudinary")
    calls = {}

    def fake_upload(file, **options):
        calls["upload"] = options
        return {"secure_url": "https://res.cloudinary.com/lbd/image/upload/v17/events/abc.png"}

    def fake_destroy(public_id, **options):
        calls["destroy"] = public_id
        return {"result": "ok" if public_id == "events/abc" else "not found"}

    monkeypatch.setattr(storage_module.cloudinary.uploader, "upload", fake_upload)
    monkeypatch.setattr(storage_module.cloudinary.uploader, "destroy", fake_destroy)
    storage = StorageService()

    url = asyncio.run(storage.save_upload(make_upload(PNG_1X1), folder="events"))
    assert url == "https://res.cloudinary.com/lbd/image/upload/v17/events/abc.png"
    assert calls["upload"]["folder"] == "events"

    public_id = storage.extract_public_id(url)
    assert public_id == "events/abc"
    storage.delete(public_id)
    assert calls["destroy"] == "events/abc"

    with pytest.raises(StorageError):
        storage.delete("events/missing")


def test_cloudinary_failure_is_storage_error(backend, monkeypatch: pytest.MonkeyPatch):
    backend("cloudinary")

    def broken_upload(file, **options):
        raise storage_module.CloudinaryError("quota exceeded")

    monkeypatch.setattr(storage_module.cloudinary.uploader, "upload", broken_upload)

    with pytest.raises(StorageError, match="Failed to upload image"):
        asyncio.run(StorageService().save_upload(make_upload(PNG_1X1)))


class FakeS3Client:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body

    def list_objects_v2(self, Bucket, Prefix):
        return {"Contents": [{"Key": key} for key in self.objects if key.startswith(Prefix)]}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)


def test_s3_upload_and_delete(backend, monkeypatch: pytest.MonkeyPatch):
    backend("s3")
    monkeypatch.setenv("S3_PUBLIC_BASE_URL", "https://cdn.lbd.events")
    clear_settings_cache()
    client = FakeS3Client()
    monkeypatch.setattr(storage_module.boto3, "client", lambda *args, **kwargs: client)
    storage = StorageService()

    url = asyncio.run(storage.save_upload(make_upload(PNG_1X1), folder="events/gallery"))

    assert url.startswith("https://cdn.lbd.events/events/gallery/")
    public_id = storage.extract_public_id(url)
    storage.delete(public_id)
    assert client.objects == {}


def test_fixture_image_is_valid():
    with Image.open(BytesIO(PNG_1X1)) as image:
        image.verify()


def test_check_upload_rewinds_for_save():
    storage = StorageService()
    upload_file = make_upload(PNG_1X1)

    asyncio.run(storage.check_upload(upload_file))
    url = asyncio.run(storage.save_upload(upload_file))

    stored = storage.settings.media_path / url.removeprefix("http://testserver/media/")
    assert stored.read_bytes() == PNG_1X1


def test_check_upload_rejects_corrupt_image():
    with pytest.raises(StorageImageError):
        asyncio.run(StorageService().check_upload(make_upload(b"\x89PNG\r\n\x1a\n broken")))
