import logging
import re
from io import BytesIO
from pathlib import PurePosixPath
from uuid import uuid4

import boto3
import cloudinary
import cloudinary.uploader
from botocore.exceptions import BotoCoreError, ClientError
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

from lbd_events.core.config import get_settings
from lbd_events.services.uploads import validate_image_file

logger = logging.getLogger(__name__)

MAX_DIMENSIONS = (1200, 630)
DEFAULT_FOLDER = "events"

_CLOUDINARY_PUBLIC_ID = re.compile(r"/v\d+/(.+)\.(?:jpg|jpeg|png|gif|webp|svg)(?:\?|$)", re.IGNORECASE)
_FOLDER_PART = re.compile(r"^[A-Za-z0-9_-]+$")
_FORMAT_SUFFIXES = {
    "JPEG": (".jpg", "image/jpeg"),
    "PNG": (".png", "image/png"),
    "GIF": (".gif", "image/gif"),
    "WEBP": (".webp", "image/webp"),
}


class StorageError(Exception):
    pass


class StorageImageError(StorageError):
    pass


def clean_folder(folder: str | None) -> str:
    parts = [part for part in (folder or DEFAULT_FOLDER).strip().split("/") if part]
    if not parts or not all(_FOLDER_PART.match(part) for part in parts):
        raise StorageImageError(f"Invalid folder: {folder!r}")
    return "/".join(parts)


class StorageService:
    def __init__(self) -> None:
        self.settings = get_settings()
        self.backend = self.settings.storage_backend.lower()

        self.s3_client = None
        if self.backend == "cloudinary":
            cloudinary.config(
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                secure=True,
            )
        elif self.backend == "s3":
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=self.settings.s3_endpoint,
                aws_access_key_id=self.settings.s3_access_key,
                aws_secret_access_key=self.settings.s3_secret_key,
                region_name=self.settings.s3_region,
            )
        else:
            self.settings.media_path.mkdir(parents=True, exist_ok=True)

    async def save_upload(self, upload_file: UploadFile, folder: str | None = None) -> str:
        content = await upload_file.read()
        content_type = upload_file.content_type or "application/octet-stream"
        validate_image_file(content_type, len(content))
        folder = clean_folder(folder)

        if self.backend == "cloudinary":
            self._inspect_image(content)
            return self._save_cloudinary(content=content, folder=folder)

        image_bytes, suffix, image_type = self._prepare_image(content)
        object_key = f"{folder}/{uuid4().hex}{suffix}"
        if self.backend == "s3":
            return self._save_s3(object_key=object_key, content=image_bytes, content_type=image_type)
        return self._save_local(object_key=object_key, content=image_bytes)

    async def check_upload(self, upload_file: UploadFile) -> None:
        """Validate an upload without storing it. The file is rewound for a later save."""
        content = await upload_file.read()
        await upload_file.seek(0)
        validate_image_file(upload_file.content_type or "application/octet-stream", len(content))
        self._inspect_image(content)

    def delete(self, public_id: str) -> None:
        public_id = public_id.strip().strip("/")
        if not public_id or ".." in PurePosixPath(public_id).parts:
            raise StorageError("Invalid public_id")

        if self.backend == "cloudinary":
            self._delete_cloudinary(public_id)
        elif self.backend == "s3":
            self._delete_s3(public_id)
        else:
            self._delete_local(public_id)
        logger.info("Deleted image %s from %s storage.", public_id, self.backend)

    def extract_public_id(self, url: str) -> str | None:
        if self.backend == "cloudinary":
            match = _CLOUDINARY_PUBLIC_ID.search(url)
            return match.group(1) if match else None

        for base in (self.settings.s3_public_base_url, self._s3_base_url(), self.settings.media_base_url):
            if not base:
                continue
            base = base.rstrip("/") + "/"
            if url.startswith(base):
                key = url[len(base):].split("?", 1)[0]
                return str(PurePosixPath(key).with_suffix("")) if key else None
        return None

    def _inspect_image(self, content: bytes) -> None:
        if not content:
            raise StorageImageError("Empty image file")
        try:
            with Image.open(BytesIO(content)) as image:
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as ex:
            raise StorageImageError(f"Invalid image: {ex}") from ex

    def _prepare_image(self, content: bytes) -> tuple[bytes, str, str]:
        self._inspect_image(content)
        try:
            with Image.open(BytesIO(content)) as image:
                image_format = (image.format or "").upper()
                fits = image.width <= MAX_DIMENSIONS[0] and image.height <= MAX_DIMENSIONS[1]
                if fits and image_format in _FORMAT_SUFFIXES:
                    suffix, content_type = _FORMAT_SUFFIXES[image_format]
                    return content, suffix, content_type

                normalized = ImageOps.exif_transpose(image)
                normalized.thumbnail(MAX_DIMENSIONS)
                if image_format not in _FORMAT_SUFFIXES:
                    image_format = "PNG"
                if image_format == "JPEG" and normalized.mode not in ("RGB", "L"):
                    normalized = normalized.convert("RGB")
                output = BytesIO()
                normalized.save(output, format=image_format, optimize=True)
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise StorageImageError(f"Invalid image: {ex}") from ex

        suffix, content_type = _FORMAT_SUFFIXES[image_format]
        return output.getvalue(), suffix, content_type

    def _save_cloudinary(self, content: bytes, folder: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                BytesIO(content),
                folder=folder,
                resource_type="image",
                transformation=[
                    {"width": MAX_DIMENSIONS[0], "height": MAX_DIMENSIONS[1], "crop": "limit", "quality": "auto:good"}
                ],
            )
        except CloudinaryError as ex:
            logger.warning("Cloudinary upload to folder %s failed: %s", folder, ex)
            raise StorageError("Failed to upload image") from ex
        return result["secure_url"]

    def _delete_cloudinary(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image")
        except CloudinaryError as ex:
            logger.warning("Cloudinary delete of %s failed: %s", public_id, ex)
            raise StorageError("Failed to delete image") from ex
        if result.get("result") != "ok":
            raise StorageError(f"Failed to delete image: {result.get('result')}")

    def _save_local(self, object_key: str, content: bytes) -> str:
        path = self.settings.media_path / object_key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        key_url = object_key.replace("\\", "/")
        return f"{self.settings.media_base_url.rstrip('/')}/{key_url}"

    def _delete_local(self, public_id: str) -> None:
        target = self.settings.media_path / public_id
        matches = [path for path in target.parent.glob(f"{target.name}.*") if path.is_file()]
        if not matches:
            raise StorageError("Failed to delete image: not found")
        for path in matches:
            path.unlink()

    def _s3_base_url(self) -> str:
        return f"{self.settings.s3_endpoint.rstrip('/')}/{self.settings.s3_bucket}"

    def _save_s3(self, object_key: str, content: bytes, content_type: str) -> str:
        assert self.s3_client is not None
        try:
            self.s3_client.put_object(
                Bucket=self.settings.s3_bucket,
                Key=object_key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as ex:
            logger.warning("S3 upload of %s failed: %s", object_key, ex)
            raise StorageError("Failed to upload image") from ex
        if self.settings.s3_public_base_url:
            return f"{self.settings.s3_public_base_url.rstrip('/')}/{object_key}"
        return f"{self._s3_base_url()}/{object_key}"

    def _delete_s3(self, public_id: str) -> None:
        assert self.s3_client is not None
        try:
            listing = self.s3_client.list_objects_v2(Bucket=self.settings.s3_bucket, Prefix=f"{public_id}.")
            keys = [item["Key"] for item in listing.get("Contents", [])]
            if not keys:
                raise StorageError("Failed to delete image: not found")
            for key in keys:
                self.s3_client.delete_object(Bucket=self.settings.s3_bucket, Key=key)
        except (BotoCoreError, ClientError) as ex:
            logger.warning("S3 delete of %s failed: %s", public_id, ex)
            raise StorageError("Failed to delete image") from ex
