from typing import Literal
from urllib.parse import urlsplit

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_GALLERY_BATCH = 10

CDN_HOST_SUFFIX = "cloudinary.com"
CDN_UPLOAD_MARKER = "/upload/"

# Share links that resolve to an HTML viewer page rather than image bytes.
SHARE_LINK_HOSTS = {
    "photos.google.com": "Google Photos URLs cannot be displayed. Please upload the image file instead or use a direct image URL.",
    "photos.app.goo.gl": "Google Photos URLs cannot be displayed. Please upload the image file instead or use a direct image URL.",
    "goo.gl": "Shortened Google share links cannot be displayed. Please use a direct image URL.",
    "drive.google.com": "Google Drive URLs cannot be displayed directly. Please upload the image file instead or use a direct image URL (imgur.com, etc.).",
    "docs.google.com": "Google Docs URLs cannot be displayed directly. Please upload the image file instead or use a direct image URL.",
}

ValidationReason = Literal["not_an_image", "too_large", "empty", "invalid_url", "share_link"]


class ImageValidationError(Exception):
    def __init__(self, reason: ValidationReason, message: str) -> None:
        self.reason = reason
        self.message = message
        super().__init__(message)


def is_http_url(value: str) -> bool:
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def validate_image_file(content_type: str | None, size: int) -> None:
    if not content_type or not content_type.lower().startswith("image/"):
        raise ImageValidationError("not_an_image", "Please select a valid image file")
    if size > MAX_IMAGE_BYTES:
        raise ImageValidationError("too_large", "File size must be less than 10MB")


def _share_link_message(host: str) -> str | None:
    for share_host, message in SHARE_LINK_HOSTS.items():
        if host == share_host or host.endswith("." + share_host):
            return message
    return None


def validate_image_url(url: str) -> None:
    if not url or not url.strip():
        raise ImageValidationError("empty", "URL cannot be empty")
    if not is_http_url(url):
        raise ImageValidationError("invalid_url", "Please enter a valid URL")

    host = (urlsplit(url.strip()).hostname or "").lower()
    message = _share_link_message(host)
    if message is not None:
        raise ImageValidationError("share_link", message)


def is_cdn_url(url: str) -> bool:
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return host == CDN_HOST_SUFFIX or host.endswith("." + CDN_HOST_SUFFIX)


def derive_optimized_url(
    url: str,
    *,
    width: int = 800,
    height: int = 600,
    crop: str = "fill",
    quality: str = "auto:good",
) -> str:
    if not is_cdn_url(url):
        return url

    upload_index = url.find(CDN_UPLOAD_MARKER)
    if upload_index == -1:
        return url

    split_at = upload_index + len(CDN_UPLOAD_MARKER)
    transformation = f"w_{width},h_{height},c_{crop},q_{quality},f_auto"
    return f"{url[:split_at]}{transformation}/{url[split_at:]}"
