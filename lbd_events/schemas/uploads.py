from lbd_events.models.event import CamelModel


class UploadResponse(CamelModel):
    url: str


class GalleryUploadResponse(CamelModel):
    urls: list[str]


class ImageUrlCheckRequest(CamelModel):
    url: str


class ImageUrlCheckResponse(CamelModel):
    ok: bool
    optimized_url: str
