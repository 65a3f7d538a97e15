import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse

from lbd_events.api.deps import get_current_admin, get_storage_service
from lbd_events.models.admin import AdminProfile
from lbd_events.schemas.uploads import (
    GalleryUploadResponse,
    ImageUrlCheckRequest,
    ImageUrlCheckResponse,
    UploadResponse,
)
from lbd_events.services.storage import (
    DEFAULT_FOLDER,
    StorageError,
    StorageImageError,
    StorageService,
    clean_folder,
)
from lbd_events.services.uploads import (
    MAX_GALLERY_BATCH,
    ImageValidationError,
    derive_optimized_url,
    validate_image_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["uploads"])


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _check(storage: StorageService, file: UploadFile) -> JSONResponse | None:
    try:
        await storage.check_upload(file)
    except ImageValidationError as exc:
        return _error(400, f"{file.filename}: {exc.message}", reason=exc.reason)
    except StorageImageError as exc:
        return _error(400, f"{file.filename}: {exc}")
    return None


async def _save(storage: StorageService, file: UploadFile, folder: str) -> str | JSONResponse:
    try:
        return await storage.save_upload(file, folder=folder)
    except ImageValidationError as exc:
        return _error(400, f"{file.filename}: {exc.message}", reason=exc.reason)
    except StorageImageError as exc:
        return _error(400, str(exc))
    except StorageError as exc:
        logger.warning("Upload of %s failed: %s", file.filename, exc)
        return _error(500, "Failed to upload image")


@router.post("", response_model=UploadResponse, responses={400: {}, 500: {}})
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form(default=DEFAULT_FOLDER),
    storage: StorageService = Depends(get_storage_service),
    _: AdminProfile = Depends(get_current_admin),
):
    result = await _save(storage, file, folder)
    if isinstance(result, JSONResponse):
        return result
    return UploadResponse(url=result)


@router.post("/gallery", response_model=GalleryUploadResponse, responses={400: {}, 500: {}})
async def upload_gallery(
    files: list[UploadFile] = File(...),
    folder: str = Form(default=f"{DEFAULT_FOLDER}/gallery"),
    storage: StorageService = Depends(get_storage_service),
    _: AdminProfile = Depends(get_current_admin),
):
    if len(files) > MAX_GALLERY_BATCH:
        return _error(400, f"You can upload a maximum of {MAX_GALLERY_BATCH} images at once")
    try:
        folder = clean_folder(folder)
    except StorageImageError as exc:
        return _error(400, str(exc))

    # Every file is checked before the first one is stored.
    for file in files:
        error = await _check(storage, file)
        if error is not None:
            return error

    urls: list[str] = []
    for file in files:
        result = await _save(storage, file, folder)
        if isinstance(result, JSONResponse):
            return result
        urls.append(result)
    return GalleryUploadResponse(urls=urls)


@router.delete("", responses={400: {}, 500: {}})
def delete_image(
    public_id: str = Query(..., min_length=1),
    storage: StorageService = Depends(get_storage_service),
    _: AdminProfile = Depends(get_current_admin),
):
    try:
        storage.delete(public_id)
    except StorageError as exc:
        return _error(500, str(exc))
    return {"ok": True}


@router.post("/check-url", response_model=ImageUrlCheckResponse, responses={400: {}})
def check_image_url(payload: ImageUrlCheckRequest):
    try:
        validate_image_url(payload.url)
    except ImageValidationError as exc:
        return _error(400, exc.message, reason=exc.reason)
    return ImageUrlCheckResponse(ok=True, optimized_url=derive_optimized_url(payload.url.strip()))
