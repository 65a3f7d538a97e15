from pathlib import Path

from fastapi import APIRouter

from lbd_events.core.config import get_settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    settings = get_settings()
    return {"status": "ok", "version": settings.app_version}


@router.get("/system/info")
def system_info():
    settings = get_settings()
    return {
        "app_name": settings.app_name,
        "app_env": settings.app_env,
        "app_version": settings.app_version,
        "storage_backend": settings.storage_backend,
        "firebase_credentials_exists": Path(settings.firebase_credentials_json).exists(),
        "smtp_configured": bool(settings.smtp_host),
    }
