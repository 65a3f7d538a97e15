import logging
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client

from lbd_events.core.config import get_settings

logger = logging.getLogger(__name__)

_app: firebase_admin.App | None = None
_client: Client | None = None


def _new_app() -> firebase_admin.App:
    settings = get_settings()
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    creds_path = Path(settings.firebase_credentials_json)
    if creds_path.exists():
        cred = credentials.Certificate(str(creds_path))
    else:
        logger.info("Firebase service account is missing (%s), using application default credentials.", creds_path)
        cred = credentials.ApplicationDefault()
    return firebase_admin.initialize_app(cred, options)


def get_firebase_app() -> firebase_admin.App:
    global _app
    if _app is None:
        try:
            _app = firebase_admin.get_app()
        except ValueError:
            _app = _new_app()
    return _app


def get_client() -> Client:
    global _client
    if _client is None:
        _client = firestore.client(app=get_firebase_app())
    return _client


def reset_client() -> None:
    global _app, _client
    if _client is not None:
        _client.close()
    if _app is not None:
        firebase_admin.delete_app(_app)
    _client = None
    _app = None


def get_db() -> Client:
    return get_client()
