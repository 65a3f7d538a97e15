from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.cloud.firestore import Client

from lbd_events.core.config import get_settings
from lbd_events.db.firestore import get_db
from lbd_events.models.admin import AdminProfile
from lbd_events.services.admins import AdminService, AdminServiceError, InactiveAdminError
from lbd_events.services.events import EventRepository
from lbd_events.services.identity import IdentityError, IdentityProvider, InvalidTokenError
from lbd_events.services.mailer import MailService
from lbd_events.services.storage import StorageService

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()


def get_mail_service() -> MailService:
    return MailService()


def get_storage_service() -> StorageService:
    return StorageService()


def get_event_repository(db: Client = Depends(get_db)) -> EventRepository:
    return EventRepository(db)


def get_admin_service(
    db: Client = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    mailer: MailService = Depends(get_mail_service),
) -> AdminService:
    return AdminService(db, identity, mailer)


def get_current_uid(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authorization token")

    try:
        return identity.verify_id_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    except IdentityError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Token verification unavailable") from exc


def get_current_admin(
    uid: str = Depends(get_current_uid),
    admins: AdminService = Depends(get_admin_service),
) -> AdminProfile:
    try:
        return admins.resolve_session(uid)
    except InactiveAdminError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "account_inactive",
                "sign_out": True,
                "redirect": get_settings().login_path,
            },
        ) from exc
    except AdminServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
