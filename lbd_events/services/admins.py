import logging
import secrets
import string
from dataclasses import dataclass

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from lbd_events.core.config import get_settings
from lbd_events.models.admin import AdminProfile
from lbd_events.models.common import utcnow
from lbd_events.services.identity import IdentityError, IdentityProvider
from lbd_events.services.mailer import MailDeliveryError, MailService

logger = logging.getLogger(__name__)

PASSWORD_LENGTH = 12
PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


class AdminServiceError(Exception):
    pass


class AdminCreationError(AdminServiceError):
    pass


class AdminNotFoundError(AdminServiceError):
    pass


class InactiveAdminError(AdminServiceError):
    pass


@dataclass
class AdminCreationResult:
    admin: AdminProfile
    email_sent: bool


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class AdminService:
    def __init__(
        self,
        client: firestore.Client,
        identity: IdentityProvider,
        mailer: MailService,
        collection_name: str | None = None,
    ) -> None:
        self.client = client
        self.identity = identity
        self.mailer = mailer
        self.collection_name = collection_name or get_settings().users_collection

    @property
    def collection(self):
        return self.client.collection(self.collection_name)

    def create_admin(self, username: str, email: str) -> AdminCreationResult:
        password = generate_password()

        # No profile may exist without an identity, so the identity comes first.
        try:
            uid = self.identity.create_user(email, password, display_name=username)
        except IdentityError as exc:
            raise AdminCreationError(str(exc)) from exc

        profile = AdminProfile(
            id=uid,
            username=username,
            email=email,
            role="admin",
            is_active=True,
            created_at=utcnow(),
        )
        try:
            self.collection.document(uid).set(profile.to_document())
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error writing admin profile %s", uid)
            raise AdminCreationError("Failed to add admin") from exc
        logger.info("Created admin %s (%s).", uid, email)

        # Identity and profile stay even when the email cannot be delivered.
        try:
            self.mailer.send_admin_credentials(email=email, username=username, password=password)
        except MailDeliveryError:
            logger.warning("Admin %s created but credentials email was not delivered.", uid)
            return AdminCreationResult(admin=profile, email_sent=False)
        return AdminCreationResult(admin=profile, email_sent=True)

    def list_admins(self) -> list[AdminProfile]:
        query = self.collection.where(filter=FieldFilter("role", "==", "admin"))
        try:
            snapshots = list(query.stream())
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error fetching admins")
            raise AdminServiceError("Failed to fetch admins") from exc
        admins: list[AdminProfile] = []
        for snapshot in snapshots:
            try:
                admins.append(AdminProfile.from_document(snapshot.id, snapshot.to_dict() or {}))
            except ValidationError:
                logger.warning("Skipping admin profile %s: could not be decoded.", snapshot.id, exc_info=True)
        return admins

    def get_profile(self, uid: str) -> AdminProfile | None:
        try:
            snapshot = self.collection.document(uid).get()
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error fetching admin profile %s", uid)
            raise AdminServiceError("Failed to fetch admin") from exc
        if not snapshot.exists:
            return None
        try:
            return AdminProfile.from_document(snapshot.id, snapshot.to_dict() or {})
        except ValidationError:
            logger.warning("Admin profile %s could not be decoded.", uid, exc_info=True)
            return None

    def set_active(self, uid: str, active: bool) -> None:
        # Only the profile flag changes; the Firebase identity stays enabled.
        try:
            self.collection.document(uid).update({"isActive": active})
        except gcp_exceptions.NotFound as exc:
            raise AdminNotFoundError(uid) from exc
        except gcp_exceptions.GoogleAPIError as exc:
            action = "activate" if active else "deactivate"
            logger.exception("Error trying to %s admin %s", action, uid)
            raise AdminServiceError(f"Failed to {action} admin") from exc
        logger.info("Admin %s is now %s.", uid, "active" if active else "inactive")

    def resolve_session(self, uid: str) -> AdminProfile:
        """Session gate: looked up on every request, never cached."""
        profile = self.get_profile(uid)
        if profile is None or not profile.is_active:
            logger.info("Rejecting session of inactive or unknown admin %s.", uid)
            raise InactiveAdminError(uid)
        return profile
