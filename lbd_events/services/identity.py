import logging

from firebase_admin import auth, exceptions as firebase_exceptions

from lbd_events.db.firestore import get_firebase_app

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    pass


class InvalidTokenError(IdentityError):
    pass


class IdentityExistsError(IdentityError):
    pass


class IdentityProvider:
    """Thin wrapper over Firebase Authentication.

    Sign-in, sign-out and password reset happen client side against Firebase;
    the backend only verifies ID tokens and creates identities for new admins.
    """

    def verify_id_token(self, token: str) -> str:
        try:
            claims = auth.verify_id_token(token, app=get_firebase_app())
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as exc:
            raise InvalidTokenError(str(exc)) from exc
        except auth.CertificateFetchError as exc:
            raise IdentityError("Could not verify token") from exc
        uid = claims.get("uid") or claims.get("sub")
        if not uid:
            raise InvalidTokenError("Token has no subject")
        return uid

    def create_user(self, email: str, password: str, display_name: str | None = None) -> str:
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                app=get_firebase_app(),
            )
        except auth.EmailAlreadyExistsError as exc:
            raise IdentityExistsError(f"Email {email} is already registered") from exc
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            logger.warning("Firebase user creation failed for %s: %s", email, exc)
            raise IdentityError("Failed to create identity") from exc
        return record.uid
