import argparse
from pathlib import Path
import sys

from firebase_admin import auth

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from lbd_events.db.firestore import get_client, get_firebase_app
from lbd_events.models.admin import AdminProfile
from lbd_events.models.common import utcnow
from lbd_events.services.admins import AdminService, generate_password
from lbd_events.services.identity import IdentityProvider
from lbd_events.services.mailer import MailService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or re-activate an admin account.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", default="admin")
    parser.add_argument("--password", default=None, help="Generated when omitted.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    app = get_firebase_app()
    service = AdminService(get_client(), IdentityProvider(), MailService())

    try:
        record = auth.get_user_by_email(args.email, app=app)
        uid = record.uid
        password = None
        if args.password:
            auth.update_user(uid, password=args.password, app=app)
            password = args.password
        action = "re-activated"
    except auth.UserNotFoundError:
        password = args.password or generate_password()
        uid = service.identity.create_user(args.email, password, display_name=args.username)
        action = "created"

    existing = service.get_profile(uid)
    if existing:
        service.set_active(uid, True)
    else:
        profile = AdminProfile(
            id=uid,
            username=args.username,
            email=args.email,
            is_active=True,
            created_at=utcnow(),
        )
        service.collection.document(uid).set(profile.to_document())

    print(f"Admin {args.email} ({uid}) {action}.")
    if password and not args.password:
        print(f"Generated password: {password}")


if __name__ == "__main__":
    main()
