import html
import logging
import smtplib
import ssl
from email.message import EmailMessage

from lbd_events.core.config import get_settings

logger = logging.getLogger(__name__)

CREDENTIALS_SUBJECT = "Your Admin Account Credentials"


class MailDeliveryError(Exception):
    pass


def render_admin_credentials(email: str, username: str, password: str) -> str:
    email, username, password = (html.escape(value) for value in (email, username, password))
    return f"""\
<div style="font-family: Arial, sans-serif; color: #333;">
  <h2>Welcome to LBD Events Admin Panel</h2>
  <p>Hello {username},</p>
  <p>Your admin account has been created successfully. Here are your login credentials:</p>
  <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">
    <p style="margin: 5px 0;"><strong>Email:</strong> {email}</p>
    <p style="margin: 5px 0;"><strong>Password:</strong> {password}</p>
  </div>
  <p>Please change your password after your first login for security purposes.</p>
  <p>Best regards,<br>LBD Events Team</p>
</div>
"""


class MailService:
    def __init__(self) -> None:
        self.settings = get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.smtp_host)

    def build_admin_credentials_message(self, email: str, username: str, password: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = CREDENTIALS_SUBJECT
        message["From"] = self.settings.mail_sender
        message["To"] = email
        message.set_content(
            f"Hello {username},\n\nYour admin account has been created.\n"
            f"Email: {email}\nPassword: {password}\n\n"
            "Please change your password after your first login."
        )
        message.add_alternative(render_admin_credentials(email, username, password), subtype="html")
        return message

    def send_admin_credentials(self, email: str, username: str, password: str) -> None:
        if not self.enabled:
            raise MailDeliveryError("SMTP relay is not configured")

        message = self.build_admin_credentials_message(email, username, password)
        try:
            with smtplib.SMTP_SSL(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.mail_timeout_seconds,
                context=ssl.create_default_context(),
            ) as smtp:
                if self.settings.smtp_user:
                    smtp.login(self.settings.smtp_user, self.settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Credential email to %s failed: %s", email, exc)
            raise MailDeliveryError("Failed to send email") from exc
        logger.info("Credential email sent to %s.", email)
