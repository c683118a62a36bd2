"""
Outbound e-mail notifier.

Messages are logged rather than delivered; no mail provider is wired in.
"""

from core.config import settings
from core.logging import get_logger

logger = get_logger("notifications", domain="notifications")


class EmailNotifier:
    """Hands transactional e-mails to the log"""

    def __init__(self, enabled: bool = None):
        self.enabled = settings.enable_emails if enabled is None else enabled

    def _dispatch(self, template: str, to_email: str, **fields) -> bool:
        try:
            status = "queued" if self.enabled else "logged"
            logger.info(
                f"Email {template} {status} for {to_email}",
                extra={"template": template, "to_email": to_email, "from_email": settings.from_email, **fields},
            )
            return True
        except Exception as e:
            logger.error(f"Failed to dispatch {template} email: {e}")
            return False

    def send_magic_link(self, to_email: str, token: str) -> bool:
        link = f"{settings.base_url}/login?token={token}"
        return self._dispatch("magic_link", to_email, link=link)

    def send_va_welcome(self, to_email: str, name: str, password: str) -> bool:
        """Welcome a new VA. The password is handed to the template only, never logged."""
        login_url = f"{settings.base_url}/login"
        return self._dispatch("va_welcome", to_email, va_name=name, login_url=login_url, has_password=bool(password))

    def send_invite(self, to_email: str, token: str, role: str) -> bool:
        link = f"{settings.base_url}/invite/{token}"
        return self._dispatch("invite", to_email, link=link, role=role)


notifier = EmailNotifier()
