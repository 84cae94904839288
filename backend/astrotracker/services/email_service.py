import smtplib
from email.message import EmailMessage
from email.utils import formataddr

import structlog

from astrotracker.core.config import Settings

log = structlog.get_logger(__name__)


class EmailNotConfiguredError(RuntimeError):
    pass


class EmailService:
    """Sends HTML mail through the configured SMTP server."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        s = self.settings
        if not s.smtp_host or not s.smtp_from_email:
            raise EmailNotConfiguredError("SMTP host and sender address must be configured")

        msg = EmailMessage()
        msg["From"] = formataddr((s.smtp_from_name, s.smtp_from_email))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html_body, subtype="html")

        smtp_cls = smtplib.SMTP_SSL if s.smtp_use_ssl else smtplib.SMTP
        try:
            with smtp_cls(s.smtp_host, s.smtp_port, timeout=30) as smtp:
                if s.smtp_use_tls and not s.smtp_use_ssl:
                    smtp.starttls()
                if s.smtp_username:
                    smtp.login(s.smtp_username, s.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError):
            log.error("email_send_failed", to=to, exc_info=True)
            raise
        log.info("email_sent", to=to)
