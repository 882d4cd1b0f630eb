# =======================================================================================
# campus_visitor/services/mailer.py - SMTP Delivery
# =======================================================================================
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config import config

logger = logging.getLogger(__name__)


@dataclass
class EmailJob:
    to: str
    subject: str
    html: str
    kind: str = "general"


class SMTPMailer:
    """Sends one rendered email over SMTP."""

    def is_configured(self) -> bool:
        return bool(config.SMTP_USER and config.SMTP_PASSWORD)

    def send(self, job: EmailJob) -> bool:
        if not self.is_configured():
            logger.warning("SMTP not configured; dropping %s email to %s", job.kind, job.to)
            return False

        message = MIMEMultipart("alternative")
        message["Subject"] = job.subject
        message["From"] = f"{config.SMTP_FROM_NAME} <{config.SMTP_FROM_EMAIL or config.SMTP_USER}>"
        message["To"] = job.to
        message.attach(MIMEText(job.html, "html"))

        try:
            if config.SMTP_USE_SSL:
                server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
            else:
                server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
            with server:
                if config.SMTP_USE_TLS and not config.SMTP_USE_SSL:
                    server.starttls()
                server.login(config.SMTP_USER, config.SMTP_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %s email to %s: %s", job.kind, job.to, e)
            return False

        logger.info("Sent %s email to %s", job.kind, job.to)
        return True
