"""
SMTP mail client used by the email worker.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
import logging

import aiosmtplib

from realty_api.config import Settings, settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, config: Settings = settings):
        self.config = config

    @property
    def configured(self) -> bool:
        return self.config.email_configured

    def build_message(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.config.email_sender
        message["To"] = to
        if text:
            message.attach(MIMEText(text, "plain"))
        if html:
            message.attach(MIMEText(html, "html"))
        return message

    async def send(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> None:
        """
        Deliver one message.

        Raises:
            RuntimeError: If SMTP is not configured
            aiosmtplib.SMTPException: If delivery fails
        """
        if not self.configured:
            raise RuntimeError("SMTP is not configured")

        message = self.build_message(to, subject, text, html)
        await aiosmtplib.send(
            message,
            hostname=self.config.email_host,
            port=self.config.email_port,
            username=self.config.email_user,
            password=self.config.email_password,
            start_tls=self.config.email_use_tls,
        )
        logger.info(f"Email '{subject}' sent to {to}")
