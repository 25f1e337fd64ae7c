"""
SMTP delivery for the daily digest.

The password is never stored in config; it is read from the environment
variable named by `smtp.password_env`.
"""

import logging
import os
import smtplib
import ssl
from email.message import EmailMessage
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """
    Usage:
        notifier = SmtpNotifier.from_config(config["smtp"])
        notifier.send("me@example.com", "Subject", "Body")
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: Optional[str] = None,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.sender = sender or user
        self.timeout = timeout

    @classmethod
    def from_config(cls, smtp_config: Dict) -> "SmtpNotifier":
        password_env = smtp_config.get("password_env") or "JOBCOPILOT_SMTP_PASS"
        return cls(
            host=smtp_config.get("host", ""),
            port=int(smtp_config.get("port", 587)),
            user=smtp_config.get("user") or None,
            password=os.environ.get(password_env),
            use_tls=smtp_config.get("use_tls", True),
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Send a plain-text message.

        Raises:
            ValueError: when no SMTP host is configured
            smtplib.SMTPException / OSError: on delivery failure
        """
        if not self.configured:
            raise ValueError("SMTP host is not configured")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender or to
        msg["To"] = to
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)
        logger.info(f"Mail sent to {to[:3]}*** via {self.host}")
