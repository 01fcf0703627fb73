"""Outgoing mail.

Every message is appended to ``outbox``. When ``smtp_host`` is configured the
message is also delivered over SMTP; otherwise the outbox is the only sink,
which is what development and tests rely on.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from string import Template
from typing import Any

from loguru import logger

from darkheim.contracts import MailerInterface


class MailerService(MailerInterface):
    """Mailer configured from a flat settings dict (the ``email`` site-settings group)."""

    def __init__(self, settings: dict[str, Any] | None = None) -> None:
        self.settings: dict[str, Any] = dict(settings or {})
        self.from_address: str = self.settings.get("from_address") or "noreply@localhost"
        self.from_name: str = self.settings.get("from_name") or ""
        self.outbox: list[EmailMessage] = []

    def _build(self, to: str, subject: str, body: str, html: bool) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{self.from_name} <{self.from_address}>" if self.from_name else self.from_address
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body, subtype="html" if html else "plain")
        return msg

    def send(self, to: str, subject: str, body: str, *, html: bool = False) -> bool:
        msg = self._build(to, subject, body, html)
        self.outbox.append(msg)

        host = self.settings.get("smtp_host")
        if not host:
            logger.debug("Mail queued to outbox only: {} ({})", to, subject)
            return True

        try:
            with smtplib.SMTP(host, int(self.settings.get("smtp_port") or 587), timeout=10) as smtp:
                if self.settings.get("smtp_tls", True):
                    smtp.starttls()
                if self.settings.get("smtp_username"):
                    smtp.login(self.settings["smtp_username"], self.settings.get("smtp_password", ""))
                smtp.send_message(msg)
        except (OSError, smtplib.SMTPException) as exc:
            logger.error("SMTP delivery to {} failed: {}", to, exc)
            return False
        logger.info("Mail sent to {} ({})", to, subject)
        return True

    def send_template(self, to: str, subject: str, template: str, data: dict[str, Any] | None = None) -> bool:
        return self.send(to, subject, self.render_template(template, data))

    def render_template(self, template: str, data: dict[str, Any] | None = None) -> str:
        """Substitute ``$name`` placeholders; unknown placeholders are left as-is."""
        return Template(template).safe_substitute(data or {})
