from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Protocol

from ..core.logging import fingerprint

logger = logging.getLogger(__name__)


@dataclass
class MailResult:
    success: bool
    error: str | None = None
    message_id: str | None = None


class Mailer(Protocol):
    async def send(self, to_email: str, verification_url: str) -> MailResult: ...


def render_magic_link_text(verification_url: str, ttl_minutes: int) -> str:
    return (
        "Welcome to Lbinag!\n\n"
        "Click the link below to sign in to your account:\n\n"
        f"{verification_url}\n\n"
        f"This link will expire in {ttl_minutes} minutes.\n\n"
        "If you didn't request this email, you can safely ignore it.\n\n"
        "Happy marble shopping!\n- The Lbinag Team"
    )


def render_magic_link_html(verification_url: str, ttl_minutes: int) -> str:
    link = html.escape(verification_url, quote=True)
    return (
        "<!DOCTYPE html><html><body>"
        "<h2>Welcome to Lbinag!</h2>"
        "<p>Click the button below to sign in to your account:</p>"
        f'<p><a href="{link}">Sign In to Lbinag</a></p>'
        f"<p>This link expires in {ttl_minutes} minutes.</p>"
        f"<p>If the button doesn't work, copy and paste this link:<br><code>{link}</code></p>"
        "<p>If you didn't request this email, you can safely ignore it.</p>"
        "</body></html>"
    )


class SmtpMailer:
    """Sends magic-link emails over SMTP.

    Built once at startup and shared through ``app.state``. Each send opens its
    own connection in a worker thread and is never retried: a failure is
    reported to the caller, who decides whether the user should try again.
    """

    def __init__(
        self,
        *,
        host: str | None,
        port: int,
        user: str | None,
        password: str | None,
        from_name: str,
        timeout: float,
        link_ttl_minutes: int = 15,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._from_name = from_name
        self._timeout = timeout
        self._link_ttl_minutes = link_ttl_minutes

    @property
    def configured(self) -> bool:
        return bool(self._host and self._user and self._password)

    def build_message(self, to_email: str, verification_url: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._from_name, self._user or "noreply@localhost"))
        message["To"] = to_email
        message["Subject"] = "Your Magic Link to Lbinag"
        message["Message-ID"] = make_msgid(domain="lbinag")
        message.set_content(render_magic_link_text(verification_url, self._link_ttl_minutes))
        message.add_alternative(
            render_magic_link_html(verification_url, self._link_ttl_minutes),
            subtype="html",
        )
        return message

    async def send(self, to_email: str, verification_url: str) -> MailResult:
        if not self.configured:
            logger.error("SMTP credentials not configured; magic link not sent")
            return MailResult(
                success=False,
                error="SMTP credentials not configured. Set SMTP_HOST, SMTP_USER and SMTP_PASS.",
            )

        loop = asyncio.get_running_loop()
        try:
            message = self.build_message(to_email, verification_url)
            await loop.run_in_executor(None, self._deliver, message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            logger.error(
                "Failed to send magic link: %s",
                exc,
                extra={"user": fingerprint(to_email)},
            )
            return MailResult(success=False, error=str(exc))

        message_id = str(message["Message-ID"])
        logger.info(
            "Magic link sent",
            extra={"user": fingerprint(to_email), "extra_fields": {"message_id": message_id}},
        )
        return MailResult(success=True, message_id=message_id)

    def _deliver(self, message: EmailMessage) -> None:
        if self._port == 465:
            with smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout) as client:
                client.login(self._user, self._password)
                client.send_message(message)
            return

        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as client:
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls()
                client.ehlo()
            client.login(self._user, self._password)
            client.send_message(message)


__all__ = ["MailResult", "Mailer", "SmtpMailer"]
