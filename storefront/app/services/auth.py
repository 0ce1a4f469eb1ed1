"""Magic-link authentication: token issuance, single-use consumption and login."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from urllib.parse import urlencode
from uuid import uuid4

from ..core.logging import fingerprint
from ..db.models import Account, LoginToken
from ..metrics import AUTH_EVENTS
from ..utils.clock import Clock, utcnow
from .mailer import Mailer
from .storage import StorageService, WebSession

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT = "/"
MAX_EMAIL_LENGTH = 320
GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."


class AuthError(Exception):
    """Base class for failures the login flow reports to the user."""

    user_message = GENERIC_ERROR_MESSAGE


class ValidationError(AuthError):
    user_message = "Please enter a valid email address"


class TokenError(AuthError):
    # Which token check failed is only visible to logs and metrics.
    user_message = "Invalid or expired link"


class InvalidTokenError(TokenError):
    pass


class TokenAlreadyUsedError(TokenError):
    pass


class TokenExpiredError(TokenError):
    pass


class MailDeliveryError(AuthError):
    user_message = "Failed to send email. Please check SMTP configuration."


@dataclass
class LoginResult:
    account: Account
    redirect_to: str
    account_created: bool = False


def normalize_email(raw: str | None) -> str:
    if not raw or "@" not in raw:
        raise ValidationError("email must be non-empty and contain '@'")
    email = raw.strip().lower()
    if not email:
        raise ValidationError("email must be non-empty")
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError("email is too long")
    # the address ends up in a mail header
    if any(char.isspace() or not char.isprintable() for char in email):
        raise ValidationError("email must not contain whitespace or control characters")
    return email


def safe_return_path(path: str | None) -> str:
    """Only same-site absolute paths are honoured as post-login redirects."""

    if not path or not path.startswith("/") or path.startswith(("//", "/\\")):
        return DEFAULT_REDIRECT
    return path


class AuthService:
    """Issues magic links and turns a valid one into an authenticated session."""

    def __init__(
        self,
        *,
        storage: StorageService,
        mailer: Mailer,
        base_url: str,
        token_ttl_minutes: int = 15,
        clock: Clock = utcnow,
    ) -> None:
        self._storage = storage
        self._mailer = mailer
        self._base_url = base_url.rstrip("/")
        self._token_ttl = timedelta(minutes=token_ttl_minutes)
        self._clock = clock

    def verification_url(self, token: str) -> str:
        return f"{self._base_url}/auth/verify?{urlencode({'token': token})}"

    async def request_login(self, email: str | None) -> LoginToken:
        """Persist a fresh token for ``email`` and mail the verification link.

        Earlier outstanding tokens for the same address are left untouched.
        """

        try:
            normalized = normalize_email(email)
        except ValidationError:
            AUTH_EVENTS.labels(event="request", outcome="invalid_email").inc()
            raise

        login_token = await self._storage.create_login_token(
            email=normalized,
            token=uuid4().hex,
            expires_at=self._clock() + self._token_ttl,
        )
        logger.info("Magic link created", extra={"user": fingerprint(normalized)})

        result = await self._mailer.send(normalized, self.verification_url(login_token.token))
        if not result.success:
            AUTH_EVENTS.labels(event="request", outcome="mail_failed").inc()
            raise MailDeliveryError(result.error or "mail delivery failed")

        AUTH_EVENTS.labels(event="request", outcome="sent").inc()
        return login_token

    async def verify_token(self, token: str | None, web_session: WebSession) -> LoginResult:
        now = self._clock()
        try:
            login_token = self._check_token(
                await self._storage.get_login_token(token) if token else None, now
            )
            if not await self._storage.consume_login_token(login_token.token, now):
                # another request consumed it between the read and the write
                self._check_token(await self._storage.get_login_token(login_token.token), now)
                raise TokenAlreadyUsedError("token consumed concurrently")
        except TokenError as exc:
            AUTH_EVENTS.labels(event="verify", outcome=type(exc).__name__).inc()
            logger.info("Magic link rejected", extra={"outcome": type(exc).__name__})
            raise

        account, created = await self._storage.ensure_account(login_token.email)
        if created:
            logger.info("New account created", extra={"user": fingerprint(account.email)})

        redirect_to = safe_return_path(web_session.pending_return_path)
        web_session.account_id = account.id
        web_session.account_email = account.email
        web_session.guest_id = None
        web_session.pending_return_path = None
        await self._storage.save_session(web_session)

        AUTH_EVENTS.labels(event="verify", outcome="success").inc()
        logger.info("Account logged in", extra={"user": fingerprint(account.email)})
        return LoginResult(account=account, redirect_to=redirect_to, account_created=created)

    async def logout(self, web_session: WebSession | None) -> None:
        if web_session is None:
            return
        await self._storage.delete_session(web_session.session_id)
        if web_session.account_email:
            logger.info("Account logged out", extra={"user": fingerprint(web_session.account_email)})
        web_session.account_id = None
        web_session.account_email = None
        web_session.guest_id = None
        web_session.pending_return_path = None
        web_session.destroyed = True
        AUTH_EVENTS.labels(event="logout", outcome="success").inc()

    @staticmethod
    def _check_token(login_token: LoginToken | None, now: datetime) -> LoginToken:
        if login_token is None:
            raise InvalidTokenError("unknown token")
        if login_token.used:
            raise TokenAlreadyUsedError("token already used")
        if now > login_token.expires_at:
            raise TokenExpiredError("token expired")
        return login_token


__all__ = [
    "AuthError",
    "AuthService",
    "GENERIC_ERROR_MESSAGE",
    "InvalidTokenError",
    "LoginResult",
    "MailDeliveryError",
    "TokenAlreadyUsedError",
    "TokenError",
    "TokenExpiredError",
    "ValidationError",
    "normalize_email",
    "safe_return_path",
]
