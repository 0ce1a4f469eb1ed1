from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from secrets import token_urlsafe
from typing import ParamSpec, TypeVar

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import Account, LoginToken, WebSessionRecord
from ..utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 3600


class StoreError(Exception):
    """Persistence failure; fatal to the current request."""


def _store_errors(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("storage operation %s failed: %s", func.__name__, exc)
            raise StoreError(str(exc)) from exc

    return wrapper


@dataclass
class WebSession:
    """Typed server-side state behind one browser session cookie."""

    session_id: str
    account_id: int | None = None
    account_email: str | None = None
    guest_id: str | None = None
    pending_return_path: str | None = None
    expires_at: datetime | None = None
    # request-scoped bookkeeping for the cookie middleware
    touched: bool = field(default=False, compare=False)
    destroyed: bool = field(default=False, compare=False)

    @property
    def authenticated(self) -> bool:
        return self.account_id is not None


def _session_from_record(record: WebSessionRecord) -> WebSession:
    return WebSession(
        session_id=record.id,
        account_id=record.account_id,
        account_email=record.account_email,
        guest_id=record.guest_id,
        pending_return_path=record.pending_return_path,
        expires_at=record.expires_at,
    )


class StorageService:
    """Persist accounts, login tokens and browser sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._session_ttl = timedelta(seconds=session_ttl_seconds)
        self._clock = clock

    @property
    def session_factory(self) -> async_sessionmaker:
        return self._session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- accounts --------------------------------------------------------
    @_store_errors
    async def get_account_by_email(self, email: str) -> Account | None:
        async with self._session_factory() as session:
            return await session.scalar(select(Account).where(Account.email == email))

    @_store_errors
    async def get_account(self, account_id: int) -> Account | None:
        async with self._session_factory() as session:
            return await session.get(Account, account_id)

    @_store_errors
    async def ensure_account(self, email: str) -> tuple[Account, bool]:
        """Return the account for ``email``, creating it when unseen.

        The boolean is True when this call created the row. A concurrent insert
        for the same email loses on the unique index and re-reads the winner.
        """

        async with self._session_factory() as session:
            account = await session.scalar(select(Account).where(Account.email == email))
            if account:
                return account, False
            account = Account(email=email)
            session.add(account)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                existing = await session.scalar(select(Account).where(Account.email == email))
                if existing is None:
                    raise
                return existing, False
            await session.refresh(account)
            return account, True

    # -- login tokens ----------------------------------------------------
    @_store_errors
    async def create_login_token(
        self,
        *,
        email: str,
        token: str,
        expires_at: datetime,
    ) -> LoginToken:
        async with self._session_factory() as session:
            login_token = LoginToken(email=email, token=token, expires_at=expires_at, used=False)
            session.add(login_token)
            await session.commit()
            await session.refresh(login_token)
            return login_token

    @_store_errors
    async def get_login_token(self, token: str) -> LoginToken | None:
        async with self._session_factory() as session:
            return await session.scalar(select(LoginToken).where(LoginToken.token == token))

    @_store_errors
    async def consume_login_token(self, token: str, now: datetime) -> bool:
        """Flip ``used`` to True only if the token is still unused and unexpired.

        Returns whether this call performed the transition. The WHERE clause is
        the only guard, so concurrent callers across processes cannot both win.
        """

        async with self._session_factory() as session:
            result = await session.execute(
                update(LoginToken)
                .where(LoginToken.token == token)
                .where(LoginToken.used.is_(False))
                .where(LoginToken.expires_at >= now)
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount == 1

    @_store_errors
    async def purge_login_tokens(self, retention_seconds: int) -> int:
        cutoff = self._clock() - timedelta(seconds=retention_seconds)
        async with self._session_factory() as session:
            result = await session.execute(
                delete(LoginToken).where(LoginToken.expires_at < cutoff)
            )
            await session.commit()
            return int(result.rowcount or 0)

    # -- browser sessions ------------------------------------------------
    def new_session(self) -> WebSession:
        """Allocate an unsaved session; it is persisted on the first save."""

        return WebSession(session_id=token_urlsafe(32))

    @_store_errors
    async def load_session(self, session_id: str) -> WebSession | None:
        async with self._session_factory() as session:
            record = await session.get(WebSessionRecord, session_id)
            if record is None or record.expires_at <= self._clock():
                return None
            return _session_from_record(record)

    @_store_errors
    async def save_session(self, web_session: WebSession) -> WebSession:
        """Write the session and restart its absolute TTL."""

        expires_at = self._clock() + self._session_ttl
        async with self._session_factory() as session:
            record = await session.get(WebSessionRecord, web_session.session_id)
            if record is None:
                record = WebSessionRecord(id=web_session.session_id)
                session.add(record)
            record.account_id = web_session.account_id
            record.account_email = web_session.account_email
            record.guest_id = web_session.guest_id
            record.pending_return_path = web_session.pending_return_path
            record.expires_at = expires_at
            await session.commit()
        web_session.expires_at = expires_at
        web_session.touched = True
        web_session.destroyed = False
        return web_session

    @_store_errors
    async def delete_session(self, session_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(WebSessionRecord).where(WebSessionRecord.id == session_id)
            )
            await session.commit()

    @_store_errors
    async def purge_sessions(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(WebSessionRecord).where(WebSessionRecord.expires_at <= self._clock())
            )
            await session.commit()
            return int(result.rowcount or 0)


__all__ = ["StorageService", "StoreError", "WebSession"]
