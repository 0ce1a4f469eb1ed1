from __future__ import annotations

import asyncio
from collections.abc import Generator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from storefront.app.core import config
from storefront.app.services.auth import AuthService
from storefront.app.services.mailer import MailResult
from storefront.db import create_engine, create_session_factory, init_db


class FakeMailer:
    """Records magic links instead of talking to an SMTP server."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail_with: str | None = None

    async def send(self, to_email: str, verification_url: str) -> MailResult:
        if self.fail_with:
            return MailResult(success=False, error=self.fail_with)
        self.sent.append((to_email, verification_url))
        return MailResult(success=True, message_id=f"<{uuid4().hex}@test>")

    @property
    def last_token(self) -> str:
        _, url = self.sent[-1]
        return url.split("token=", 1)[1]


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def test_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    fake_mailer: FakeMailer,
) -> Generator[TestClient, None, None]:
    monkeypatch.delenv("CHAT_API_KEY", raising=False)
    monkeypatch.delenv("SMTP_HOST", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("BASE_URL", "http://testserver")
    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("ADMIN_TOKEN", "test-admin")
    monkeypatch.setenv("CHAT_RESPONDER", "static")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "app.log"))
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / f'api_{uuid4().hex}.db'}")
    config.get_settings.cache_clear()

    from storefront.app.main import app

    with TestClient(app) as client:
        app.state.auth_service = AuthService(
            storage=app.state.storage_service,
            mailer=fake_mailer,
            base_url=app.state.settings.base_url,
            token_ttl_minutes=app.state.settings.magic_link_ttl_minutes,
        )
        yield client
    config.get_settings.cache_clear()


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)
    asyncio.run(init_db(engine, session_factory, "test", database_url))
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())
