from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from storefront.db import create_engine, create_session_factory, init_db

from .api.admin import router as admin_router
from .api.auth import router as auth_router
from .api.store import router as store_router
from .chat import ChatService, ConversationStore, OpenAIClient, build_reply_generator
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.security import RedirectRequired
from .middleware import RequestLoggingMiddleware, WebSessionMiddleware
from .services.auth import GENERIC_ERROR_MESSAGE, AuthService
from .services.catalog import CatalogService
from .services.mailer import SmtpMailer
from .services.ratelimit import RateLimiter
from .services.storage import StorageService, StoreError

logger = logging.getLogger(__name__)

LANDING_PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Lbinag Marbles</title></head>
<body>
<h1>Lbinag Marbles</h1>
<p>Hand-picked marbles in every color. Ask our assistant or browse the catalog.</p>
<p><a href="/auth/login">Sign in</a> &middot; <a href="/account">Your account</a></p>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the application services on startup and release them on shutdown."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version, settings.database_url)

    storage_service = StorageService(
        session_factory,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
    mailer = SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        from_name=settings.smtp_from_name,
        timeout=settings.smtp_timeout_seconds,
        link_ttl_minutes=settings.magic_link_ttl_minutes,
    )
    if not mailer.configured:
        logger.warning("SMTP is not configured; magic links cannot be delivered")
    auth_service = AuthService(
        storage=storage_service,
        mailer=mailer,
        base_url=settings.base_url,
        token_ttl_minutes=settings.magic_link_ttl_minutes,
    )
    catalog_service = CatalogService(session_factory)
    openai_client = OpenAIClient(settings.chat_api_key, base_url=settings.chat_base_url)
    chat_service = ChatService(
        conversations=ConversationStore(session_factory),
        catalog=catalog_service,
        generator=build_reply_generator(settings, openai_client),
    )

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.storage_service = storage_service
    app.state.mailer = mailer
    app.state.auth_service = auth_service
    app.state.catalog_service = catalog_service
    app.state.chat_service = chat_service
    app.state.rate_limiter = RateLimiter()

    purged_tokens = await storage_service.purge_login_tokens(settings.login_token_retention_sec)
    purged_sessions = await storage_service.purge_sessions()
    logger.info(
        "Lbinag storefront started version=%s chat=%s",
        settings.version,
        chat_service.generator.source,
        extra={"extra_fields": {"purged_tokens": purged_tokens, "purged_sessions": purged_sessions}},
    )

    try:
        yield
    finally:
        await app.state.db_engine.dispose()


app = FastAPI(title="Lbinag Storefront", version=get_settings().version, lifespan=lifespan)

app.add_middleware(WebSessionMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(store_router)
app.include_router(admin_router)


@app.exception_handler(RedirectRequired)
async def redirect_required_handler(request: Request, exc: RedirectRequired) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Request failed on storage error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_ERROR_MESSAGE},
    )


@app.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "version": settings.version}


@app.get("/readyz")
async def readyz(request: Request) -> dict[str, Any]:
    storage: StorageService = request.app.state.storage_service

    db_ok = True
    db_detail = "ok"
    try:
        await storage.healthcheck()
    except Exception as exc:
        logger.warning("Database readiness check failed: %s", exc)
        db_ok = False
        db_detail = str(exc)

    return {"ready": db_ok, "db": {"ok": db_ok, "detail": db_detail}}


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/", response_class=HTMLResponse)
async def root() -> str:
    return LANDING_PAGE
