from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from ..services.storage import StorageService, WebSession
from .logging import fingerprint


class RedirectRequired(Exception):
    """Raised from a dependency to answer the request with a 303 redirect."""

    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


class LoginRequired(RedirectRequired):
    def __init__(self) -> None:
        super().__init__("/auth/login")


def _request_target(request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return target


async def get_web_session(request: Request) -> WebSession:
    """Load the session named by the cookie, or start a fresh unsaved one.

    The session is parked on ``request.state`` so the cookie middleware can see
    whether it was written or destroyed while handling the request.
    """

    existing = getattr(request.state, "web_session", None)
    if existing is not None:
        return existing

    storage: StorageService = request.app.state.storage_service
    settings = request.app.state.settings
    session_id = request.cookies.get(settings.session_cookie_name)

    web_session = await storage.load_session(session_id) if session_id else None
    if web_session is None:
        web_session = storage.new_session()

    request.state.web_session = web_session
    if web_session.account_email:
        request.state.telemetry_user = fingerprint(web_session.account_email)
    return web_session


async def optional_web_session(request: Request) -> WebSession | None:
    """Existing session for the cookie, without allocating a new one."""

    existing = getattr(request.state, "web_session", None)
    if existing is not None:
        return existing
    settings = request.app.state.settings
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        return None
    storage: StorageService = request.app.state.storage_service
    web_session = await storage.load_session(session_id)
    if web_session is not None:
        request.state.web_session = web_session
    return web_session


async def require_account(
    request: Request,
    web_session: WebSession = Depends(get_web_session),
) -> WebSession:
    """Authenticated session or a redirect to the login page.

    The requested path is remembered so a later verification can send the
    user back to it.
    """

    if web_session.authenticated:
        return web_session
    storage: StorageService = request.app.state.storage_service
    web_session.pending_return_path = _request_target(request)
    await storage.save_session(web_session)
    raise LoginRequired()


async def require_guest(web_session: WebSession = Depends(get_web_session)) -> WebSession:
    """Anonymous session; signed-in users are sent to the home page."""

    if web_session.authenticated:
        raise RedirectRequired("/")
    return web_session


async def require_admin_token(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    admin_header: str | None = Header(default=None, alias="X-Lbinag-Admin-Token"),
) -> None:
    settings = request.app.state.settings
    expected = getattr(settings, "admin_api_token", None)
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="admin disabled",
        )
    token_value: str | None = None
    if authorization and authorization.lower().startswith("bearer "):
        token_value = authorization.split(" ", 1)[1].strip()
    elif admin_header:
        token_value = admin_header.strip()
    if token_value != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin token invalid")


__all__ = [
    "LoginRequired",
    "RedirectRequired",
    "get_web_session",
    "optional_web_session",
    "require_account",
    "require_admin_token",
    "require_guest",
]
