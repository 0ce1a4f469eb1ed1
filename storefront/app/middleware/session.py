from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import Settings, get_settings


class WebSessionMiddleware(BaseHTTPMiddleware):
    """Keep the session cookie in step with the server-side session record.

    Handlers reach the session through the ``get_web_session`` dependency, which
    parks it on ``request.state.web_session``. After the response is built the
    cookie is (re)issued when the session was written during the request and
    removed when the session was destroyed.
    """

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)

        web_session = getattr(request.state, "web_session", None)
        if web_session is None:
            return response

        settings: Settings = getattr(request.app.state, "settings", None) or get_settings()
        if web_session.destroyed:
            response.delete_cookie(settings.session_cookie_name, path="/")
        elif web_session.touched:
            response.set_cookie(
                settings.session_cookie_name,
                web_session.session_id,
                max_age=settings.session_ttl_seconds,
                path="/",
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
            )
        return response


__all__ = ["WebSessionMiddleware"]
