from __future__ import annotations

import html
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.security import (
    get_web_session,
    optional_web_session,
    require_account,
    require_guest,
)
from ..schemas.auth import LoginRequest, LoginStartResponse, SessionInfo
from ..services.auth import (
    GENERIC_ERROR_MESSAGE,
    AuthService,
    MailDeliveryError,
    TokenError,
    ValidationError,
)
from ..services.ratelimit import RateLimiter
from ..services.storage import StoreError, WebSession
from .deps import client_key, enforce_rate_limit, get_auth_service, get_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

LOGIN_SENT_MESSAGE = "Check your email for a sign-in link."

LOGIN_PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Sign In - Lbinag</title></head>
<body>
<h1>Sign in</h1>
{error}
<form id="login-form">
  <label>Email <input type="email" name="email" required></label>
  <button type="submit">Send magic link</button>
</form>
<p id="login-status"></p>
<script>
document.getElementById("login-form").addEventListener("submit", async (event) => {{
  event.preventDefault();
  const email = event.target.email.value;
  const response = await fetch("/auth/login", {{
    method: "POST",
    headers: {{"Content-Type": "application/json"}},
    body: JSON.stringify({{email}}),
  }});
  const body = await response.json();
  document.getElementById("login-status").textContent = body.message || body.detail;
}});
</script>
</body>
</html>
"""


def _login_redirect(message: str) -> RedirectResponse:
    return RedirectResponse(
        f"/auth/login?error={quote(message)}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/auth/login", response_class=HTMLResponse)
async def login_page(
    error: str | None = None,
    _: WebSession = Depends(require_guest),
) -> str:
    error_html = f'<p class="error">{html.escape(error)}</p>' if error else ""
    return LOGIN_PAGE.format(error=error_html)


@router.post("/auth/login", response_model=LoginStartResponse)
async def start_login(
    request: Request,
    payload: LoginRequest,
    _: WebSession = Depends(require_guest),
    auth: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> LoginStartResponse:
    enforce_rate_limit(limiter, f"login:{client_key(request)}", limit=5, window_seconds=60)
    try:
        await auth.request_login(payload.email)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.user_message) from exc
    except MailDeliveryError as exc:
        logger.error("Magic link delivery failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.user_message) from exc
    return LoginStartResponse(message=LOGIN_SENT_MESSAGE)


@router.get("/auth/verify")
async def verify_login(
    token: str | None = None,
    web_session: WebSession = Depends(get_web_session),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    try:
        result = await auth.verify_token(token, web_session)
    except TokenError as exc:
        return _login_redirect(exc.user_message)
    except StoreError:
        return _login_redirect(GENERIC_ERROR_MESSAGE)
    return RedirectResponse(result.redirect_to, status_code=status.HTTP_303_SEE_OTHER)


@router.api_route("/auth/logout", methods=["GET", "POST"])
async def logout(
    web_session: WebSession = Depends(get_web_session),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    await auth.logout(web_session)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/auth/me", response_model=SessionInfo)
async def current_session(
    web_session: WebSession | None = Depends(optional_web_session),
) -> SessionInfo:
    if web_session is None:
        return SessionInfo(authenticated=False)
    return SessionInfo(
        authenticated=web_session.authenticated,
        account_id=web_session.account_id,
        email=web_session.account_email,
        guest_id=web_session.guest_id,
    )


@router.get("/account", response_class=HTMLResponse)
async def account_page(web_session: WebSession = Depends(require_account)) -> str:
    email = html.escape(web_session.account_email or "")
    return (
        "<h1>Your account</h1>"
        f"<p>Signed in as {email}.</p>"
        '<form method="post" action="/auth/logout"><button>Sign out</button></form>'
    )
