from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    # validated by the auth service so malformed input gets its user message
    email: str = ""


class LoginStartResponse(BaseModel):
    ok: bool = True
    message: str


class SessionInfo(BaseModel):
    authenticated: bool
    account_id: int | None = None
    email: str | None = None
    guest_id: str | None = None
