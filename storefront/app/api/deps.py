from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..chat.service import ChatService
from ..services.auth import AuthService
from ..services.catalog import CatalogService
from ..services.ratelimit import RateLimiter
from ..services.storage import StorageService


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(limiter: RateLimiter, key: str, *, limit: int, window_seconds: float) -> None:
    if not limiter.allow(key, limit=limit, window_seconds=window_seconds):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="rate limited",
            headers={"Retry-After": str(limiter.retry_after(key, window_seconds))},
        )
