from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from ..chat.service import ChatService
from ..core.security import get_web_session
from ..schemas.catalog import ProductDetail, ProductModel, SearchResponse
from ..schemas.chat import AgentRequest, AgentResponse, HistoryItem, HistoryResponse
from ..services.catalog import CatalogService, ProductValidationError
from ..services.identity import resolve_actor_id
from ..services.ratelimit import RateLimiter
from ..services.storage import StorageService, WebSession
from .deps import (
    enforce_rate_limit,
    get_catalog_service,
    get_chat_service,
    get_rate_limiter,
    get_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["store"])

CHAT_APOLOGY = "I'm sorry, I'm having trouble right now. Please try again in a moment."


async def get_actor_id(
    web_session: WebSession = Depends(get_web_session),
    storage: StorageService = Depends(get_storage_service),
) -> str:
    return await resolve_actor_id(web_session, storage)


@router.get("/products/search", response_model=SearchResponse)
async def search_products(
    q: str = "",
    color: str = "all",
    catalog: CatalogService = Depends(get_catalog_service),
) -> SearchResponse:
    products = await catalog.search(q, color)
    return SearchResponse(
        query=q,
        color=color,
        count=len(products),
        items=[ProductModel.model_validate(p) for p in products],
    )


@router.get("/products/color/{color}", response_model=list[ProductModel])
async def products_by_color(
    color: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[ProductModel]:
    try:
        products = await catalog.list_by_color(color)
    except ProductValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [ProductModel.model_validate(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductDetail)
async def product_detail(
    product_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductDetail:
    product = await catalog.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    related = await catalog.related_products(product)
    return ProductDetail(
        product=ProductModel.model_validate(product),
        related=[ProductModel.model_validate(p) for p in related],
    )


@router.post("/agent", response_model=AgentResponse)
async def agent_message(
    payload: AgentRequest,
    actor_id: str = Depends(get_actor_id),
    chat: ChatService = Depends(get_chat_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> AgentResponse | JSONResponse:
    message = payload.message.strip()
    if not message:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Message is required"},
        )
    enforce_rate_limit(limiter, f"chat:{actor_id}", limit=30, window_seconds=60)

    try:
        result = await chat.send_message(actor_id, message)
    except Exception as exc:
        logger.exception("Chat message failed: %s", exc, extra={"actor": actor_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to process message", "reply": CHAT_APOLOGY},
        )
    return AgentResponse.model_validate(
        {
            "reply": result.reply,
            "action": result.action,
            "product_id": result.product_id,
            "top_matches": result.top_matches,
        }
    )


@router.get("/agent/history", response_model=HistoryResponse)
async def agent_history(
    actor_id: str = Depends(get_actor_id),
    chat: ChatService = Depends(get_chat_service),
) -> HistoryResponse:
    messages = await chat.history(actor_id)
    return HistoryResponse(messages=[HistoryItem.model_validate(m) for m in messages])


@router.post("/agent/clear")
async def agent_clear(
    actor_id: str = Depends(get_actor_id),
    chat: ChatService = Depends(get_chat_service),
) -> dict[str, bool]:
    await chat.clear(actor_id)
    return {"success": True}
