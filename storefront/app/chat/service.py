from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..metrics import CHAT_REPLIES
from ..services.catalog import COLORS, CatalogService
from .history import ConversationStore
from .replies import Reply, ReplyGenerator, StaticReplyGenerator

logger = logging.getLogger(__name__)

SEARCH_TERMS: tuple[str, ...] = (*COLORS, "marble")
TOP_MATCHES = 3


@dataclass
class ChatReply:
    reply: str
    source: str
    action: str | None = None
    product_id: str | None = None
    top_matches: list[dict[str, Any]] = field(default_factory=list)


class ChatService:
    """Stores chat turns per actor and asks the configured generator for replies."""

    def __init__(
        self,
        *,
        conversations: ConversationStore,
        catalog: CatalogService,
        generator: ReplyGenerator,
        fallback: ReplyGenerator | None = None,
    ) -> None:
        self._conversations = conversations
        self._catalog = catalog
        self._generator = generator
        self._fallback = fallback or StaticReplyGenerator()

    @property
    def generator(self) -> ReplyGenerator:
        return self._generator

    async def send_message(self, actor_id: str, message: str) -> ChatReply:
        conversation = await self._conversations.get_or_create(actor_id)
        await self._conversations.add_message(conversation.id, "user", message)
        transcript = [
            {"role": m.role, "content": m.content}
            for m in await self._conversations.messages(conversation.id)
        ]

        reply = await self._generate(transcript)
        result = await self._analyze(reply, message)
        await self._conversations.add_message(conversation.id, "assistant", reply.text)

        CHAT_REPLIES.labels(source=reply.source).inc()
        logger.info(
            "Chat reply generated",
            extra={"actor": actor_id, "extra_fields": {"source": reply.source, "action": result.action}},
        )
        return result

    async def history(self, actor_id: str) -> list[dict[str, Any]]:
        return [
            {"role": m.role, "content": m.content, "timestamp": m.created_at}
            for m in await self._conversations.history(actor_id)
        ]

    async def clear(self, actor_id: str) -> None:
        await self._conversations.clear(actor_id)
        logger.info("Conversation cleared", extra={"actor": actor_id})

    async def _generate(self, transcript: list[dict[str, str]]) -> Reply:
        try:
            return await self._generator.generate(transcript)
        except Exception as exc:
            if self._generator is self._fallback:
                raise
            logger.warning("Reply generator failed, using static replies: %s", exc, exc_info=True)
            return await self._fallback.generate(transcript)

    async def _analyze(self, reply: Reply, user_message: str) -> ChatReply:
        result = ChatReply(reply=reply.text, source=reply.source)
        lower_reply = reply.text.lower()
        lower_message = user_message.lower()
        term = next(
            (t for t in SEARCH_TERMS if t in lower_message or t in lower_reply),
            None,
        )
        if term is None:
            return result

        try:
            products = await self._catalog.search(term)
        except SQLAlchemyError as exc:
            logger.error("Product lookup for chat failed: %s", exc)
            return result

        if products:
            result.action = "show_products"
            result.top_matches = [
                {"id": str(p.id), "name": p.name, "price": p.price, "color": p.color}
                for p in products[:TOP_MATCHES]
            ]
            result.product_id = str(products[0].id)
        return result


__all__ = ["ChatReply", "ChatService"]
