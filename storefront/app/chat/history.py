from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import ChatMessage, Conversation
from ..utils.clock import utcnow

SYSTEM_PROMPT = (
    "You are a helpful marble shopping assistant for Lbinag. Help customers find the "
    "perfect marbles, answer questions about our products, and assist with their "
    "shopping experience. Be friendly, knowledgeable about marbles, and always try to "
    "help customers find what they need. We sell marbles in different colors: red, "
    "blue, green, yellow, orange, purple, pink, white, black, and multicolor. Prices "
    "are in Moroccan Dirham (Dh)."
)

ROLES = frozenset({"system", "user", "assistant"})


class ConversationStore:
    """One conversation per actor id, seeded with the assistant's system message."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def find(self, actor_id: str) -> Conversation | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(Conversation).where(Conversation.actor_id == actor_id)
            )

    async def get_or_create(self, actor_id: str) -> Conversation:
        async with self._session_factory() as session:
            conversation = await session.scalar(
                select(Conversation).where(Conversation.actor_id == actor_id)
            )
            if conversation:
                return conversation
            conversation = Conversation(actor_id=actor_id)
            conversation.messages.append(ChatMessage(role="system", content=SYSTEM_PROMPT))
            session.add(conversation)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                existing = await session.scalar(
                    select(Conversation).where(Conversation.actor_id == actor_id)
                )
                if existing is None:
                    raise
                return existing
            return conversation

    async def add_message(self, conversation_id: int, role: str, content: str) -> ChatMessage:
        if role not in ROLES:
            raise ValueError(f"unsupported chat role: {role}")
        async with self._session_factory() as session:
            message = ChatMessage(conversation_id=conversation_id, role=role, content=content)
            session.add(message)
            await session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=utcnow())
            )
            await session.commit()
            await session.refresh(message)
            return message

    async def messages(self, conversation_id: int) -> list[ChatMessage]:
        async with self._session_factory() as session:
            result = await session.scalars(
                select(ChatMessage)
                .where(ChatMessage.conversation_id == conversation_id)
                .order_by(ChatMessage.id)
            )
            return list(result.all())

    async def history(self, actor_id: str) -> list[ChatMessage]:
        """Visible transcript for ``actor_id``; the system message is omitted."""

        conversation = await self.find(actor_id)
        if conversation is None:
            return []
        return [m for m in await self.messages(conversation.id) if m.role != "system"]

    async def clear(self, actor_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(Conversation).where(Conversation.actor_id == actor_id)
            )
            await session.commit()
            return bool(result.rowcount)


__all__ = ["ConversationStore", "SYSTEM_PROMPT"]
