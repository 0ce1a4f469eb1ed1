from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ..core.config import Settings
from .openai_client import OpenAIClient
from .templates import choose_reply

logger = logging.getLogger(__name__)


@dataclass
class Reply:
    text: str
    source: str


class ReplyGenerator(Protocol):
    source: str

    async def generate(self, messages: Sequence[dict[str, str]]) -> Reply: ...


def _last_user_message(messages: Sequence[dict[str, str]]) -> str:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message.get("content", "")
    return ""


class StaticReplyGenerator:
    """Answers from the keyword table without any network access."""

    source = "static"

    async def generate(self, messages: Sequence[dict[str, str]]) -> Reply:
        return Reply(choose_reply(_last_user_message(messages)), self.source)


class RemoteReplyGenerator:
    """Delegates to an OpenAI-compatible chat completion endpoint."""

    source = "remote"

    def __init__(
        self,
        client: OpenAIClient,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def generate(self, messages: Sequence[dict[str, str]]) -> Reply:
        text = await self._client.complete(
            model=self._model,
            messages=messages,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        if not text:
            raise ValueError("empty completion")
        return Reply(text, self.source)


def build_reply_generator(settings: Settings, client: OpenAIClient) -> ReplyGenerator:
    """Select the reply generator named by ``CHAT_RESPONDER``.

    ``auto`` uses the remote model when an API key is configured and the
    keyword table otherwise. ``remote`` without a key degrades to static.
    """

    mode = settings.chat_responder
    if mode == "static":
        return StaticReplyGenerator()
    if client.available:
        return RemoteReplyGenerator(
            client,
            model=settings.chat_model,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
        )
    if mode == "remote":
        logger.warning("CHAT_RESPONDER=remote but no CHAT_API_KEY; using static replies")
    return StaticReplyGenerator()


__all__ = [
    "RemoteReplyGenerator",
    "Reply",
    "ReplyGenerator",
    "StaticReplyGenerator",
    "build_reply_generator",
]
