"""Chat history, reply generation and product suggestions."""

from .history import ConversationStore
from .openai_client import OpenAIClient
from .replies import (
    RemoteReplyGenerator,
    Reply,
    ReplyGenerator,
    StaticReplyGenerator,
    build_reply_generator,
)
from .service import ChatReply, ChatService

__all__ = [
    "ChatReply",
    "ChatService",
    "ConversationStore",
    "OpenAIClient",
    "RemoteReplyGenerator",
    "Reply",
    "ReplyGenerator",
    "StaticReplyGenerator",
    "build_reply_generator",
]
