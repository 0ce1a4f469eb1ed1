"""Database models for the Lbinag storefront."""

from .models import (
    Account,
    Base,
    ChatMessage,
    Conversation,
    LoginToken,
    Product,
    SettingEntry,
    WebSessionRecord,
)

__all__ = [
    "Account",
    "Base",
    "ChatMessage",
    "Conversation",
    "LoginToken",
    "Product",
    "SettingEntry",
    "WebSessionRecord",
]
