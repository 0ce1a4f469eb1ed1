from __future__ import annotations

import re

# Ordered: the first entry with a matching keyword answers.
KEYWORD_REPLIES: list[tuple[tuple[str, ...], str]] = [
    (
        ("hello", "hi", "hey", "salam", "bonjour"),
        "Hello and welcome to Lbinag! I can help you find marbles by color, "
        "price or availability. What are you looking for today?",
    ),
    (
        ("price", "prices", "cost", "how much", "cheap", "expensive", "dh", "dirham"),
        "All our prices are in Moroccan Dirham (Dh). Browse the catalog to compare "
        "prices, or tell me a color and I'll show you what we have.",
    ),
    (
        ("ship", "shipping", "deliver", "delivery"),
        "We deliver across Morocco. Delivery details are confirmed when you place your order.",
    ),
    (
        ("stock", "available", "availability", "in stock"),
        "Each product page shows whether it is in stock and how many are left.",
    ),
    (
        ("color", "colors", "colour", "colours"),
        "We sell marbles in red, blue, green, yellow, orange, purple, pink, white, "
        "black and multicolor. Which one catches your eye?",
    ),
    (
        ("return", "refund", "exchange"),
        "If something isn't right with your order, contact us and we'll sort it out.",
    ),
    (
        ("login", "sign in", "account"),
        "Sign in with your email: we send you a magic link, no password needed.",
    ),
    (
        ("thanks", "thank you", "merci", "shukran"),
        "You're welcome! Happy marble shopping.",
    ),
]

FALLBACK_REPLY = (
    "I'm the Lbinag marble assistant. Ask me about colors, prices or stock and "
    "I'll help you find the perfect marbles."
)

_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b"), reply)
    for keywords, reply in KEYWORD_REPLIES
]


def choose_reply(message: str) -> str:
    """Pick the canned reply for the first keyword group found in ``message``."""

    lowered = message.lower()
    for pattern, reply in _PATTERNS:
        if pattern.search(lowered):
            return reply
    return FALLBACK_REPLY
