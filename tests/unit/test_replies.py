from __future__ import annotations

from types import SimpleNamespace

import pytest

from storefront.app.chat.openai_client import OpenAIClient
from storefront.app.chat.replies import (
    RemoteReplyGenerator,
    StaticReplyGenerator,
    build_reply_generator,
)
from storefront.app.chat.templates import FALLBACK_REPLY, choose_reply


class _StubClient:
    def __init__(self, text: str, available: bool = True) -> None:
        self.text = text
        self.available = available
        self.calls: list[dict] = []

    async def complete(self, **kwargs) -> str:
        self.calls.append(kwargs)
        return self.text


def _settings(responder: str) -> SimpleNamespace:
    return SimpleNamespace(
        chat_responder=responder,
        chat_model="gemini-2.0-flash",
        chat_max_tokens=500,
        chat_temperature=0.7,
    )


@pytest.mark.parametrize(
    ("message", "expected_start"),
    [
        ("Hi there", "Hello and welcome"),
        ("How much is shipping?", "All our prices"),
        ("what COLORS do you have", "We sell marbles"),
        ("merci!", "You're welcome"),
    ],
)
def test_choose_reply_matches_keywords(message: str, expected_start: str) -> None:
    assert choose_reply(message).startswith(expected_start)


def test_choose_reply_uses_whole_words() -> None:
    assert choose_reply("this is something else") == FALLBACK_REPLY


@pytest.mark.anyio
async def test_static_generator_answers_last_user_message() -> None:
    reply = await StaticReplyGenerator().generate(
        [
            {"role": "system", "content": "prompt"},
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "..."},
            {"role": "user", "content": "thank you"},
        ]
    )
    assert reply.source == "static"
    assert reply.text.startswith("You're welcome")


@pytest.mark.anyio
async def test_remote_generator_forwards_settings() -> None:
    client = _StubClient("A lovely blue marble.")
    generator = RemoteReplyGenerator(client, model="m", max_tokens=50, temperature=0.2)

    reply = await generator.generate([{"role": "user", "content": "blue?"}])

    assert reply.text == "A lovely blue marble."
    assert reply.source == "remote"
    assert client.calls[0]["model"] == "m"
    assert client.calls[0]["max_tokens"] == 50


@pytest.mark.anyio
async def test_remote_generator_rejects_empty_completion() -> None:
    generator = RemoteReplyGenerator(_StubClient(""), model="m", max_tokens=50, temperature=0.2)
    with pytest.raises(ValueError):
        await generator.generate([{"role": "user", "content": "hi"}])


def test_build_reply_generator_selection() -> None:
    keyed = _StubClient("x")
    keyless = OpenAIClient(api_key=None)

    assert isinstance(build_reply_generator(_settings("static"), keyed), StaticReplyGenerator)
    assert isinstance(build_reply_generator(_settings("auto"), keyed), RemoteReplyGenerator)
    assert isinstance(build_reply_generator(_settings("auto"), keyless), StaticReplyGenerator)
    assert isinstance(build_reply_generator(_settings("remote"), keyless), StaticReplyGenerator)
