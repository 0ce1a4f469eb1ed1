from __future__ import annotations

from collections.abc import Sequence

from openai import AsyncOpenAI


class OpenAIClient:
    """Thin wrapper above the OpenAI async SDK for any OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._client = (
            AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout, max_retries=0)
            if api_key
            else None
        )

    @property
    def available(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        *,
        model: str,
        messages: Sequence[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant text for ``messages``."""

        if self._client is None:
            raise RuntimeError("chat API key is not configured")

        completion = await self._client.chat.completions.create(
            model=model,
            messages=list(messages),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        message = completion.choices[0].message.content or ""
        return message.strip()
