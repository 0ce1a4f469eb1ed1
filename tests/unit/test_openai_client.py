from types import SimpleNamespace

import pytest

from storefront.app.chat.openai_client import OpenAIClient


@pytest.mark.anyio
async def test_openai_client_without_key_is_unavailable() -> None:
    client = OpenAIClient(api_key=None)
    assert client.available is False
    with pytest.raises(RuntimeError):
        await client.complete(model="gemini-2.0-flash", messages=[], max_tokens=10, temperature=0.1)


class _FakeCompletion:
    def __init__(self) -> None:
        self.choices = [SimpleNamespace(message=SimpleNamespace(content="  Result \n"))]


class _FakeCompletions:
    def __init__(self) -> None:
        self.kwargs: dict = {}

    async def create(self, **kwargs):  # pragma: no cover - simple stub
        self.kwargs = kwargs
        return _FakeCompletion()


class _FakeClient:
    def __init__(self) -> None:
        self.chat = SimpleNamespace(completions=_FakeCompletions())


@pytest.mark.anyio
async def test_openai_client_stubbed() -> None:
    client = OpenAIClient(api_key="fake", base_url="https://example.test/v1/")
    fake = _FakeClient()
    client._client = fake  # type: ignore[attr-defined]
    text = await client.complete(
        model="gemini-2.0-flash",
        messages=[{"role": "user", "content": "Need help"}],
        max_tokens=60,
        temperature=0.7,
    )
    assert client.available is True
    assert text == "Result"
    assert fake.chat.completions.kwargs["messages"] == [{"role": "user", "content": "Need help"}]
    assert fake.chat.completions.kwargs["max_tokens"] == 60
