from __future__ import annotations

import re

import pytest

from storefront.app.services.identity import mint_guest_id, resolve_actor_id
from storefront.app.services.storage import StorageService

GUEST_ID = re.compile(r"^guest_\d+_[0-9a-z]{9}$")


def test_mint_guest_id_format() -> None:
    first = mint_guest_id()
    second = mint_guest_id()
    assert GUEST_ID.match(first)
    assert first != second


@pytest.mark.anyio
async def test_guest_id_is_stable_within_session(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)
    web_session = storage.new_session()

    first = await resolve_actor_id(web_session, storage)
    second = await resolve_actor_id(web_session, storage)

    assert GUEST_ID.match(first)
    assert first == second
    reloaded = await storage.load_session(web_session.session_id)
    assert reloaded is not None
    assert await resolve_actor_id(reloaded, storage) == first


@pytest.mark.anyio
async def test_account_id_wins_over_guest(temp_session_factory) -> None:
    storage = StorageService(temp_session_factory)
    web_session = storage.new_session()
    await resolve_actor_id(web_session, storage)

    account, _ = await storage.ensure_account("me@x.com")
    web_session.account_id = account.id
    web_session.guest_id = None

    assert await resolve_actor_id(web_session, storage) == str(account.id)
