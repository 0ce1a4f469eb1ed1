from __future__ import annotations

import secrets
import string
import time

from .storage import StorageService, WebSession

_BASE36 = string.digits + string.ascii_lowercase


def mint_guest_id() -> str:
    """Timestamp plus random suffix; a correlation key, not a credential."""

    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"guest_{int(time.time() * 1000)}_{suffix}"


async def resolve_actor_id(web_session: WebSession, storage: StorageService) -> str:
    """Return the id chat history is attributed to for this session.

    Authenticated sessions resolve to the account id. Anonymous sessions get a
    guest id that is minted once and persisted for reuse.
    """

    if web_session.account_id is not None:
        return str(web_session.account_id)
    if not web_session.guest_id:
        web_session.guest_id = mint_guest_id()
        await storage.save_session(web_session)
    return web_session.guest_id


__all__ = ["mint_guest_id", "resolve_actor_id"]
