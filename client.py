from __future__ import annotations

import asyncio
import json
import os

from hmsclient.constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_REFRESH_TIMEOUT,
    DEFAULT_TOKEN_PROFILE,
    DEFAULT_TOKEN_STORE_PATH,
    LOGGER,
    PROFILE_PATH,
)
from hmsclient.env import _get_env_float, get_api_url, load_env, setup_logging, validate_env
from session_auth.session_manager import SessionManager
from session_auth.token_store import FileCredentialStore


def _on_unauthenticated() -> None:
    LOGGER.warning("Session ended; run again with HMS_EMAIL and HMS_PASSWORD to log in.")


def create_session() -> SessionManager:
    load_env()
    validate_env()

    store = FileCredentialStore(
        os.getenv("HMS_TOKEN_STORE_PATH", DEFAULT_TOKEN_STORE_PATH),
        key=os.getenv("HMS_TOKEN_PROFILE", DEFAULT_TOKEN_PROFILE),
    )
    return SessionManager(
        base_url=get_api_url(),
        store=store,
        on_unauthenticated=_on_unauthenticated,
        api_timeout=_get_env_float("HMS_API_TIMEOUT", DEFAULT_API_TIMEOUT),
        refresh_timeout=_get_env_float("HMS_REFRESH_TIMEOUT", DEFAULT_REFRESH_TIMEOUT),
    )


async def fetch_profile(session: SessionManager, *, debug_enabled: bool = False) -> dict:
    email = os.getenv("HMS_EMAIL", "").strip()
    password = os.getenv("HMS_PASSWORD", "").strip()
    if not await session.is_authenticated():
        if not email or not password:
            raise RuntimeError("Not logged in; set HMS_EMAIL and HMS_PASSWORD.")
        await session.login(email, password, os.getenv("HMS_TENANT_ID") or None)

    await session.ensure_valid_token()
    timeout = _get_env_float("HMS_API_TIMEOUT", DEFAULT_API_TIMEOUT)
    async with session.build_client(debug_enabled=debug_enabled, timeout=timeout) as client:
        response = await client.get(PROFILE_PATH)
        response.raise_for_status()
        return response.json()


def main() -> None:
    load_env()
    debug_enabled = setup_logging()
    session = create_session()
    profile = asyncio.run(fetch_profile(session, debug_enabled=debug_enabled))
    print(json.dumps(profile, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
