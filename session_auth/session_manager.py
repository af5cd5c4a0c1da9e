from __future__ import annotations

import asyncio
import inspect
from functools import partial
from typing import Any, Callable

import httpx

from hmsclient.constants import DEFAULT_API_TIMEOUT, DEFAULT_REFRESH_TIMEOUT, LOGGER
from hmsclient.http import SessionAuthTransport, build_log_hooks
from session_auth import issuance
from session_auth.errors import SessionError, TransportError
from session_auth.models import CredentialPair, SessionState
from session_auth.refresh import RefreshCoordinator
from session_auth.token_inspector import is_expired
from session_auth.token_store import CredentialStore


class SessionManager:
    """Public face of the client session.

    ``login``/``logout`` and the refresh coordinator are the only writers of
    the credential store. The proactive path (``ensure_valid_token``) and the
    reactive 401 path in ``transport`` share one coordinator, so a refresh
    started by either is joined by both.

    ``on_unauthenticated`` is the host hook called after the store has been
    wiped, either on logout or when a refresh cannot recover the session. It
    may be a plain or an async callable.

    ``api_timeout`` bounds every login and logout call, including injected
    ones, so an unresponsive server cannot hold up local cleanup.
    """

    def __init__(
        self,
        *,
        base_url: str,
        store: CredentialStore,
        transport: httpx.AsyncBaseTransport | None = None,
        on_unauthenticated: Callable[[], Any] | None = None,
        api_timeout: float = DEFAULT_API_TIMEOUT,
        refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT,
        issuance_client: httpx.AsyncClient | None = None,
        login_fn=issuance.login,
        refresh_fn=issuance.refresh,
        logout_fn=issuance.logout,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.store = store
        self._on_unauthenticated = on_unauthenticated
        self._issuance_client = issuance_client
        self._api_timeout = api_timeout
        self._login_fn = login_fn
        self._logout_fn = logout_fn

        self.coordinator = RefreshCoordinator(
            store,
            partial(
                refresh_fn,
                base_url=self.base_url,
                client=issuance_client,
                timeout=refresh_timeout,
            ),
            on_failure=self._terminate,
            timeout=refresh_timeout,
        )
        self.transport = SessionAuthTransport(
            transport or httpx.AsyncHTTPTransport(),
            store=store,
            coordinator=self.coordinator,
        )

    def build_client(self, *, debug_enabled: bool = False, **kwargs) -> httpx.AsyncClient:
        kwargs.setdefault("base_url", self.base_url)
        return httpx.AsyncClient(
            transport=self.transport,
            event_hooks=build_log_hooks(debug_enabled),
            **kwargs,
        )

    async def login(
        self,
        email: str,
        password: str,
        tenant_id: str | None = None,
    ) -> CredentialPair:
        try:
            pair = await asyncio.wait_for(
                self._login_fn(
                    email=email,
                    password=password,
                    tenant_id=tenant_id,
                    base_url=self.base_url,
                    client=self._issuance_client,
                    timeout=self._api_timeout,
                ),
                timeout=self._api_timeout,
            )
        except asyncio.TimeoutError as error:
            raise TransportError(f"Login timed out after {self._api_timeout}s.") from error
        await self.store.set(pair)
        LOGGER.info("Logged in as %s", pair.user_id or email)
        return pair

    async def logout(self) -> None:
        pair = await self.store.get()
        if pair is not None and pair.refresh_token:
            try:
                await asyncio.wait_for(
                    self._logout_fn(
                        refresh_token=pair.refresh_token,
                        base_url=self.base_url,
                        client=self._issuance_client,
                        timeout=self._api_timeout,
                    ),
                    timeout=self._api_timeout,
                )
            except asyncio.TimeoutError:
                LOGGER.warning("Logout notification timed out after %ss", self._api_timeout)
            except Exception as error:
                LOGGER.warning("Logout notification failed: %s", error)

        await self.store.clear()
        LOGGER.info("Logged out")
        await self._notify_host()

    async def ensure_valid_token(self) -> str:
        pair = await self.store.get()
        if pair is None or is_expired(pair.access_token):
            return await self.coordinator.refresh()
        return pair.access_token

    async def is_authenticated(self) -> bool:
        pair = await self.store.get()
        return pair is not None and bool(pair.access_token)

    async def session_state(self) -> SessionState:
        if await self.is_authenticated():
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    async def get_access_token(self) -> str | None:
        pair = await self.store.get()
        return pair.access_token if pair is not None else None

    async def get_refresh_token(self) -> str | None:
        pair = await self.store.get()
        return pair.refresh_token if pair is not None else None

    async def _terminate(self, error: SessionError) -> None:
        # Local state goes first; the host must never see a half-cleared session.
        await self.store.clear()
        LOGGER.warning("Session terminated: %s", error)
        await self._notify_host()

    async def _notify_host(self) -> None:
        if self._on_unauthenticated is None:
            return
        try:
            result = self._on_unauthenticated()
            if inspect.isawaitable(result):
                await result
        except Exception:
            LOGGER.exception("Unauthenticated hook failed")
