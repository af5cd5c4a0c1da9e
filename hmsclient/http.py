from __future__ import annotations

import logging

import httpx

from session_auth.refresh import RefreshCoordinator
from session_auth.token_store import CredentialStore

from .constants import LOGGER, RETRIED_EXTENSION


def _bearer(access_token: str) -> str:
    return f"Bearer {access_token}"


class SessionAuthTransport(httpx.AsyncBaseTransport):
    """Attach the stored access token and replay once after a 401.

    The replay goes through the shared refresh coordinator, so any number of
    requests failing together cause a single refresh call.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        store: CredentialStore,
        coordinator: RefreshCoordinator,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._coordinator = coordinator
        self._logger = logger or LOGGER

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        sent_token = await self._current_token()
        if sent_token:
            request.headers["Authorization"] = _bearer(sent_token)

        body = await request.aread()
        response = await self._transport.handle_async_request(request)

        if response.status_code != 401:
            return response
        if request.extensions.get(RETRIED_EXTENSION):
            self._logger.warning(
                "Replayed request rejected again (%s %s); giving up",
                request.method,
                request.url,
            )
            return response

        request.extensions[RETRIED_EXTENSION] = True
        self._logger.info(
            "Received 401, refreshing session before replay (%s %s)",
            request.method,
            request.url,
        )
        await response.aclose()

        access_token = await self._current_token()
        if not access_token or access_token == sent_token:
            access_token = await self._coordinator.refresh()
        else:
            # Rotated while this request was in flight; the new token is already stored.
            self._logger.debug("Replaying with token rotated by a concurrent refresh")

        retry_request = httpx.Request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            content=body,
            extensions=request.extensions,
        )
        retry_request.headers["Authorization"] = _bearer(access_token)
        return await self._transport.handle_async_request(retry_request)

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _current_token(self) -> str | None:
        pair = await self._store.get()
        return pair.access_token if pair is not None else None


def build_log_hooks(debug_enabled: bool) -> dict[str, list]:
    async def log_request(request: httpx.Request) -> None:
        if not debug_enabled:
            return
        LOGGER.info("HMS API request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        if not debug_enabled:
            return
        LOGGER.info(
            "HMS API response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > 1000:
                text = text[:1000] + "...<truncated>"
            LOGGER.warning("HMS API error body: %s", text)

    return {"request": [log_request], "response": [log_response]}
