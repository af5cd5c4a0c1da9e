from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from dataclasses import replace
from typing import Awaitable, Callable

from hmsclient.constants import DEFAULT_REFRESH_TIMEOUT, LOGGER
from session_auth.errors import RefreshFailed, SessionError, SessionExpired
from session_auth.models import CredentialPair
from session_auth.token_store import CredentialStore

RefreshFn = Callable[..., Awaitable[CredentialPair]]
FailureFn = Callable[[SessionError], Awaitable[None]]


class RefreshCoordinator:
    """Single-flight owner of the session refresh call.

    At most one refresh is in flight at a time. Every caller that asks while
    it runs awaits the same attempt and sees the same token or the same
    error. The slot holds a ``concurrent.futures.Future`` under a thread lock,
    so callers on worker threads or other event loops can join it as well.
    """

    def __init__(
        self,
        store: CredentialStore,
        refresh_fn: RefreshFn,
        *,
        on_failure: FailureFn,
        timeout: float = DEFAULT_REFRESH_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._refresh_fn = refresh_fn
        self._on_failure = on_failure
        self._timeout = timeout
        self._logger = logger or LOGGER
        self._lock = threading.Lock()
        self._attempt: Future[str] | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._attempt is not None

    async def refresh(self) -> str:
        with self._lock:
            attempt = self._attempt
            started = attempt is None
            if started:
                attempt = Future()
                self._attempt = attempt

        if started:
            task = asyncio.get_running_loop().create_task(self._run(attempt))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            self._logger.debug("Joining in-flight session refresh")

        # A cancelled waiter must not cancel the attempt other callers share.
        return await asyncio.shield(asyncio.wrap_future(attempt))

    async def _run(self, attempt: Future[str]) -> None:
        try:
            access_token = await self._refresh_once()
        except SessionError as error:
            self._logger.warning("Session refresh failed: %s", error)
            try:
                await self._on_failure(error)
            except Exception:
                self._logger.exception("Session termination failed")
            attempt.set_exception(error)
        else:
            self._logger.info("Session refreshed")
            attempt.set_result(access_token)
        finally:
            with self._lock:
                if self._attempt is attempt:
                    self._attempt = None
            if not attempt.done():
                attempt.set_exception(RefreshFailed("Session refresh was aborted."))

    async def _refresh_once(self) -> str:
        try:
            current = await self._store.get()
        except Exception as error:
            self._logger.warning("Credential store unavailable during refresh: %s", error)
            current = None
        if current is None or not current.refresh_token:
            raise SessionExpired()

        try:
            refreshed = await asyncio.wait_for(
                self._refresh_fn(refresh_token=current.refresh_token),
                timeout=self._timeout,
            )
            if not refreshed.refresh_token:
                refreshed = replace(refreshed, refresh_token=current.refresh_token)
            await self._store.set(refreshed)
        except asyncio.TimeoutError as error:
            raise RefreshFailed(f"Session refresh timed out after {self._timeout}s.") from error
        except Exception as error:
            raise RefreshFailed(f"Session refresh rejected: {error}") from error

        return refreshed.access_token
