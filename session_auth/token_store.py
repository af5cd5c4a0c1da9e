from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path

from hmsclient.constants import LOGGER
from session_auth.errors import MalformedToken
from session_auth.models import CredentialPair


class CredentialStore(ABC):
    """Durable holder of the current credential pair.

    A pair is only ever written whole, so a reader sees either the previous
    pair or the new one.
    """

    @abstractmethod
    async def get(self) -> CredentialPair | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, pair: CredentialPair) -> None:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, pair: CredentialPair | None = None) -> None:
        self._pair = pair

    async def get(self) -> CredentialPair | None:
        return self._pair

    async def set(self, pair: CredentialPair) -> None:
        self._pair = pair

    async def clear(self) -> None:
        self._pair = None


class FileCredentialStore(CredentialStore):
    """JSON file of named profiles, one credential pair per profile."""

    def __init__(self, path: str | Path = ".tokens.json", *, key: str = "default") -> None:
        self._path = Path(path)
        self._key = key
        self._lock = threading.Lock()

    async def get(self) -> CredentialPair | None:
        try:
            entry = self._load_profiles().get(self._key)
            return None if entry is None else CredentialPair(**entry)
        except (OSError, RuntimeError, TypeError, ValueError) as error:
            LOGGER.warning("Credential store %s unreadable; treating as empty: %s", self._path, error)
            return None

    async def set(self, pair: CredentialPair) -> None:
        with self._lock:
            profiles = self._profiles_for_update()
            profiles[self._key] = asdict(pair)
            self._replace_file(profiles)

    async def clear(self) -> None:
        with self._lock:
            profiles = self._profiles_for_update()
            if profiles.pop(self._key, None) is not None:
                self._replace_file(profiles)

    def _load_profiles(self) -> dict[str, dict]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        profiles = json.loads(text)
        if not isinstance(profiles, dict):
            raise MalformedToken(f"{self._path} must hold a JSON object keyed by profile.")
        return profiles

    def _profiles_for_update(self) -> dict[str, dict]:
        # A corrupt document is replaced rather than blocking every later write.
        try:
            return self._load_profiles()
        except (RuntimeError, ValueError) as error:
            LOGGER.warning("Discarding invalid credential store %s: %s", self._path, error)
            return {}

    def _replace_file(self, profiles: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, staged = tempfile.mkstemp(
            prefix=f"{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(profiles, handle, indent=2, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(staged, self._path)
        except BaseException:
            Path(staged).unlink(missing_ok=True)
            raise
