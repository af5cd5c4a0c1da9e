from __future__ import annotations

import enum
import time
from dataclasses import dataclass

from session_auth.errors import MalformedToken
from session_auth.token_inspector import token_subject


class SessionState(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class CredentialPair:
    access_token: str
    refresh_token: str
    expires_at: float
    user_id: str | None = None

    @classmethod
    def from_payload(
        cls,
        payload: dict,
        *,
        fallback_refresh_token: str | None = None,
    ) -> "CredentialPair":
        # The mobile API wraps token responses in a {"data": ...} envelope.
        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload

        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token") or fallback_refresh_token
        expires_in = data.get("expires_in")

        if not isinstance(access_token, str) or not access_token:
            raise MalformedToken("Token response missing access_token.")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise MalformedToken("Token response missing refresh_token.")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise MalformedToken("Token response missing expires_in.")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=time.time() + expires_in,
            user_id=token_subject(access_token),
        )
