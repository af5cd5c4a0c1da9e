from __future__ import annotations

import base64
import binascii
import json
import time

from session_auth.errors import MalformedToken


def decode_claims(token: str) -> dict:
    """Decode the claims segment of a JWT without verifying its signature.

    Only the issuing backend can verify the signature; the client reads the
    claims to decide whether the token is still worth sending.
    """
    if not isinstance(token, str):
        raise MalformedToken("Token must be a string.")
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedToken("Invalid token format.")

    try:
        data = base64.urlsafe_b64decode(parts[1] + "=" * (-len(parts[1]) % 4))
        claims = json.loads(data)
    except (binascii.Error, ValueError) as error:
        raise MalformedToken(f"Token claims could not be decoded: {error}") from error

    if not isinstance(claims, dict):
        raise MalformedToken("Token claims must be a JSON object.")
    return claims


def token_expiry(token: str) -> float:
    exp = decode_claims(token).get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedToken("Token has no numeric exp claim.")
    return float(exp)


def is_expired(token: str | None, *, now: float | None = None) -> bool:
    # Compared against the local wall clock with no skew allowance.
    if not token:
        return True
    try:
        expires_at = token_expiry(token)
    except MalformedToken:
        return True

    current = time.time() if now is None else now
    return current >= expires_at


def token_subject(token: str) -> str | None:
    try:
        subject = decode_claims(token).get("sub")
    except MalformedToken:
        return None
    if subject is None:
        return None
    return str(subject)
