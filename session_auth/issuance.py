from __future__ import annotations

import httpx

from hmsclient.constants import DEFAULT_API_TIMEOUT, LOGIN_PATH, LOGOUT_PATH, REFRESH_PATH
from session_auth.errors import AuthFailure, MalformedToken, TransportError
from session_auth.models import CredentialPair


async def _post(
    url: str,
    payload: dict,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_API_TIMEOUT,
) -> httpx.Response:
    own_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout)

    try:
        response = await http_client.post(url, json=payload)
        response.raise_for_status()
    except httpx.HTTPStatusError as error:
        detail = error.response.text
        raise AuthFailure(
            f"Auth request failed with status {error.response.status_code}: {detail}",
            status_code=error.response.status_code,
        ) from error
    except httpx.TransportError as error:
        raise TransportError(f"Auth request to {url} failed: {error}") from error
    finally:
        if own_client:
            await http_client.aclose()

    return response


def _json_body(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError as error:
        raise MalformedToken("Token response is not valid JSON.") from error
    if not isinstance(payload, dict):
        raise MalformedToken("Token response must be a JSON object.")
    return payload


async def login(
    email: str,
    password: str,
    tenant_id: str | None = None,
    *,
    base_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_API_TIMEOUT,
) -> CredentialPair:
    payload = {"email": email, "password": password}
    if tenant_id:
        payload["tenantId"] = tenant_id

    response = await _post(f"{base_url}{LOGIN_PATH}", payload, client=client, timeout=timeout)
    return CredentialPair.from_payload(_json_body(response))


async def refresh(
    refresh_token: str,
    *,
    base_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_API_TIMEOUT,
) -> CredentialPair:
    response = await _post(
        f"{base_url}{REFRESH_PATH}",
        {"refresh_token": refresh_token},
        client=client,
        timeout=timeout,
    )
    # Issuers that do not rotate refresh tokens omit the field.
    return CredentialPair.from_payload(_json_body(response), fallback_refresh_token=refresh_token)


async def logout(
    refresh_token: str,
    *,
    base_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_API_TIMEOUT,
) -> None:
    await _post(
        f"{base_url}{LOGOUT_PATH}",
        {"refresh_token": refresh_token},
        client=client,
        timeout=timeout,
    )
