import json

import httpx
import pytest

import client
from session_auth.session_manager import SessionManager
from session_auth.token_store import FileCredentialStore, MemoryCredentialStore
from tests.session_helpers import make_pair


def test_create_session_reads_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(client, "load_env", lambda: None)
    monkeypatch.setenv("HMS_API_URL", "https://hms.example.com")
    monkeypatch.setenv("HMS_TOKEN_STORE_PATH", str(tmp_path / "tokens.json"))
    monkeypatch.setenv("HMS_REFRESH_TIMEOUT", "3")
    monkeypatch.setenv("HMS_API_TIMEOUT", "4")

    session = client.create_session()

    assert isinstance(session, SessionManager)
    assert session.base_url == "https://hms.example.com"
    assert isinstance(session.store, FileCredentialStore)
    assert session._api_timeout == 4.0
    assert session.coordinator._timeout == 3.0


def _session(store, backend) -> SessionManager:
    async def login_fn(**kwargs):
        assert kwargs["email"] == "doc@hms.example.com"
        return make_pair(sub="doctor-7")

    return SessionManager(
        base_url="https://hms.example.com",
        store=store,
        transport=httpx.MockTransport(backend),
        login_fn=login_fn,
    )


@pytest.mark.asyncio
async def test_fetch_profile_logs_in_with_env_credentials(monkeypatch) -> None:
    monkeypatch.setenv("HMS_EMAIL", "doc@hms.example.com")
    monkeypatch.setenv("HMS_PASSWORD", "secret")
    store = MemoryCredentialStore()

    def backend(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/profile"
        assert request.headers["authorization"].startswith("Bearer ")
        return httpx.Response(200, json={"id": "doctor-7", "role": "doctor"})

    profile = await client.fetch_profile(_session(store, backend))

    assert profile == {"id": "doctor-7", "role": "doctor"}
    assert (await store.get()).user_id == "doctor-7"


@pytest.mark.asyncio
async def test_fetch_profile_requires_credentials_when_logged_out() -> None:
    session = _session(MemoryCredentialStore(), lambda request: httpx.Response(200))

    with pytest.raises(RuntimeError, match="Not logged in"):
        await client.fetch_profile(session)


def test_main_prints_profile(monkeypatch, capsys) -> None:
    monkeypatch.setattr(client, "load_env", lambda: None)
    monkeypatch.setattr(client, "setup_logging", lambda: False)
    monkeypatch.setattr(client, "create_session", lambda: "session")

    async def fake_fetch_profile(session, *, debug_enabled=False):
        assert session == "session"
        return {"id": "doctor-7"}

    monkeypatch.setattr(client, "fetch_profile", fake_fetch_profile)

    client.main()

    assert json.loads(capsys.readouterr().out) == {"id": "doctor-7"}
