import logging

import pytest

from hmsclient import env
from hmsclient.constants import LOGGER


def test_api_url_default() -> None:
    assert env.get_api_url() == "http://localhost:3001"


def test_api_url_strips_trailing_slash(monkeypatch) -> None:
    monkeypatch.setenv("HMS_API_URL", "https://hms.example.com/")

    assert env.get_api_url() == "https://hms.example.com"


def test_api_url_rejects_invalid(monkeypatch) -> None:
    monkeypatch.setenv("HMS_API_URL", "ftp://hms.example.com")

    with pytest.raises(RuntimeError, match="HMS_API_URL"):
        env.get_api_url()


def test_env_float_parsing(monkeypatch) -> None:
    monkeypatch.setenv("HMS_REFRESH_TIMEOUT", "2.5")

    assert env._get_env_float("HMS_REFRESH_TIMEOUT", 10.0) == 2.5
    assert env._get_env_float("HMS_API_TIMEOUT", 30.0) == 30.0


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_env_float_rejects_bad_values(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("HMS_REFRESH_TIMEOUT", raw)

    with pytest.raises(RuntimeError, match="HMS_REFRESH_TIMEOUT"):
        env._get_env_float("HMS_REFRESH_TIMEOUT", 10.0)


def test_validate_env_requires_email_and_password_together(monkeypatch) -> None:
    monkeypatch.setenv("HMS_EMAIL", "doc@hms.example.com")

    with pytest.raises(RuntimeError, match="HMS_EMAIL and HMS_PASSWORD"):
        env.validate_env()

    monkeypatch.setenv("HMS_PASSWORD", "secret")
    env.validate_env()


def test_is_truthy() -> None:
    assert env.is_truthy(" Yes ") is True
    assert env.is_truthy("0") is False
    assert env.is_truthy(None) is False


def test_setup_logging_respects_debug_flag(monkeypatch) -> None:
    monkeypatch.setenv("HMS_API_DEBUG", "0")
    assert env.setup_logging() is False
    assert LOGGER.level == logging.WARNING

    monkeypatch.setenv("HMS_API_DEBUG", "1")
    assert env.setup_logging() is True
    assert LOGGER.level == logging.INFO


def test_load_env_reads_dotenv_file(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("HMS_API_URL=https://from-dotenv.example.com\n", encoding="utf-8")
    monkeypatch.setattr(env, "ENV_FILE", env_file)
    # Registers HMS_API_URL with monkeypatch so the value load_env writes is undone.
    monkeypatch.setenv("HMS_API_URL", "http://placeholder.example.com")

    env.load_env()

    assert env.get_api_url() == "https://from-dotenv.example.com"


def test_load_env_without_file(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(env, "ENV_FILE", tmp_path / "missing.env")

    env.load_env()

    assert env.get_api_url() == "http://localhost:3001"
