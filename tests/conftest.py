import os

import pytest


@pytest.fixture(autouse=True)
def clean_hms_env(monkeypatch) -> None:
    for key in list(os.environ):
        if key.startswith("HMS_"):
            monkeypatch.delenv(key, raising=False)
