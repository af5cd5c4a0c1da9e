from __future__ import annotations

import logging
from pathlib import Path

LOGGER = logging.getLogger("hmsclient.session")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_API_TIMEOUT = 30.0
DEFAULT_REFRESH_TIMEOUT = 10.0
DEFAULT_TOKEN_STORE_PATH = ".tokens.json"
DEFAULT_TOKEN_PROFILE = "default"

LOGIN_PATH = "/auth/login"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
PROFILE_PATH = "/auth/profile"

# Request extension marking a request that was already replayed after a 401.
RETRIED_EXTENSION = "session_retried"

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
