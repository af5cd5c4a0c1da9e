from __future__ import annotations


class SessionError(RuntimeError):
    """Base class for everything the session layer raises on purpose."""


class AuthFailure(SessionError):
    def __init__(self, message: str = "Authentication failed.", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionExpired(SessionError):
    def __init__(self, message: str = "No refresh token available; login required.") -> None:
        super().__init__(message)


class RefreshFailed(SessionError):
    def __init__(self, message: str = "Session refresh failed; login required.") -> None:
        super().__init__(message)


class TransportError(SessionError):
    pass


class MalformedToken(SessionError):
    pass
