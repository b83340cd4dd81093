"""Exception types shared by the HTTP client and the WebSocket session."""

from __future__ import annotations


class ComfyOneError(Exception):
    """Base class for every error raised by the SDK."""


class APIError(ComfyOneError):
    """Raised when the ComfyOne API rejects a request."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"ComfyOne API error {code}: {message}")


class AuthenticationError(APIError):
    """Raised when the API key is rejected (HTTP 401). Never retried."""


class ClientConnectionError(ComfyOneError):
    """Raised on transport-level failures (DNS, timeout, reset, closed socket)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RetryExhaustedError(ClientConnectionError):
    """Raised when a request keeps failing until the retry limit is reached."""

    def __init__(self, message: str, attempts: int, last_error: BaseException | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)


class ProtocolError(ComfyOneError):
    """Raised (or logged) when the server sends content that is not valid JSON."""

    def __init__(self, raw: str | bytes, reason: str = "malformed message") -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"{reason}: {raw!r}")
