"""Configuration for the ComfyOne SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from comfyone_sdk.log import LoggerLike

DEFAULT_DOMAIN = "pandora-server-cf.onethingai.com"


@dataclass
class ComfyOneConfig:
    """Settings consumed by the HTTP client and the WebSocket session.

    Args:
        api_key: Bearer token for the ComfyOne service (required).
        domain: Service host name, without scheme.
        max_retries: Attempts per HTTP request before giving up.
        timeout_ms: Per-attempt HTTP timeout in milliseconds.
        reconnect_delay: Seconds to wait before re-opening a dropped WebSocket.
        debug: Log at DEBUG level when using the default logger.
        logger: Custom logger; defaults to ``comfyone_sdk.log.get_logger``.
    """

    api_key: str
    domain: str = DEFAULT_DOMAIN
    max_retries: int = 3
    timeout_ms: int = 5000
    reconnect_delay: float = 5.0
    debug: bool = False
    logger: LoggerLike | None = None

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key is required")
        self.domain = self.domain.strip("/")

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def ws_url(self) -> str:
        return f"wss://{self.domain}/v1/ws"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ComfyOneConfig:
        """Build a config from ``COMFYONE_*`` environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("COMFYONE_API_KEY", ""),
            domain=env.get("COMFYONE_DOMAIN", DEFAULT_DOMAIN),
            max_retries=int(env.get("COMFYONE_MAX_RETRIES", "3")),
            timeout_ms=int(env.get("COMFYONE_TIMEOUT_MS", "5000")),
            reconnect_delay=float(env.get("COMFYONE_RECONNECT_DELAY", "5")),
            debug=env.get("COMFYONE_DEBUG", "").lower() in ("1", "true", "yes"),
        )
