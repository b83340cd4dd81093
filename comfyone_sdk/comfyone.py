"""Top-level entry point tying the REST client and the WebSocket session together."""

from __future__ import annotations

from typing import Any

import httpx

from comfyone_sdk.client import ComfyOneClient
from comfyone_sdk.config import ComfyOneConfig
from comfyone_sdk.log import get_logger
from comfyone_sdk.websocket import ComfyOneWebSocket


class ComfyOne:
    """Owns one ``ComfyOneClient`` and at most one ``ComfyOneWebSocket``.

    Args:
        config: Connection settings; see ``ComfyOneConfig``.
        transport: Optional httpx transport passed to the REST client.
    """

    def __init__(
        self,
        config: ComfyOneConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.logger = config.logger or get_logger(debug=config.debug)
        self.api = ComfyOneClient(
            config.api_key,
            base_url=config.base_url,
            max_retries=config.max_retries,
            timeout_ms=config.timeout_ms,
            logger=self.logger,
            transport=transport,
        )
        self._ws: ComfyOneWebSocket | None = None

    @property
    def websocket(self) -> ComfyOneWebSocket | None:
        return self._ws

    def connect_websocket(self) -> ComfyOneWebSocket:
        """Start the event session on first call; later calls return the same one."""
        if self._ws is None:
            self._ws = ComfyOneWebSocket(
                token=self.api.api_key,
                url=self.config.ws_url,
                reconnect_delay=self.config.reconnect_delay,
                logger=self.logger,
            )
            self._ws.start()
        return self._ws

    def close(self) -> None:
        """Stop the WebSocket session, if any."""
        if self._ws is not None:
            self._ws.close()
            self._ws = None

    async def aclose(self) -> None:
        """Stop the WebSocket session and release the HTTP client."""
        ws = self._ws
        self.close()
        if ws is not None:
            await ws.wait_closed()
        await self.api.aclose()

    async def __aenter__(self) -> ComfyOne:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
