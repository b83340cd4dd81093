"""WebSocket session for ComfyOne job-progress events.

The session opens one connection, authenticates with an in-band ``auth``
frame, and dispatches every inbound JSON frame to the handler registered for
its ``type``. When the connection drops while the session is running, a new
connection is opened after a fixed delay.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Callable

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.protocol import State

from comfyone_sdk.config import DEFAULT_DOMAIN
from comfyone_sdk.dispatch import DispatchTable, MessageHandler
from comfyone_sdk.errors import ClientConnectionError, ProtocolError
from comfyone_sdk.log import LoggerLike, get_logger

DEFAULT_WS_URL = f"wss://{DEFAULT_DOMAIN}/v1/ws"

# Close code reported when the connection ends without a close frame.
ABNORMAL_CLOSURE = 1006

ErrorHandler = Callable[[BaseException], Any]
ConnectionHandler = Callable[[], Any]


class ComfyOneWebSocket:
    """Long-lived WebSocket session with auth handshake and auto-reconnect.

    Must be started from inside a running event loop. Handlers run on that
    loop in the order frames arrive; a handler that returns a coroutine has it
    scheduled as a task instead of awaited.

    Args:
        token: API key, sent as a Bearer header and in the ``auth`` frame.
        url: WebSocket endpoint (default: the ComfyOne ``/v1/ws`` endpoint).
        reconnect_delay: Seconds to wait before reconnecting (default: 5).
        logger: Logger with debug/info/warning/error methods.
    """

    def __init__(
        self,
        token: str,
        url: str = DEFAULT_WS_URL,
        reconnect_delay: float = 5.0,
        logger: LoggerLike | None = None,
    ) -> None:
        self._token = token
        self._url = url.rstrip("/")
        self._reconnect_delay = reconnect_delay
        self._logger = logger or get_logger()
        self._handlers = DispatchTable()
        self._error_handler: ErrorHandler | None = None
        self._connection_handler: ConnectionHandler | None = None

        self._ws: ClientConnection | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def url(self) -> str:
        return self._url

    @property
    def running(self) -> bool:
        return self._running

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # ---- Lifecycle ----

    def start(self) -> None:
        """Mark the session running and open the first connection.

        Does nothing while the session is already running.
        """
        if self._running:
            return
        self._running = True
        self._connect()

    def close(self) -> None:
        """Stop the session. Safe to call more than once.

        Any pending reconnect is cancelled; the socket itself is torn down
        asynchronously on the event loop.
        """
        if not self._running:
            return
        self._logger.info("Closing WebSocket connection...")
        self._running = False
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._ws = None

    async def wait_closed(self) -> None:
        """Wait until the connection task started by the last connect has ended."""
        task = self._task
        if task is None:
            return
        await asyncio.wait({task})
        if self._task is task:
            self._task = None

    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    def _connect(self) -> None:
        self._reconnect_handle = None
        if not self._running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        self._logger.debug("Connecting to WebSocket server: %s", self._url)
        ws: ClientConnection | None = None
        try:
            async with websockets.connect(
                self._url,
                additional_headers={"Authorization": f"Bearer {self._token}"},
            ) as ws:
                self._ws = ws
                await self._on_open(ws)
                async for message in ws:
                    self._on_message(message)
        except ConnectionClosed:
            # Reported through _on_close below.
            pass
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as exc:
            self._on_error(exc)

        if ws is not None and self._ws is ws:
            self._ws = None
        code = ABNORMAL_CLOSURE
        reason = ""
        if ws is not None and ws.close_code is not None:
            code = ws.close_code
            reason = ws.close_reason or ""
        self._on_close(code, reason)

    # ---- Transport events ----

    async def _on_open(self, ws: ClientConnection) -> None:
        self._logger.info("WebSocket connection established")
        await ws.send(json.dumps({"type": "auth", "token": self._token}))
        self._logger.debug("Authentication message sent")
        if self._connection_handler is not None:
            try:
                self._call(self._connection_handler)
            except Exception as exc:
                self._on_error(exc)

    def _on_message(self, message: str | bytes) -> None:
        """Parse one frame and hand it to its registered handler."""
        try:
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            if not isinstance(data, dict):
                raise ValueError("frame is not a JSON object")
        except ValueError as exc:
            error = ProtocolError(message, "Invalid JSON message received")
            self._logger.warning("%s (%s)", error, exc)
            return

        message_type = data.get("type")
        if not isinstance(message_type, str) or message_type not in self._handlers:
            self._logger.debug("Unhandled message type: %s", message_type)
            self._logger.debug("Message content: %s", json.dumps(data, indent=2))
            return

        try:
            _, result = self._handlers.dispatch(data)
        except Exception as exc:
            self._on_error(exc)
            return
        if inspect.isawaitable(result):
            self._spawn(result)

    def _on_error(self, error: BaseException) -> None:
        if self._error_handler is None:
            self._logger.error("WebSocket error: %s", error)
            return
        try:
            result = self._error_handler(error)
        except Exception as exc:
            self._log_handler_failure(exc)
            return
        if inspect.isawaitable(result):
            self._spawn(result, self._log_handler_failure)

    def _on_close(self, code: int, reason: str) -> None:
        self._logger.info("WebSocket connection closed [%d]: %s", code, reason)
        if not self._running:
            return
        self._logger.info("Attempting to reconnect in %ss...", self._reconnect_delay)
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._connect)

    # ---- Callbacks ----

    def _call(self, callback: Callable[..., Any], *args: Any) -> None:
        result = callback(*args)
        if inspect.isawaitable(result):
            self._spawn(result)

    def _spawn(
        self,
        awaitable: Any,
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        task = asyncio.ensure_future(awaitable)
        self._background.add(task)
        report = on_failure or self._on_error

        def done(fut: asyncio.Future[Any]) -> None:
            self._background.discard(fut)
            if not fut.cancelled() and fut.exception() is not None:
                report(fut.exception())

        task.add_done_callback(done)

    def _log_handler_failure(self, error: BaseException) -> None:
        self._logger.error("WebSocket error handler failed: %s", error)

    # ---- Outbound ----

    async def send_message(self, message: dict[str, Any]) -> None:
        """Send ``message`` as a JSON text frame."""
        if self._ws is None:
            raise ClientConnectionError("WebSocket connection not established")
        try:
            await self._ws.send(json.dumps(message))
        except (ConnectionClosed, TypeError, ValueError) as exc:
            raise ClientConnectionError(f"Failed to send message: {exc}") from exc
        self._logger.debug("Message sent: %s", message.get("type", "unknown"))

    # ---- Handler registry ----

    def add_message_handler(self, message_type: str, handler: MessageHandler) -> None:
        self._handlers.add(message_type, handler)
        self._logger.debug("Added message handler for type: %s", message_type)

    def remove_message_handler(self, message_type: str) -> None:
        self._handlers.remove(message_type)
        self._logger.debug("Removed message handler for type: %s", message_type)

    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        self._error_handler = handler

    def set_connection_handler(self, handler: ConnectionHandler | None) -> None:
        self._connection_handler = handler
