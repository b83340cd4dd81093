"""Registry mapping WebSocket message types to handlers."""

from __future__ import annotations

from typing import Any, Callable, Iterator

MessageHandler = Callable[[dict[str, Any]], Any]


class DispatchTable:
    """One handler per message type; registering a type again replaces it.

    All access happens on the session's event loop, so no locking is done.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, MessageHandler] = {}

    def add(self, message_type: str, handler: MessageHandler) -> None:
        self._handlers[message_type] = handler

    def remove(self, message_type: str) -> None:
        self._handlers.pop(message_type, None)

    def get(self, message_type: str) -> MessageHandler | None:
        return self._handlers.get(message_type)

    def dispatch(self, message: dict[str, Any]) -> tuple[bool, Any]:
        """Call the handler registered for ``message["type"]``.

        Returns ``(handled, result)``; ``result`` is whatever the handler
        returned, so callers can schedule coroutines from async handlers.
        """
        message_type = message.get("type")
        handler = self._handlers.get(message_type) if isinstance(message_type, str) else None
        if handler is None:
            return False, None
        return True, handler(message)

    def __contains__(self, message_type: object) -> bool:
        return message_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handlers))
