"""Logger capability used by the SDK and its default stdout implementation."""

from __future__ import annotations

import logging
import sys
from typing import Any, Protocol

LOGGER_NAME = "comfyone_sdk"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LoggerLike(Protocol):
    """Anything with leveled logging methods; ``logging.Logger`` qualifies."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


def get_logger(debug: bool | None = None, name: str = LOGGER_NAME) -> logging.Logger:
    """Return the SDK logger, attaching a stdout handler on first use.

    The level is set to INFO when the handler is attached, and to DEBUG or
    INFO whenever ``debug`` is passed explicitly.
    """
    logger = logging.getLogger(name)
    if not any(getattr(h, "_comfyone_default", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._comfyone_default = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    if debug is not None:
        logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger
