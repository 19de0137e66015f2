"""Side-channel telemetry for the recommendation core.

The core reports breadcrumbs, messages and errors through a ``Telemetry``
sink. Nothing reported here is awaited or allowed to change a result:
every call goes through ``emit_safely``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Protocol


logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Telemetry(Protocol):
    def breadcrumb(self, message: str, category: str, data: Optional[Dict[str, Any]] = None) -> None:
        ...

    def message(
        self,
        text: str,
        level: str = "info",
        tags: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    def error(
        self,
        exc: BaseException,
        tags: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...


class LoggingTelemetry:
    """Default sink: writes everything to a standard logger."""

    def __init__(self, name: str = "connection_coach.telemetry") -> None:
        self._log = logging.getLogger(name)

    def breadcrumb(self, message: str, category: str, data: Optional[Dict[str, Any]] = None) -> None:
        self._log.debug("[%s] %s %s", category, message, data or {})

    def message(self, text, level="info", tags=None, extra=None) -> None:
        self._log.log(_LEVELS.get(level, logging.INFO), "%s tags=%s extra=%s", text, tags or {}, extra or {})

    def error(self, exc, tags=None, extra=None) -> None:
        self._log.error(
            "%s: %s tags=%s extra=%s",
            type(exc).__name__,
            exc,
            tags or {},
            extra or {},
            exc_info=(type(exc), exc, exc.__traceback__),
        )


class NullTelemetry:
    def breadcrumb(self, message, category, data=None) -> None:
        pass

    def message(self, text, level="info", tags=None, extra=None) -> None:
        pass

    def error(self, exc, tags=None, extra=None) -> None:
        pass


def emit_safely(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Call a telemetry method; a failing sink is logged and otherwise ignored."""
    try:
        fn(*args, **kwargs)
    except Exception as e:
        logger.debug("Telemetry sink failed: %s", e)
