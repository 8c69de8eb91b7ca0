"""
Diagnostic sink adapter.

Callers may hand the factory any object exposing some of `debug`, `info`,
`warning` (or `warn`) and `error`. Each level is optional on its own; a
missing level is silently skipped, and a level that raises is reported
through this module's logger instead. A `logging.Logger` satisfies the
interface as-is.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class DiagnosticSink(Protocol):
    """Leveled log methods; implementations may provide any subset."""

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


_LEVEL_ALIASES = {
    "debug": ("debug",),
    "info": ("info",),
    "warning": ("warning", "warn"),
    "error": ("error",),
}


class SinkLogger:
    """
    Forwards leveled messages to a sink whose methods may be missing.

    Args:
        sink: Caller-supplied sink, or None to use `fallback`
        fallback: Logger used when no sink is supplied
    """

    def __init__(self, sink: Any = None, fallback: logging.Logger | None = None):
        self._sink = sink if sink is not None else fallback
        self._methods = {
            level: self._resolve(names) for level, names in _LEVEL_ALIASES.items()
        }

    def _resolve(self, names: tuple[str, ...]):
        if self._sink is None:
            return None
        for name in names:
            method = getattr(self._sink, name, None)
            if callable(method):
                return method
        return None

    def _emit(self, level: str, message: str) -> None:
        method = self._methods[level]
        if method is None:
            return
        try:
            method(message)
        except Exception as e:
            # A broken sink must never turn a diagnostic into a failure
            logger.warning(f"Diagnostic sink {level}() raised {e!r}; message: {message}")

    def debug(self, message: str) -> None:
        self._emit("debug", message)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)
