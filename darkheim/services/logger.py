"""LoggerInterface backed by loguru.

Context dicts are bound onto the record's ``extra`` so the file sink
renders them next to the message.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from darkheim.contracts import LoggerInterface


class LoguruLogger(LoggerInterface):
    def __init__(self, channel: str = "app") -> None:
        self.channel = channel
        self._logger = logger.bind(channel=channel)

    def _log(self, level: str, message: str, context: dict[str, Any] | None) -> None:
        target = self._logger.bind(**context) if context else self._logger
        # depth=2 attributes the record to the caller, not this adapter
        target.opt(depth=2).log(level, message)

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log("DEBUG", message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log("INFO", message, context)

    def warning(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log("WARNING", message, context)

    def error(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log("ERROR", message, context)

    def critical(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log("CRITICAL", message, context)
