"""Flash messages held in memory until the next read."""

from __future__ import annotations

import html
from typing import Any

from darkheim.contracts import FlashMessageInterface


class FlashMessageService(FlashMessageInterface):
    def __init__(self) -> None:
        self._messages: dict[str, list[dict[str, Any]]] = {}

    def add(self, kind: str, message: str, *, is_html: bool = False) -> None:
        text = message if is_html else html.escape(message)
        self._messages.setdefault(kind, []).append({"type": kind, "text": text})

    def get_messages(self, kind: str = "") -> list[dict[str, Any]]:
        if kind:
            return self._messages.pop(kind, [])
        messages = [m for bucket in self._messages.values() for m in bucket]
        self._messages.clear()
        return messages

    def has_messages(self, kind: str = "") -> bool:
        if kind:
            return bool(self._messages.get(kind))
        return any(self._messages.values())

    def clear_messages(self, kind: str = "") -> None:
        if kind:
            self._messages.pop(kind, None)
        else:
            self._messages.clear()
