"""Server-side session state.

Sessions live in an in-memory store keyed by session id. The HTTP layer
reads and writes the cookie; this manager only tracks data, expiry, id
rotation, flash values and the CSRF token.
"""

from __future__ import annotations

import hmac
import time
from typing import Any

from darkheim.contracts import LoggerInterface, SessionManagerInterface, TokenManagerInterface
from darkheim.services.configuration import ConfigurationManager

_META_CREATED = "_created_at"
_META_ROTATED = "_rotated_at"
_META_SEEN = "_last_seen"
_FLASH_KEY = "_flash"
_CSRF_KEY = "_csrf_token"


class SessionManager(SessionManagerInterface):
    def __init__(
        self,
        logger: LoggerInterface,
        options: dict[str, Any] | None,
        configuration: ConfigurationManager,
        tokens: TokenManagerInterface,
    ) -> None:
        self._logger = logger
        self._tokens = tokens
        options = options or {}
        self.name: str = options.get("name") or configuration.get("session.name", "DARKHEIM_SESSION")
        self.lifetime: int = int(options.get("lifetime") or configuration.get_int("session.lifetime", 7200))
        self.regenerate_interval: int = int(
            options.get("regenerate_interval", configuration.get_int("session.regenerate_interval", 1800))
        )
        self._store: dict[str, dict[str, Any]] = {}
        self.session_id: str | None = None

    @property
    def _data(self) -> dict[str, Any]:
        if self.session_id is None:
            raise RuntimeError("Session is not started")
        return self._store[self.session_id]

    def start(self, session_id: str | None = None) -> bool:
        if self.session_id is not None:
            return True

        now = time.time()
        if session_id and session_id in self._store and self._expired(self._store[session_id], now):
            self._logger.info("Session expired", {"age": int(now - self._store[session_id][_META_SEEN])})
        self._prune(now)
        data = self._store.get(session_id) if session_id else None

        if data is None:
            session_id = self._tokens.generate_token(16)
            data = {_META_CREATED: now, _META_ROTATED: now}
            self._store[session_id] = data

        data[_META_SEEN] = now
        self.session_id = session_id
        if self.regenerate_interval and now - data[_META_ROTATED] > self.regenerate_interval:
            self.regenerate_id(delete_old=True)
        return True

    def _expired(self, data: dict[str, Any], now: float) -> bool:
        return now - data[_META_SEEN] > self.lifetime

    def _prune(self, now: float) -> None:
        expired = [sid for sid, data in self._store.items() if self._expired(data, now)]
        for sid in expired:
            del self._store[sid]
        if expired:
            self._logger.debug("Pruned expired sessions", {"count": len(expired)})

    def destroy(self) -> bool:
        if self.session_id is None:
            return False
        self._store.pop(self.session_id, None)
        self.session_id = None
        return True

    def regenerate_id(self, delete_old: bool = False) -> bool:
        if self.session_id is None:
            return False
        if delete_old:
            data = self._store.pop(self.session_id)
        else:
            data = dict(self._store[self.session_id])
        data[_META_ROTATED] = time.time()
        new_id = self._tokens.generate_token(16)
        self._store[new_id] = data
        self.session_id = new_id
        return True

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def all(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if not k.startswith("_")}

    def is_active(self) -> bool:
        return self.session_id is not None

    def flash(self, key: str, value: Any) -> None:
        """Store a value readable exactly once through ``pull_flash``."""
        self._data.setdefault(_FLASH_KEY, {})[key] = value

    def pull_flash(self, key: str, default: Any = None) -> Any:
        return self._data.get(_FLASH_KEY, {}).pop(key, default)

    def csrf_token(self) -> str:
        token = self._data.get(_CSRF_KEY)
        if token is None:
            token = self._tokens.generate_token()
            self._data[_CSRF_KEY] = token
        return token

    def validate_csrf(self, token: str) -> bool:
        expected = self._data.get(_CSRF_KEY)
        return expected is not None and hmac.compare_digest(expected, token)
