"""Runtime configuration lookups by dotted key.

Values come from two layers: the static ``DarkheimConfig`` loaded at startup
and the ``site_settings`` table, which overrides it. ``"mail.from_name"``
resolves to the ``from_name`` row of the ``mail`` category if present,
otherwise to ``config.mail.from_name``. The database layer is cached.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from darkheim.config.schema import DarkheimConfig
from darkheim.contracts import CacheInterface, DatabaseInterface, LoggerInterface

_CACHE_KEY = "configuration:site_settings"
_MISSING = object()


class ConfigurationManager:
    def __init__(
        self,
        db: DatabaseInterface,
        cache: CacheInterface,
        logger: LoggerInterface,
        config: DarkheimConfig | None = None,
    ) -> None:
        self._db = db
        self._cache = cache
        self._logger = logger
        self.config = config or DarkheimConfig()

    def _overrides(self) -> dict[str, str]:
        return self._cache.remember(
            _CACHE_KEY,
            lambda: {
                f"{row['category']}.{row['key']}": row["value"]
                for row in self._db.fetch_all("SELECT category, key, value FROM site_settings")
            },
            self.config.cache.settings_ttl,
        )

    def _from_config(self, key: str) -> Any:
        node: Any = self.config
        for part in key.split("."):
            if isinstance(node, BaseModel) and part in type(node).model_fields:
                node = getattr(node, part)
            elif isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return _MISSING
        return node

    def get(self, key: str, default: Any = None) -> Any:
        overrides = self._overrides()
        if key in overrides:
            return overrides[key]
        value = self._from_config(key)
        return default if value is _MISSING else value

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            self._logger.warning("Configuration value is not an integer", {"key": key, "value": value})
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def refresh(self) -> None:
        """Drop cached database overrides so the next lookup re-reads them."""
        self._cache.delete(_CACHE_KEY)
