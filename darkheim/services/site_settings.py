"""Site settings stored in the database, grouped by category.

``get_all()`` returns ``{category: {key: {"value": value}}}``, the shape the
bootstrap publishes as the ``"site_settings"`` container value and the mailer
factory reads its ``email`` group from.
"""

from __future__ import annotations

from typing import Any

from darkheim.contracts import DatabaseInterface


class SiteSettingsService:
    def __init__(self, db: DatabaseInterface) -> None:
        self._db = db

    def get_all(self) -> dict[str, dict[str, dict[str, Any]]]:
        settings: dict[str, dict[str, dict[str, Any]]] = {}
        for row in self._db.fetch_all("SELECT category, key, value FROM site_settings ORDER BY category, key"):
            settings.setdefault(row["category"], {})[row["key"]] = {"value": row["value"]}
        return settings

    def get_category(self, category: str) -> dict[str, Any]:
        rows = self._db.fetch_all("SELECT key, value FROM site_settings WHERE category = ?", (category,))
        return {row["key"]: row["value"] for row in rows}

    def get(self, category: str, key: str, default: Any = None) -> Any:
        row = self._db.fetch(
            "SELECT value FROM site_settings WHERE category = ? AND key = ?", (category, key)
        )
        return row["value"] if row is not None else default

    def set(self, category: str, key: str, value: Any) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO site_settings (category, key, value) VALUES (?, ?, ?)",
            (category, key, None if value is None else str(value)),
        )

    def is_registration_open(self) -> bool:
        return self.get("general", "registration_enabled", "1") not in ("0", "false", "")
