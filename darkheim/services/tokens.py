"""Database-backed tokens for e-mail verification, password resets and CSRF."""

from __future__ import annotations

import secrets
import time
from typing import Any

from darkheim.contracts import DatabaseInterface, LoggerInterface, TokenManagerInterface


class TokenManager(TokenManagerInterface):
    def __init__(self, db: DatabaseInterface, logger: LoggerInterface) -> None:
        self._db = db
        self._logger = logger

    def generate_token(self, length: int = 32) -> str:
        """Return ``length`` random bytes as a hex string (2 * length chars)."""
        return secrets.token_hex(length)

    def store_token(self, token: str, user_id: int, kind: str = "default", expires_at: float | None = None) -> bool:
        self._db.execute(
            "INSERT OR REPLACE INTO tokens (token, user_id, kind, expires_at, created_at) VALUES (?, ?, ?, ?, ?)",
            (token, user_id, kind, expires_at, time.time()),
        )
        return True

    def create_verification_token(self, user_id: int, kind: str, expires_in_minutes: int = 60) -> str:
        self.revoke_user_tokens(user_id, kind)
        token = self.generate_token()
        self.store_token(token, user_id, kind, time.time() + expires_in_minutes * 60)
        self._logger.debug("Verification token issued", {"user_id": user_id, "kind": kind})
        return token

    def verify_token(self, token: str, kind: str) -> dict[str, Any] | None:
        row = self._db.fetch("SELECT * FROM tokens WHERE token = ? AND kind = ?", (token, kind))
        if row is None:
            return None
        if row["expires_at"] is not None and row["expires_at"] <= time.time():
            self.invalidate_token(token)
            return None
        return row

    def invalidate_token(self, token: str) -> bool:
        return self._db.execute("DELETE FROM tokens WHERE token = ?", (token,)) > 0

    def revoke_user_tokens(self, user_id: int, kind: str) -> int:
        return self._db.execute("DELETE FROM tokens WHERE user_id = ? AND kind = ?", (user_id, kind))

    def clean_expired_tokens(self) -> int:
        removed = self._db.execute(
            "DELETE FROM tokens WHERE expires_at IS NOT NULL AND expires_at <= ?", (time.time(),)
        )
        if removed:
            self._logger.info("Expired tokens removed", {"count": removed})
        return removed
