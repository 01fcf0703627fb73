"""Email/password authentication against the users table.

The authenticated user is held on the service instance; persisting it across
requests is the session manager's job.
"""

from __future__ import annotations

from typing import Any

from darkheim.contracts import (
    AuthenticationInterface,
    DatabaseInterface,
    FlashMessageInterface,
    LoggerInterface,
    PasswordManagerInterface,
    Result,
)


class AuthenticationService(AuthenticationInterface):
    def __init__(
        self,
        db: DatabaseInterface,
        flash: FlashMessageInterface,
        passwords: PasswordManagerInterface,
        logger: LoggerInterface,
    ) -> None:
        self._db = db
        self._flash = flash
        self._passwords = passwords
        self._logger = logger
        self._user: dict[str, Any] | None = None

    def authenticate(self, email: str, password: str) -> Result:
        user = self._db.fetch("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
        if user is None or not self._passwords.verify_password(password, user["password_hash"]):
            self._logger.warning("Failed login attempt", {"email": email})
            self._flash.add_error("Invalid email or password")
            return Result.fail("Invalid email or password")
        if not user["email_verified"]:
            self._flash.add_warning("Please verify your email address before logging in")
            return Result.fail("Email not verified")

        self._user = {k: v for k, v in user.items() if k != "password_hash"}
        self._logger.info("User logged in", {"user_id": user["id"]})
        return Result.ok("Logged in", user_id=user["id"])

    def is_authenticated(self) -> bool:
        return self._user is not None

    def get_current_user(self) -> dict[str, Any] | None:
        return self._user

    def logout(self) -> None:
        if self._user is not None:
            self._logger.info("User logged out", {"user_id": self._user["id"]})
        self._user = None

    def has_role(self, role: str) -> bool:
        return self._user is not None and self._user.get("role") == role
