"""New-account registration and e-mail verification.

``site_settings`` is optional. When it is ``None`` (the service could not be
built at wiring time) registration stays open and the verification mail uses
the built-in template.
"""

from __future__ import annotations

import re
import sqlite3
import time
from typing import Any

from darkheim.contracts import (
    DatabaseInterface,
    FlashMessageInterface,
    LoggerInterface,
    MailerInterface,
    PasswordManagerInterface,
    Result,
    TokenManagerInterface,
    UserRegistrationInterface,
)
from darkheim.services.site_settings import SiteSettingsService

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,32}$")
_VERIFY_KIND = "email_verification"
_DEFAULT_TEMPLATE = "Hello $username,\n\nConfirm your account with this code: $token\n"


class UserRegistrationService(UserRegistrationInterface):
    def __init__(
        self,
        db: DatabaseInterface,
        flash: FlashMessageInterface,
        mailer: MailerInterface,
        tokens: TokenManagerInterface,
        passwords: PasswordManagerInterface,
        logger: LoggerInterface,
        site_settings: SiteSettingsService | None = None,
    ) -> None:
        self._db = db
        self._flash = flash
        self._mailer = mailer
        self._tokens = tokens
        self._passwords = passwords
        self._logger = logger
        self.site_settings = site_settings

    def validate(self, data: dict[str, Any]) -> Result:
        errors: list[str] = []
        username = str(data.get("username", "")).strip()
        email = str(data.get("email", "")).strip().lower()
        password = str(data.get("password", ""))

        if not _USERNAME_RE.match(username):
            errors.append("Username must be 3-32 letters, digits or underscores")
        elif self.username_exists(username):
            errors.append("Username is already taken")
        if not _EMAIL_RE.match(email):
            errors.append("Invalid email address")
        elif self.email_exists(email):
            errors.append("Email is already registered")
        if password != data.get("password_confirm", password):
            errors.append("Passwords do not match")
        errors.extend(self._passwords.validate_password(password).errors)
        return Result.fail(*errors) if errors else Result.ok()

    def register(self, user_data: dict[str, Any]) -> Result:
        if self.site_settings is not None and not self.site_settings.is_registration_open():
            return Result.fail("Registration is currently closed")

        validation = self.validate(user_data)
        if not validation.success:
            for error in validation.errors:
                self._flash.add_error(error)
            return validation

        username = str(user_data["username"]).strip()
        email = str(user_data["email"]).strip().lower()
        try:
            self._db.execute(
                "INSERT INTO users (username, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (username, email, self._passwords.hash_password(user_data["password"]), time.time()),
            )
        except sqlite3.IntegrityError:
            return Result.fail("Username or email is already registered")
        user_id = self._db.last_insert_id()

        token = self._tokens.create_verification_token(user_id, _VERIFY_KIND, 24 * 60)
        template = _DEFAULT_TEMPLATE
        if self.site_settings is not None:
            template = self.site_settings.get("email", "verification_template", _DEFAULT_TEMPLATE)
        self._mailer.send_template(email, "Confirm your account", template, {"username": username, "token": token})

        self._logger.info("User registered", {"user_id": user_id})
        self._flash.add_success("Registration successful. Check your email to confirm your account.")
        return Result.ok("Registered", user_id=user_id)

    def verify_email(self, token: str) -> Result:
        data = self._tokens.verify_token(token, _VERIFY_KIND)
        if data is None:
            return Result.fail("Invalid or expired verification token")
        self._db.execute("UPDATE users SET email_verified = 1 WHERE id = ?", (data["user_id"],))
        self._tokens.invalidate_token(token)
        self._logger.info("Email verified", {"user_id": data["user_id"]})
        return Result.ok("Email verified", user_id=data["user_id"])

    def email_exists(self, email: str) -> bool:
        return self._db.fetch("SELECT 1 FROM users WHERE email = ?", (email.strip().lower(),)) is not None

    def username_exists(self, username: str) -> bool:
        return self._db.fetch("SELECT 1 FROM users WHERE username = ?", (username.strip(),)) is not None
