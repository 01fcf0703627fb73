"""Abstract contracts for the core services held by the container.

Callers (pages, controllers, scripts) depend only on these interfaces and ask
the container for them by class, so the concrete backend behind each contract
can be swapped in one place: ``ServiceProvider.register_core_services``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Result:
    """Outcome of a service operation that can fail for user-facing reasons."""

    success: bool
    message: str = ""
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> Result:
        return cls(True, message, data=data)

    @classmethod
    def fail(cls, *errors: str) -> Result:
        return cls(False, errors[0] if errors else "", errors=list(errors))


class LoggerInterface(ABC):
    """Structured logger: every call takes a message plus optional context."""

    @abstractmethod
    def debug(self, message: str, context: dict[str, Any] | None = None) -> None: ...

    @abstractmethod
    def info(self, message: str, context: dict[str, Any] | None = None) -> None: ...

    @abstractmethod
    def warning(self, message: str, context: dict[str, Any] | None = None) -> None: ...

    @abstractmethod
    def error(self, message: str, context: dict[str, Any] | None = None) -> None: ...

    @abstractmethod
    def critical(self, message: str, context: dict[str, Any] | None = None) -> None: ...


class DatabaseInterface(ABC):
    """Thin relational database handle with DB-API style parameters."""

    @abstractmethod
    def execute(self, sql: str, params: tuple | dict = ()) -> int:
        """Run a statement and return the affected row count."""

    @abstractmethod
    def fetch(self, sql: str, params: tuple | dict = ()) -> dict[str, Any] | None:
        """Return the first row as a dict, or None."""

    @abstractmethod
    def fetch_all(self, sql: str, params: tuple | dict = ()) -> list[dict[str, Any]]: ...

    @abstractmethod
    def last_insert_id(self) -> int: ...

    @abstractmethod
    def begin(self) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager[DatabaseInterface]:
        """Context manager that commits on success and rolls back on error."""


class CacheInterface(ABC):
    """Key/value cache with per-entry TTL in seconds."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> bool: ...

    @abstractmethod
    def has(self, key: str) -> bool: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def clear(self) -> bool: ...

    @abstractmethod
    def remember(self, key: str, callback: Callable[[], Any], ttl: int | None = None) -> Any:
        """Return the cached value, computing and storing it on a miss."""

    @abstractmethod
    def increment(self, key: str, value: int = 1) -> int: ...

    @abstractmethod
    def decrement(self, key: str, value: int = 1) -> int: ...

    @abstractmethod
    def get_many(self, keys: list[str]) -> dict[str, Any]: ...

    @abstractmethod
    def set_many(self, values: dict[str, Any], ttl: int | None = None) -> bool: ...

    @abstractmethod
    def delete_many(self, keys: list[str]) -> bool: ...


class FlashMessageInterface(ABC):
    """One-shot user notifications grouped by type."""

    @abstractmethod
    def add(self, kind: str, message: str, *, is_html: bool = False) -> None: ...

    def add_success(self, message: str, *, is_html: bool = False) -> None:
        self.add("success", message, is_html=is_html)

    def add_error(self, message: str, *, is_html: bool = False) -> None:
        self.add("error", message, is_html=is_html)

    def add_warning(self, message: str, *, is_html: bool = False) -> None:
        self.add("warning", message, is_html=is_html)

    def add_info(self, message: str, *, is_html: bool = False) -> None:
        self.add("info", message, is_html=is_html)

    @abstractmethod
    def get_messages(self, kind: str = "") -> list[dict[str, Any]]:
        """Return and consume pending messages, optionally of one type."""

    @abstractmethod
    def has_messages(self, kind: str = "") -> bool: ...

    @abstractmethod
    def clear_messages(self, kind: str = "") -> None: ...


class TokenManagerInterface(ABC):
    """Random tokens with an owner, a purpose and an optional expiry."""

    @abstractmethod
    def generate_token(self, length: int = 32) -> str: ...

    @abstractmethod
    def store_token(self, token: str, user_id: int, kind: str = "default", expires_at: float | None = None) -> bool: ...

    @abstractmethod
    def create_verification_token(self, user_id: int, kind: str, expires_in_minutes: int = 60) -> str: ...

    @abstractmethod
    def verify_token(self, token: str, kind: str) -> dict[str, Any] | None:
        """Return token data if the token exists, matches ``kind`` and has not expired."""

    @abstractmethod
    def invalidate_token(self, token: str) -> bool: ...

    @abstractmethod
    def revoke_user_tokens(self, user_id: int, kind: str) -> int: ...

    @abstractmethod
    def clean_expired_tokens(self) -> int: ...


class PasswordManagerInterface(ABC):
    @abstractmethod
    def validate_password(self, password: str) -> Result: ...

    @abstractmethod
    def hash_password(self, password: str) -> str: ...

    @abstractmethod
    def verify_password(self, password: str, hashed: str) -> bool: ...

    @abstractmethod
    def generate_secure_password(self, length: int = 12) -> str: ...

    @abstractmethod
    def get_password_strength(self, password: str) -> int:
        """Score from 0 (worst) to 5 (best)."""


class MailerInterface(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str, *, html: bool = False) -> bool: ...

    @abstractmethod
    def send_template(self, to: str, subject: str, template: str, data: dict[str, Any] | None = None) -> bool: ...

    @abstractmethod
    def render_template(self, template: str, data: dict[str, Any] | None = None) -> str: ...


class AuthenticationInterface(ABC):
    @abstractmethod
    def authenticate(self, email: str, password: str) -> Result: ...

    @abstractmethod
    def is_authenticated(self) -> bool: ...

    @abstractmethod
    def get_current_user(self) -> dict[str, Any] | None: ...

    @abstractmethod
    def logout(self) -> None: ...

    @abstractmethod
    def has_role(self, role: str) -> bool: ...

    def is_admin(self) -> bool:
        return self.has_role("admin")


class UserRegistrationInterface(ABC):
    @abstractmethod
    def register(self, user_data: dict[str, Any]) -> Result: ...

    @abstractmethod
    def verify_email(self, token: str) -> Result: ...

    @abstractmethod
    def email_exists(self, email: str) -> bool: ...

    @abstractmethod
    def username_exists(self, username: str) -> bool: ...


class SessionManagerInterface(ABC):
    """Per-request session state. Cookie transport is the caller's concern."""

    @abstractmethod
    def start(self, session_id: str | None = None) -> bool: ...

    @abstractmethod
    def destroy(self) -> bool: ...

    @abstractmethod
    def regenerate_id(self, delete_old: bool = False) -> bool: ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def has(self, key: str) -> bool: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...

    @abstractmethod
    def all(self) -> dict[str, Any]: ...

    @abstractmethod
    def is_active(self) -> bool: ...
