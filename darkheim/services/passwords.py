"""Password hashing and policy checks.

Hashes use scrypt with a per-password salt, stored as
``scrypt$<n>$<r>$<p>$<salt hex>$<hash hex>``.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string

from darkheim.contracts import PasswordManagerInterface, Result

_N, _R, _P = 2**14, 8, 1
_MIN_LENGTH = 8
_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*-_=+"


class PasswordManager(PasswordManagerInterface):
    def __init__(self, min_length: int = _MIN_LENGTH) -> None:
        self.min_length = min_length

    def validate_password(self, password: str) -> Result:
        errors: list[str] = []
        if len(password) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters long")
        if not any(c.isupper() for c in password):
            errors.append("Password must contain an uppercase letter")
        if not any(c.islower() for c in password):
            errors.append("Password must contain a lowercase letter")
        if not any(c.isdigit() for c in password):
            errors.append("Password must contain a digit")
        return Result.fail(*errors) if errors else Result.ok()

    def hash_password(self, password: str) -> str:
        salt = secrets.token_bytes(16)
        digest = hashlib.scrypt(password.encode("utf-8"), salt=salt, n=_N, r=_R, p=_P)
        return f"scrypt${_N}${_R}${_P}${salt.hex()}${digest.hex()}"

    def verify_password(self, password: str, hashed: str) -> bool:
        try:
            scheme, n, r, p, salt_hex, digest_hex = hashed.split("$")
        except ValueError:
            return False
        if scheme != "scrypt":
            return False
        digest = hashlib.scrypt(
            password.encode("utf-8"), salt=bytes.fromhex(salt_hex), n=int(n), r=int(r), p=int(p)
        )
        return hmac.compare_digest(digest.hex(), digest_hex)

    def generate_secure_password(self, length: int = 12) -> str:
        length = max(length, 4)
        while True:
            candidate = "".join(secrets.choice(_ALPHABET) for _ in range(length))
            if self.validate_password(candidate).success or length < self.min_length:
                return candidate

    def get_password_strength(self, password: str) -> int:
        score = 0
        if len(password) >= self.min_length:
            score += 1
        if len(password) >= 12:
            score += 1
        if any(c.isupper() for c in password) and any(c.islower() for c in password):
            score += 1
        if any(c.isdigit() for c in password):
            score += 1
        if any(c in string.punctuation for c in password):
            score += 1
        return score
