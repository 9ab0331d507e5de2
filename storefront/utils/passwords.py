"""Password hashing, temporary credentials and strength rules."""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import List, Optional

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 100_000

MIN_PASSWORD_LENGTH = 8
TEMPORARY_PASSWORD_LENGTH = 12
TEMPORARY_PASSWORD_SYMBOLS = "!@#$%^&*"


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    if salt is None:
        salt = secrets.token_hex(16)
    pwd_hash = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    ).hex()
    return f"{PBKDF2_ALGORITHM}${PBKDF2_ITERATIONS}${salt}${pwd_hash}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    """Check a plaintext password against a stored hash."""
    if not stored:
        return False
    try:
        algorithm, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    if algorithm != PBKDF2_ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    ).hex()
    return hmac.compare_digest(candidate, expected)


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    """Generate a one-time password with upper, lower, digit and symbol characters."""
    if length < 4:
        raise ValueError("Temporary passwords need at least 4 characters")

    alphabet = string.ascii_letters + string.digits + TEMPORARY_PASSWORD_SYMBOLS
    chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(TEMPORARY_PASSWORD_SYMBOLS),
    ]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))

    # Shuffle so the guaranteed characters are not always first
    shuffled = []
    while chars:
        shuffled.append(chars.pop(secrets.randbelow(len(chars))))
    return "".join(shuffled)


@dataclass
class PasswordCheck:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.is_valid:
            return "Password meets strength requirements"
        return "Password must include: " + ", ".join(self.errors)


def validate_password_strength(password: str) -> PasswordCheck:
    """Apply the reset/change password rules: length, upper, lower and digit."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"At least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        errors.append("One uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("One lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("One number")
    return PasswordCheck(is_valid=not errors, errors=errors)
