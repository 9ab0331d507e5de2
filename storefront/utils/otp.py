"""
One-time code helpers.

Codes are six digits, valid for a limited time and for a limited number of
attempts. Only a hash of the code is stored on the user record.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

OTP_LENGTH = 6
DEFAULT_EXPIRE_MINUTES = 10
DEFAULT_MAX_ATTEMPTS = 5

_OTP_PATTERN = re.compile(r"^\d{6}$")


def generate_otp_code() -> str:
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def hash_otp_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def otp_matches(code: str, code_hash: Optional[str]) -> bool:
    if not code_hash:
        return False
    return hmac.compare_digest(hash_otp_code(code), code_hash)


def get_otp_expiration(
    minutes: int = DEFAULT_EXPIRE_MINUTES, now: Optional[datetime] = None
) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=minutes)


def is_otp_expired(expires: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires is None:
        return True
    now = now or datetime.now(timezone.utc)
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return now > expires


def is_otp_attempts_exceeded(attempts: int, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> bool:
    return attempts >= max_attempts


def is_valid_otp_format(code: Optional[str]) -> bool:
    return bool(code) and bool(_OTP_PATTERN.match(code))


def get_remaining_attempts(attempts: int, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> int:
    return max(max_attempts - attempts, 0)


def get_minutes_until_expiry(
    expires: Optional[datetime], now: Optional[datetime] = None
) -> int:
    if expires is None:
        return 0
    now = now or datetime.now(timezone.utc)
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    minutes = int((expires - now).total_seconds() // 60)
    return max(minutes, 0)


def format_otp_code(code: Optional[str]) -> Optional[str]:
    """Format a code for display: ``123456`` -> ``123 456``."""
    if not code or len(code) != OTP_LENGTH:
        return code
    return f"{code[:3]} {code[3:]}"


def clean_otp_code(code: Optional[str]) -> str:
    """Strip spaces and any other non-digit characters."""
    if not code:
        return ""
    return re.sub(r"\D", "", code)
