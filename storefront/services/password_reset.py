"""
Password reset and first-login password change.

Forgot-password issues a six digit code (stored hashed on the user, sent by
SMS when the user has a phone number). A correct code is exchanged for a
short-lived reset token, and the token for a new password.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from storefront.config import settings
from storefront.database.collection_store import CollectionStore
from storefront.entities.base import utcnow
from storefront.entities.user import OtpData, User
from storefront.repositories.user import UserRepository
from storefront.services.exceptions import (
    InvalidCredentialsError,
    InvalidResetTokenError,
    OtpError,
    PasswordPolicyError,
)
from storefront.services.sms import SmsService
from storefront.utils import otp
from storefront.utils.passwords import hash_password, validate_password_strength, verify_password

logger = logging.getLogger(__name__)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def ensure_strong_password(password: str) -> None:
    """Raise PasswordPolicyError listing every unmet rule."""
    check = validate_password_strength(password)
    if not check.is_valid:
        raise PasswordPolicyError(check.errors)


class PasswordResetService:
    def __init__(
        self,
        store: CollectionStore,
        sms: Optional[SmsService] = None,
        clock: Callable[[], datetime] = utcnow,
        otp_expire_minutes: int = settings.OTP_EXPIRE_MINUTES,
        otp_max_attempts: int = settings.OTP_MAX_ATTEMPTS,
        reset_token_expire_minutes: int = settings.RESET_TOKEN_EXPIRE_MINUTES,
    ):
        self.user_repo = UserRepository(store)
        self.sms = sms
        self.clock = clock
        self.otp_expire_minutes = otp_expire_minutes
        self.otp_max_attempts = otp_max_attempts
        self.reset_token_expire_minutes = reset_token_expire_minutes

    async def request_reset(self, email: str) -> Optional[str]:
        """Issue a reset code for the account.

        Returns the plaintext code, or None when no such account exists. The
        caller must never echo the code back to the requester.
        """
        user = self.user_repo.find_by_email(email)
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account %s", email)
            return None

        code = otp.generate_otp_code()
        self.user_repo.update(
            user,
            login_otp=OtpData(
                code=otp.hash_otp_code(code),
                expires=otp.get_otp_expiration(self.otp_expire_minutes, now=self.clock()),
                attempts=0,
                max_attempts=self.otp_max_attempts,
            ),
        )

        if user.phone and self.sms is not None:
            result = await self.sms.send_verification_code(user.phone, code)
            if not result.success:
                logger.warning("Reset code SMS to user %s failed: %s", user.id, result.error)
        else:
            logger.info("User %s has no phone number, reset code not sent by SMS", user.id)
        return code

    def verify_otp(self, email: str, code: str) -> str:
        """Exchange a correct reset code for a reset token."""
        code = otp.clean_otp_code(code)
        if not otp.is_valid_otp_format(code):
            raise OtpError("Code must be 6 digits")

        user = self.user_repo.find_by_email(email)
        pending = user.login_otp if user else None
        if not pending or not pending.code:
            raise OtpError("No reset code has been requested")

        now = self.clock()
        if otp.is_otp_expired(pending.expires, now=now):
            raise OtpError("Code has expired, please request a new one", remaining_attempts=0)
        if otp.is_otp_attempts_exceeded(pending.attempts, pending.max_attempts):
            raise OtpError("Too many attempts, please request a new code", remaining_attempts=0)

        if not otp.otp_matches(code, pending.code):
            attempts = pending.attempts + 1
            self.user_repo.update(user, login_otp=pending.model_copy(update={"attempts": attempts}))
            raise OtpError(
                "Invalid code",
                remaining_attempts=otp.get_remaining_attempts(attempts, pending.max_attempts),
            )

        token = secrets.token_urlsafe(32)
        self.user_repo.update(
            user,
            login_otp=None,
            reset_token_hash=hash_reset_token(token),
            reset_token_expires=now + timedelta(minutes=self.reset_token_expire_minutes),
        )
        return token

    def reset_password(self, reset_token: str, new_password: str) -> User:
        """Set a new password using a reset token. The token is single use."""
        ensure_strong_password(new_password)

        user = self.user_repo.find_by_reset_token_hash(hash_reset_token(reset_token))
        if not user or otp.is_otp_expired(user.reset_token_expires, now=self.clock()):
            raise InvalidResetTokenError("Invalid or expired reset token")

        updated = self.user_repo.update(
            user,
            password=hash_password(new_password),
            reset_token_hash=None,
            reset_token_expires=None,
            must_change_password=False,
        )
        logger.info("Password reset for user %s", user.id)
        return updated

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        """Change a password while signed in; clears the must-change flag."""
        if not verify_password(current_password, user.password):
            raise InvalidCredentialsError("Current password is incorrect")
        ensure_strong_password(new_password)

        updated = self.user_repo.update(
            user,
            password=hash_password(new_password),
            must_change_password=False,
        )
        logger.info("Password changed for user %s", user.id)
        return updated
