"""Unit tests for the password reset service."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.repositories.user import UserRepository
from storefront.services.exceptions import OtpError, PasswordPolicyError
from storefront.services.password_reset import PasswordResetService, hash_reset_token
from storefront.services.sms import SmsResult
from storefront.utils.otp import hash_otp_code


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def sms():
    service = MagicMock()
    service.send_verification_code = AsyncMock(return_value=SmsResult(success=True, message_id="SM1"))
    return service


@pytest.fixture
def resets(store, sms, clock):
    return PasswordResetService(store, sms=sms, clock=clock)


class TestRequestReset:
    def test_stores_only_the_code_hash(self, store, resets, sms, make_user):
        make_user(phone="+14155551234")

        code = asyncio.run(resets.request_reset("customer@example.com"))

        user = UserRepository(store).find_by_email("customer@example.com")
        assert user.login_otp.code == hash_otp_code(code)
        assert user.login_otp.attempts == 0
        assert user.login_otp.expires == datetime(2024, 5, 20, 12, 10, tzinfo=timezone.utc)
        sms.send_verification_code.assert_awaited_once_with("+14155551234", code)

    def test_user_without_phone_gets_no_sms(self, resets, sms, make_user):
        make_user()

        assert asyncio.run(resets.request_reset("customer@example.com")) is not None
        sms.send_verification_code.assert_not_awaited()

    def test_sms_failure_does_not_fail_the_request(self, resets, sms, make_user):
        make_user(phone="+14155551234")
        sms.send_verification_code.return_value = SmsResult(success=False, error="down")

        assert asyncio.run(resets.request_reset("customer@example.com")) is not None

    def test_unknown_email(self, resets, sms):
        assert asyncio.run(resets.request_reset("nobody@example.com")) is None
        sms.send_verification_code.assert_not_awaited()


class TestVerifyOtp:
    def test_expired_code(self, resets, clock, make_user):
        make_user(phone="+14155551234")
        code = asyncio.run(resets.request_reset("customer@example.com"))
        clock.now += timedelta(minutes=11)

        with pytest.raises(OtpError, match="expired"):
            resets.verify_otp("customer@example.com", code)

    def test_malformed_code(self, resets):
        with pytest.raises(OtpError, match="6 digits"):
            resets.verify_otp("customer@example.com", "12ab")

    def test_no_pending_code(self, resets, make_user):
        make_user()

        with pytest.raises(OtpError, match="No reset code"):
            resets.verify_otp("customer@example.com", "123456")

    def test_success_stores_token_hash_and_clears_code(self, store, resets, make_user):
        make_user(phone="+14155551234")
        code = asyncio.run(resets.request_reset("customer@example.com"))

        token = resets.verify_otp("customer@example.com", code)

        user = UserRepository(store).find_by_email("customer@example.com")
        assert user.login_otp is None
        assert user.reset_token_hash == hash_reset_token(token)
        assert user.reset_token_expires == datetime(2024, 5, 20, 12, 15, tzinfo=timezone.utc)


class TestResetPassword:
    def test_policy_error_lists_all_rules(self, resets):
        with pytest.raises(PasswordPolicyError) as exc_info:
            resets.reset_password("token", "abc")

        assert exc_info.value.errors == [
            "At least 8 characters",
            "One uppercase letter",
            "One number",
        ]
