"""Authentication DTOs"""

from pydantic import EmailStr, Field

from storefront.entities.base import CamelModel


class LoginRequest(CamelModel):
    email: str
    password: str


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class VerifyResetOtpRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., description="Six digit code, spaces allowed")


class ResetPasswordRequest(CamelModel):
    reset_token: str = Field(..., min_length=1)
    new_password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
