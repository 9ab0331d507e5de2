"""Data Transfer Objects (DTOs) for API requests and responses"""

from .admin import BulkSmsRequest, EmployeeCreateRequest, LowStockAlertRequest
from .auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    VerifyResetOtpRequest,
)

__all__ = [
    "BulkSmsRequest",
    "ChangePasswordRequest",
    "EmployeeCreateRequest",
    "ForgotPasswordRequest",
    "LoginRequest",
    "LowStockAlertRequest",
    "ResetPasswordRequest",
    "VerifyResetOtpRequest",
]
