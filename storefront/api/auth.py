"""Authentication and password recovery endpoints."""

from fastapi import APIRouter, Depends

from storefront.config import settings
from storefront.database.collection_store import CollectionStore, get_store
from storefront.dtos import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    VerifyResetOtpRequest,
)
from storefront.entities.user import User
from storefront.middleware.auth import get_current_user
from storefront.services.auth import authenticate, create_access_token
from storefront.services.password_reset import PasswordResetService
from storefront.services.sms import SmsService, get_sms_service

router = APIRouter(prefix="/auth", tags=["Auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset code has been sent"


def get_password_reset_service(
    store: CollectionStore = Depends(get_store),
    sms: SmsService = Depends(get_sms_service),
) -> PasswordResetService:
    return PasswordResetService(store, sms=sms)


@router.post("/login")
def login(payload: LoginRequest, store: CollectionStore = Depends(get_store)):
    """Exchange email and password for an access token."""
    user = authenticate(store, payload.email, payload.password)
    token = create_access_token(subject=user.id, role=user.role)
    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "token": token,
            "expiresIn": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": user.public_view(),
            "mustChangePassword": user.must_change_password,
        },
    }


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": user.public_view()}}


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """Issue a reset code. The answer does not reveal whether the account exists."""
    await service.request_reset(payload.email)
    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


@router.post("/verify-reset-otp")
def verify_reset_otp(
    payload: VerifyResetOtpRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    reset_token = service.verify_otp(payload.email, payload.code)
    return {
        "success": True,
        "message": "Code verified",
        "data": {"resetToken": reset_token},
    }


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    service.reset_password(payload.reset_token, payload.new_password)
    return {"success": True, "message": "Password has been reset successfully"}


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """Change the password of the signed-in user, including the first-login change."""
    service.change_password(user, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}
