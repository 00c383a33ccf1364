from fastapi import APIRouter, Depends, Request, status
from typing import List

from notenexus.core.rate_limiter import limiter, OTP_LIMIT, SIGNIN_LIMIT
from notenexus.models.user import User
from notenexus.modules.auth.dependencies import get_current_user, get_current_admin
from notenexus.schemas.auth import (
    AdminCheckResponse,
    DeleteUserRequest,
    OtpRequest,
    OtpVerify,
    ProfileUpdate,
    SigninResponse,
    SignupResponse,
    UserDetail,
    UserPublic,
    UserSignin,
    UserSignup,
)
from notenexus.schemas.base import MessageResponse
from notenexus.services.auth_service import AuthService, get_auth_service


router = APIRouter()


@router.post("/generate-otp", response_model=MessageResponse)
@limiter.limit(OTP_LIMIT)
async def generate_otp(
    request: Request,
    data: OtpRequest,
    auth: AuthService = Depends(get_auth_service)
):
    """Email a verification code (rate limited: 5/min)"""
    await auth.request_otp(data.email)
    return {"message": "OTP sent to your email"}


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(
    data: OtpVerify,
    auth: AuthService = Depends(get_auth_service)
):
    await auth.verify_otp(data.email, data.code)
    return {"message": "Email verified successfully"}


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: UserSignup,
    auth: AuthService = Depends(get_auth_service)
):
    """Create an account for an email verified through /verify-otp"""
    user, token = await auth.signup(data.email, data.name, data.password, data.role)
    return {"token": token, "user": user}


@router.post("/signin", response_model=SigninResponse)
@limiter.limit(SIGNIN_LIMIT)
async def signin(
    request: Request,
    data: UserSignin,
    auth: AuthService = Depends(get_auth_service)
):
    """Sign in with email and password (rate limited: 10/min)"""
    user, token = await auth.signin(data.email, data.password)
    return {"message": "Login successful", "jwt": token, "user": user}


@router.get("/check-admin", response_model=AdminCheckResponse)
async def check_admin(auth: AuthService = Depends(get_auth_service)):
    """Lets the signup page decide whether to offer the ADMIN role"""
    count = await auth.admin_count()
    return {"admin_exists": count > 0, "admin_count": count}


@router.get("/profile", response_model=UserDetail)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserPublic)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service)
):
    return await auth.update_profile(current_user, data.name, data.password)


@router.get("", response_model=List[UserDetail])
async def list_users(
    admin: User = Depends(get_current_admin),
    auth: AuthService = Depends(get_auth_service)
):
    """All users, newest first (admin only)"""
    return await auth.list_users()


@router.delete("/user", response_model=MessageResponse)
async def delete_user(
    data: DeleteUserRequest,
    admin: User = Depends(get_current_admin),
    auth: AuthService = Depends(get_auth_service)
):
    """Delete a user with everything they posted (admin only)"""
    await auth.delete_user(admin, data.user_id)
    return {"message": "User deleted successfully"}
