from fastapi import APIRouter, Depends

from astrotracker.api.deps import get_auth_service, get_current_user
from astrotracker.models import User
from astrotracker.schemas.auth import (
    ForgotPasswordIn,
    LoginIn,
    MessageOut,
    ProfilePictureIn,
    RegisterIn,
    RegisterOut,
    ResetPasswordIn,
    TokenOut,
    UserOut,
    ValidateTokenIn,
    ValidateTokenOut,
)
from astrotracker.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, auth: AuthService = Depends(get_auth_service)):
    return auth.login(payload)


@router.post("/register", response_model=RegisterOut, status_code=201)
def register(payload: RegisterIn, auth: AuthService = Depends(get_auth_service)):
    return auth.register(payload)


@router.post("/validate", response_model=ValidateTokenOut)
def validate_token(payload: ValidateTokenIn, auth: AuthService = Depends(get_auth_service)):
    return auth.validate_token(payload.token)


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(payload: ForgotPasswordIn, auth: AuthService = Depends(get_auth_service)):
    return auth.forgot_password(payload.email)


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordIn, auth: AuthService = Depends(get_auth_service)):
    return auth.reset_password(payload)


@router.get("/validate-reset-token/{token}", response_model=MessageOut)
def validate_reset_token(token: str, auth: AuthService = Depends(get_auth_service)):
    valid = auth.validate_reset_token(token)
    return MessageOut(success=valid, message="Valid token" if valid else "Invalid token")


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.put("/profile-picture", response_model=UserOut)
def update_profile_picture(
    payload: ProfilePictureIn,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.update_profile_picture(user.id, payload.profile_picture)
