"""Registration, login, token validation and password-reset flows."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode
import secrets
import uuid

import structlog
from jose import JWTError
from sqlalchemy.exc import IntegrityError

from astrotracker.core.config import settings
from astrotracker.core.errors import AuthenticationError, BadRequestError, ConflictError, NotFoundError
from astrotracker.core.security import (
    create_access_token,
    decode_token,
    generate_reset_token,
    hash_password,
    verify_password,
)
from astrotracker.models import User
from astrotracker.repositories import UserRepository
from astrotracker.schemas.auth import (
    LoginIn,
    MessageOut,
    RegisterIn,
    RegisterOut,
    ResetPasswordIn,
    TokenOut,
    UserOut,
    ValidateTokenOut,
)

log = structlog.get_logger(__name__)

RESET_TOKEN_LIFETIME = timedelta(hours=1)
FORGOT_PASSWORD_MESSAGE = (
    "If the email exists in our system, you will receive instructions to reset your password."
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back without tzinfo; they were stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _reset_token_expired(user: User) -> bool:
    expires = _as_utc(user.password_reset_token_expires)
    return expires is None or expires <= datetime.now(timezone.utc)


class AuthService:
    def __init__(self, users: UserRepository, email_service):
        self.users = users
        self.email_service = email_service

    def register(self, data: RegisterIn) -> RegisterOut:
        if self.users.email_exists(data.email):
            raise ConflictError("Email is already in use")

        try:
            user = self.users.create(
                User(
                    email=data.email,
                    password_hash=hash_password(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                    role="User",
                )
            )
        except IntegrityError:
            # the unique email index caught a registration that raced ours
            self.users.rollback()
            raise ConflictError("Email is already in use")
        log.info("user_registered", user_id=str(user.id))
        return RegisterOut(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=user.created_at,
        )

    def login(self, data: LoginIn) -> TokenOut:
        user = self.users.get_by_email(data.email)
        if not user or not verify_password(data.password, user.password_hash):
            log.warning("login_failed", email=data.email)
            raise AuthenticationError("Invalid email or password")

        token, expires_at = create_access_token(user, expires_minutes=settings.jwt_expire_minutes)
        log.info("login_succeeded", user_id=str(user.id))
        return TokenOut(access_token=token, expires_at=expires_at, user=UserOut.model_validate(user))

    def validate_token(self, token: str) -> ValidateTokenOut:
        try:
            payload = decode_token(token)
            user_id = uuid.UUID(payload.get("sub", ""))
        except (JWTError, ValueError) as exc:
            log.warning("token_validation_failed", reason=type(exc).__name__)
            return ValidateTokenOut(is_valid=False, message="Invalid token")

        user = self.users.get_by_id(user_id)
        if not user:
            return ValidateTokenOut(is_valid=False, message="User not found")
        return ValidateTokenOut(is_valid=True, user=UserOut.model_validate(user), message="Valid token")

    def forgot_password(self, email: str) -> MessageOut:
        user = self.users.get_by_email(email)
        if not user:
            # same answer whether or not the account exists
            return MessageOut(message=FORGOT_PASSWORD_MESSAGE)

        token = generate_reset_token()
        user.password_reset_token = token
        user.password_reset_token_expires = datetime.now(timezone.utc) + RESET_TOKEN_LIFETIME
        self.users.update(user)

        query = urlencode({"token": token, "email": user.email})
        reset_link = f"{settings.frontend_url.rstrip('/')}/reset-password?{query}"
        body = f"""
            <h2>Password reset</h2>
            <p>You asked to reset your password.</p>
            <p>Follow the link below to choose a new one:</p>
            <p><a href="{reset_link}">Reset password</a></p>
            <p>This link expires in 1 hour.</p>
            <p>If you did not ask for this, you can ignore this email.</p>"""
        self.email_service.send_email(user.email, f"Password reset - {settings.app_name}", body)
        log.info("password_reset_requested", user_id=str(user.id))
        return MessageOut(message=FORGOT_PASSWORD_MESSAGE)

    def reset_password(self, data: ResetPasswordIn) -> MessageOut:
        user = self.users.get_by_email(data.email)
        if (
            not user
            or not user.password_reset_token
            or not secrets.compare_digest(user.password_reset_token.encode(), data.token.encode())
            or _reset_token_expired(user)
        ):
            raise BadRequestError("Invalid or expired token")

        user.password_hash = hash_password(data.new_password)
        user.password_reset_token = None
        user.password_reset_token_expires = None
        self.users.update(user)
        log.info("password_reset_completed", user_id=str(user.id))
        return MessageOut(message="Password updated successfully")

    def validate_reset_token(self, token: str) -> bool:
        user = self.users.get_by_reset_token(token)
        return user is not None and not _reset_token_expired(user)

    def update_profile_picture(self, user_id: uuid.UUID, picture: str) -> UserOut:
        if not picture or not picture.strip():
            raise BadRequestError("Invalid profile picture")
        user = self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        user.profile_picture = picture.strip()
        return UserOut.model_validate(self.users.update(user))
