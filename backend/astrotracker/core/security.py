from datetime import datetime, timedelta, timezone
import secrets
import uuid

from jose import jwt
from passlib.context import CryptContext

from .config import settings

# Use Argon2 instead of bcrypt (more reliable on Python 3.13)
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(user, expires_minutes: int) -> tuple[str, datetime]:
    """Sign a token for ``user`` and return it with its expiry."""
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.full_name,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "exp": exp,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM), exp


def decode_token(token: str) -> dict:
    """Verify signature, issuer, audience and expiry. Raises ``JWTError``."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[ALGORITHM],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)
