from functools import lru_cache
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlmodel import Session

from astrotracker.core.cache import MemoryCache
from astrotracker.core.config import settings
from astrotracker.core.database import get_session
from astrotracker.core.security import decode_token
from astrotracker.models import User
from astrotracker.repositories import ApodRepository, UserRepository
from astrotracker.services.auth_service import AuthService
from astrotracker.services.email_service import EmailService
from astrotracker.services.nasa_client import NasaClient
from astrotracker.services.nasa_service import NasaService

bearer = HTTPBearer(auto_error=True)

apod_cache = MemoryCache()


@lru_cache()
def get_nasa_client() -> NasaClient:
    return NasaClient(settings)


def get_email_service() -> EmailService:
    return EmailService(settings)


def get_auth_service(
    session: Session = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    return AuthService(UserRepository(session), email_service)


def get_nasa_service(
    session: Session = Depends(get_session),
    client: NasaClient = Depends(get_nasa_client),
) -> NasaService:
    return NasaService(ApodRepository(session), client, apod_cache, settings)


def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    session: Session = Depends(get_session),
) -> User:
    token = creds.credentials
    try:
        payload = decode_token(token)
        user_id = uuid.UUID(payload.get("sub") or "")
    except (JWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = UserRepository(session).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return user
