from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from astrotracker.models import User


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(func.lower(User.email) == email.lower(), User.is_active == True)  # noqa: E712
        ).first()

    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        user = self.session.get(User, user_id)
        if not user or not user.is_active:
            return None
        return user

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(User.password_reset_token == token, User.is_active == True)  # noqa: E712
        ).first()

    def email_exists(self, email: str) -> bool:
        return self.session.exec(
            select(User.id).where(func.lower(User.email) == email.lower())
        ).first() is not None

    def create(self, user: User) -> User:
        user.email = user.email.lower()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update(self, user: User) -> User:
        user.updated_at = datetime.now(timezone.utc)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def rollback(self) -> None:
        self.session.rollback()

    def deactivate(self, user_id: uuid.UUID) -> bool:
        user = self.get_by_id(user_id)
        if not user:
            return False
        user.is_active = False
        self.update(user)
        return True
