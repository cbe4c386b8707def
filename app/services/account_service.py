"""Account service.

Registration, login and profile management. Works on an open SQLAlchemy
session and raises ``app.core.errors`` exceptions; routes turn the returned
dicts into responses.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidCredentialsError, InvalidInputError
from app.core.security import create_user_token, get_password_hash, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def user_view(user: User, **extra: Any) -> Dict[str, Any]:
    """Public representation of a user. Never includes the password hash."""
    view = {"id": str(user.id), "name": user.name, "email": user.email}
    for key, value in extra.items():
        view[key] = _isoformat(value) if hasattr(value, "isoformat") else value
    return view


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    def _find_by_email(self, email: str, exclude: Optional[User] = None) -> Optional[User]:
        query = self.db.query(User).filter(User.email == email)
        if exclude is not None:
            query = query.filter(User.id != exclude.id)
        return query.first()

    def _commit_unique(self, message: str) -> None:
        """Commit, mapping a unique-constraint violation to ConflictError."""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(message)

    def register(self, name: str, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        if not name or not email or not password:
            raise InvalidInputError("Please provide name, email, and password")

        email = normalize_email(email)
        if self._find_by_email(email):
            raise ConflictError("Email already registered")

        user = User(name=name, email=email, password_hash=get_password_hash(password))
        self.db.add(user)
        self._commit_unique("Email already registered")
        self.db.refresh(user)

        logger.info("Registered user %s", user.id)
        return create_user_token(user), user_view(user, createdAt=user.created_at)

    def login(self, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        if not email or not password:
            raise InvalidInputError("Please provide email and password")

        user = self._find_by_email(normalize_email(email))
        # Same error for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError("Invalid credentials")

        return create_user_token(user), user_view(user)

    def get_me(self, user: User) -> Dict[str, Any]:
        return user_view(user, createdAt=user.created_at)

    def update_profile(
        self, user: User, name: Optional[str] = None, email: Optional[str] = None
    ) -> Dict[str, Any]:
        if name:
            user.name = name
        if email:
            email = normalize_email(email)
            if self._find_by_email(email, exclude=user):
                raise ConflictError("Email already in use")
            user.email = email

        self._commit_unique("Email already in use")
        self.db.refresh(user)
        return user_view(user, updatedAt=user.updated_at)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise InvalidInputError("Please provide current and new password")

        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        user.password_hash = get_password_hash(new_password)
        self.db.commit()
        logger.info("Password changed for user %s", user.id)

    def delete_account(self, user: User) -> None:
        """Delete the user and their health data in a single transaction."""
        user_id = user.id
        self.db.delete(user)
        self.db.commit()
        logger.info("Deleted account %s and its health data", user_id)
