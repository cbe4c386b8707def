"""Authentication routes."""
from typing import Optional
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, field_validator
from email_validator import EmailNotValidError, validate_email

from app.db.sessions import get_db
from app.models.user import User
from app.core.security import get_current_user
from app.routes._shared import body_or_empty
from app.services.account_service import AccountService


router = APIRouter(prefix="/api/auth", tags=["Authentication"])

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8


def _required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValueError(message)
    return value


def _email(value: str) -> str:
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValueError("Please provide a valid email")


# Request/Response schemas
class RegisterRequest(BaseModel):
    name: Optional[str] = Field(default=None, validate_default=True)
    email: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = _required(v, "Name is required").strip()
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError("Name must be less than 50 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _email(_required(v, "Email is required"))

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("Password must be at least 8 characters long")
        return v


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _email(_required(v, "Email is required"))

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not 1 <= len(v) <= NAME_MAX_LENGTH:
            raise ValueError("Name must be between 1 and 50 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return None if v is None else _email(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: Optional[str] = Field(default=None, validate_default=True)
    newPassword: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("currentPassword")
    @classmethod
    def check_current(cls, v):
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("newPassword")
    @classmethod
    def check_new(cls, v):
        if not v:
            raise ValueError("New password is required")
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("New password must be at least 8 characters long")
        return v


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class TokenResponse(BaseModel):
    success: bool = True
    token: str
    user: UserResponse


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str


@router.post(
    "/register",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    request: Optional[RegisterRequest] = Body(default=None),
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    - Creates user account with hashed password
    - Returns JWT access token
    """
    request = body_or_empty(request, RegisterRequest)
    token, user = AccountService(db).register(request.name, request.email, request.password)
    return TokenResponse(token=token, user=UserResponse(**user))


@router.post("/login", response_model=TokenResponse, response_model_exclude_none=True)
def login(
    request: Optional[LoginRequest] = Body(default=None),
    db: Session = Depends(get_db)
):
    """
    Login with email and password.

    Unknown email and wrong password produce the same 401.
    """
    request = body_or_empty(request, LoginRequest)
    token, user = AccountService(db).login(request.email, request.password)
    return TokenResponse(token=token, user=UserResponse(**user))


@router.get("/me", response_model=UserEnvelope, response_model_exclude_none=True)
def get_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Get current authenticated user information.

    Protected endpoint - requires valid JWT token.
    """
    return UserEnvelope(user=UserResponse(**AccountService(db).get_me(current_user)))


@router.put("/profile", response_model=UserEnvelope, response_model_exclude_none=True)
def update_profile(
    request: Optional[UpdateProfileRequest] = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    request = body_or_empty(request, UpdateProfileRequest)
    user = AccountService(db).update_profile(current_user, name=request.name, email=request.email)
    return UserEnvelope(user=UserResponse(**user))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    request: Optional[ChangePasswordRequest] = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    request = body_or_empty(request, ChangePasswordRequest)
    AccountService(db).change_password(current_user, request.currentPassword, request.newPassword)
    return MessageResponse(message="Password updated successfully")


@router.delete("/account", response_model=MessageResponse)
def delete_account(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete the account together with all of its health data."""
    AccountService(db).delete_account(current_user)
    return MessageResponse(message="Account and all data deleted successfully")
