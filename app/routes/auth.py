import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import atomic, get_db
from ..domain.users.repository import UserRepository
from ..errors import ForbiddenError, InvalidCredentialsError, InvalidStateError
from ..models import User, UserRole
from ..rate_limiter import create_rate_limiter
from ..security_utils import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    hash_password_bcrypt,
    log_security_event,
    verify_password_bcrypt,
)
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Rate limiters
rate_limit_register = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="register")
rate_limit_login = create_rate_limiter(limit=20, window_seconds=300, key_prefix="login")


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Role must be CLIENT or MAID")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthUser(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None


class AuthResponse(BaseModel):
    accessToken: str
    tokenType: str = "bearer"
    user: AuthUser


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        accessToken=create_access_token(user.id, user.role.value),
        user=AuthUser(id=user.id, name=user.name, email=user.email, role=user.role, avatar=user.avatar),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    data: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_register),
):
    """Create a CLIENT or MAID account"""
    if UserRepository.get_user_by_email(db, data.email):
        raise InvalidStateError("An account with this email already exists")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password_bcrypt(data.password),
        role=data.role,
    )
    try:
        with atomic(db):
            db.add(user)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        raise InvalidStateError("An account with this email already exists") from None

    db.refresh(user)
    log_security_event("register", user_id=user.id, ip_address=_client_ip(request))
    logger.info(f"✅ Registered {user.role.value} account {user.id}")
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_login),
):
    """Exchange email and password for an access token"""
    user = UserRepository.get_user_by_email(db, data.email.strip())

    # Always run one bcrypt comparison so unknown emails and wrong passwords look alike
    password_hash = user.password_hash if user else DUMMY_PASSWORD_HASH
    password_ok = verify_password_bcrypt(data.password, password_hash)

    if not user or not password_ok:
        log_security_event(
            "failed_login", ip_address=_client_ip(request), details={"email": data.email}
        )
        raise InvalidCredentialsError()

    if user.is_suspended:
        log_security_event("suspended_login", user_id=user.id, ip_address=_client_ip(request))
        raise ForbiddenError("This account has been suspended")

    log_security_event("login", user_id=user.id, ip_address=_client_ip(request))
    return _auth_response(user)
