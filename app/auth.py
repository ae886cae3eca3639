import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .errors import ForbiddenError, UnauthenticatedError
from .models import User, UserRole
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def resolve_user_from_token(db: Session, token: Optional[str]) -> User:
    """Decode an access token and load its user; shared by HTTP and websocket auth"""
    if not token:
        raise UnauthenticatedError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise UnauthenticatedError("Invalid or expired token")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user {payload['sub']}")
        raise UnauthenticatedError("Invalid or expired token")

    if user.is_suspended:
        logger.warning(f"⚠️ Suspended user {user.id} attempted to authenticate")
        raise ForbiddenError("This account has been suspended")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer access token"""
    token = credentials.credentials if credentials else None
    user = resolve_user_from_token(db, token)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Require the ADMIN role"""
    if user.role != UserRole.ADMIN:
        logger.warning(f"⚠️ User {user.id} attempted to access an admin route")
        raise ForbiddenError("Administrator access required")
    return user
