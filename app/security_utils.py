"""
Password hashing, access tokens and upload filename hygiene for MaidServ accounts
"""

import logging
import os
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
MAX_FILENAME_LENGTH = 255

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORDS
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Salted bcrypt hash stored on the user row"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        # Malformed hash in the database; treat as a failed login
        logger.error(f"❌ Password hash could not be checked: {e}")
        return False


# Login compares against this when the email is unknown so both failure paths cost the same
DUMMY_PASSWORD_HASH = pwd_context.hash(secrets.token_urlsafe(16))


# ============================================================================
# ACCESS TOKENS
# ============================================================================


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT carrying `data`.

    Args:
        data: Claims to encode (at least `sub`)
        expires_delta: Lifetime, ACCESS_TOKEN_EXPIRE_MINUTES when omitted
    """
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.utcnow() + lifetime}
    return jose_jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """Decoded claims, or None when the signature is bad or the token expired"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"⚠️ Access token rejected: {e}")
        return None


def create_access_token(user_id: str, role: str) -> str:
    return create_jwt_token({"sub": user_id, "role": role})


# ============================================================================
# UPLOAD FILENAMES
# ============================================================================


def sanitize_filename(filename: str) -> str:
    """
    Display name for an uploaded file.

    Path components and anything outside word characters, spaces, dots and
    dashes are dropped. The name only ever reaches the database; object keys
    are generated separately.
    """
    name = os.path.basename(filename.replace("\\", "/"))
    name = re.sub(r"[^\w\s\-\.]", "", name).strip(". ")

    if len(name) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(name)
        name = stem[: MAX_FILENAME_LENGTH - len(ext)] + ext

    return name or f"file_{secrets.token_urlsafe(8)}"


# ============================================================================
# AUDIT
# ============================================================================


def log_security_event(
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """Audit line for register, login, failed_login and suspended_login"""
    logger.info(
        f"SECURITY_EVENT: {event_type} user={user_id} ip={ip_address} details={details or {}}"
    )
