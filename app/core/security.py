from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import secrets
import string
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALPHABET = string.ascii_letters + string.digits


def generate_random_string(length: int = 12) -> str:
    """Generate a URL-safe alphanumeric identifier"""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT carrying the given claims"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a JWT, returning its claims or None when invalid or expired"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        return None


def verify_admin_password(password: str) -> bool:
    """Check a password against the configured admin hash, or the plain value in development"""
    if settings.ADMIN_PASSWORD_HASH:
        return pwd_context.verify(password, settings.ADMIN_PASSWORD_HASH)
    if settings.ADMIN_PASSWORD_PLAIN:
        return secrets.compare_digest(password, settings.ADMIN_PASSWORD_PLAIN)
    return False
