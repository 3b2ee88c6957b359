from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from app.core.exceptions import AuthorizationError
from app.core.security import verify_token
from app.models.admin import Admin

security = HTTPBearer(auto_error=False)

async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Admin:
    """Resolve the privileged caller from the bearer token or reject the request"""
    if credentials is None:
        raise AuthorizationError("Unauthorized")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise AuthorizationError("Invalid token")

    email = payload.get("sub")
    if email is None or payload.get("role") != "admin":
        raise AuthorizationError("Could not validate credentials")

    return Admin(email=email, role=payload["role"])
