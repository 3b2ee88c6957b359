from fastapi import APIRouter, Depends
from datetime import timedelta
from typing import Dict, Any

from app.api.auth.dependencies import get_current_admin
from app.core.config import settings
from app.core.exceptions import AuthorizationError
from app.core.security import create_access_token, verify_admin_password
from app.models.admin import Admin, AdminLogin

router = APIRouter(prefix="/auth", tags=["Admin Authentication"])

@router.post("/login", response_model=Dict[str, Any])
async def login(credentials: AdminLogin):
    """Exchange admin email and password for a bearer token"""
    if credentials.email != settings.ADMIN_EMAIL.strip().lower():
        raise AuthorizationError("Invalid credentials")
    if not verify_admin_password(credentials.password):
        raise AuthorizationError("Invalid credentials")

    access_token = create_access_token(
        data={"sub": credentials.email, "role": "admin"},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return {
        "status": "success",
        "message": "Login successful",
        "token": access_token,
        "data": {"email": credentials.email, "role": "admin"}
    }

@router.get("/me", response_model=Dict[str, Any])
async def get_profile(admin: Admin = Depends(get_current_admin)):
    """Current admin identity"""
    return {
        "status": "success",
        "message": "Profile retrieved successfully",
        "data": admin.model_dump()
    }
