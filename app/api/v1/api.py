from fastapi import APIRouter
from app.api.v1.endpoints import auth, reports, classify, admin

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(reports.router)
api_router.include_router(classify.router)
api_router.include_router(admin.router)
