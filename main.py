from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pydantic import ValidationError as PydanticValidationError
import logging

from app.core.config import settings
from app.core.exceptions import AuthorizationError, CivicPulseError
from app.api.v1.api import api_router
from app.db.redis_client import close_redis_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Civic Pulse API...")
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}, remote classifier: {settings.ML_API_URL or 'disabled'}")

    try:
        yield
    finally:
        logger.info("Shutting down Civic Pulse API...")
        await close_redis_client()

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(CivicPulseError)
async def domain_error_handler(request: Request, exc: CivicPulseError):
    """Map domain errors to distinguishable HTTP failures"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        content = {"detail": "Server error", "code": exc.code}
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        content = {"detail": exc.message, "code": exc.code}

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthorizationError) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

def _validation_response(errors) -> JSONResponse:
    message = "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in errors)
    return JSONResponse(status_code=400, content={"detail": message, "code": "VALIDATION_ERROR"})

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are reported as 400"""
    return _validation_response(exc.errors())

@app.exception_handler(PydanticValidationError)
async def model_validation_error_handler(request: Request, exc: PydanticValidationError):
    """Model construction failures inside handlers are client errors"""
    return _validation_response(
        exc.errors(include_url=False, include_context=False, include_input=False)
    )

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    """Root endpoint"""
    return {
        "message": "Civic Pulse API",
        "version": settings.VERSION,
        "status": "running"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION
    }
