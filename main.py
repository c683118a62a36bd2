"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from account_management.api import router as account_router
from account_management.va_api import router as va_router
from commissions.api import router as commissions_router
from core.config import settings
from core.exceptions import CarLeadsError
from core.logging import get_logger
from core.rate_limit import limiter
from lead_explorer.api import router as lead_explorer_router
from system_settings.api import router as settings_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""
    logger.info(f"Starting {settings.app_name} version={settings.app_version} environment={settings.environment}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add limiter to app state and rate limiting error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [settings.base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(CarLeadsError)
async def carleads_error_handler(request: Request, exc: CarLeadsError):
    """Handle custom CarLeads errors"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"CarLeads error - error_code: {exc.error_code}, details: {exc.details}, path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report schema validation failures as 400"""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.info(f"Validation error - path: {request.url.path}, errors: {len(errors)}")
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {"error": "VALIDATION_ERROR", "message": "Invalid request data", "details": {"errors": errors}}
        ),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.error(f"Database integrity error - path: {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"error": "DUPLICATE", "message": "Resource conflicts with existing data", "details": {}},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error - path: {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "DATABASE_ERROR", "message": "Database operation failed", "details": {}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error - path: {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred", "details": {}},
    )


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "version": settings.app_version}


# Register domain routers
app.include_router(account_router, prefix="/api")
app.include_router(va_router, prefix="/api")
app.include_router(lead_explorer_router, prefix="/api")
app.include_router(commissions_router, prefix="/api")
app.include_router(settings_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
