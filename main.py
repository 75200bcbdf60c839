from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

from core.config import settings
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.exceptions import BaseCustomException, StoreFailureError
from core.response import error_response
from database.connection import create_tables
from routers import auth, category

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Catalog Backend API",
    description="Authentication and hierarchical product category management",
    version="1.0.0"
)

# Global exception handler for custom exceptions
@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    """Handle custom exceptions with standardized response format."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    if isinstance(exc, StoreFailureError):
        logger.error(
            f"Store failure [{request_id}] on {request.method} {request.url.path}: {exc.cause!r}"
        )
    else:
        logger.warning(f"Rejected [{request_id}] {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.message,
            error_code=exc.__class__.__name__,
            details=exc.details
        )
    )

# Global exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed error messages."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Validation error [{request_id}] on {request.method} {request.url.path}")

    error_details = []
    for error in exc.errors():
        field = '.'.join(str(x) for x in error['loc'])
        error_details.append({
            "field": field,
            "message": error['msg'],
            "type": error['type']
        })

    return JSONResponse(
        status_code=422,
        content=error_response(
            message="Request validation failed",
            error_code="VALIDATION_ERROR",
            details={"errors": error_details}
        )
    )

# Global exception handler for general HTTP exceptions
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with logging."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"HTTP exception [{request_id}] on {request.method} {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=str(exc.detail) if isinstance(exc.detail, str) else "HTTP error occurred",
            error_code="HTTP_ERROR",
            details={"status_code": exc.status_code}
        ),
        headers=getattr(exc, "headers", None)
    )

# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Unexpected error [{request_id}] on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=error_response(
            message="An unexpected error occurred. Please try again.",
            error_code="INTERNAL_SERVER_ERROR",
            details={"request_id": request_id}
        )
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# First added is executed last
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

@app.get("/api/health")
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "message": "Backend is running"}

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(category.router, prefix="/api/categories", tags=["Categories"])

@app.on_event("startup")
async def startup_event():
    """Initialize the application on startup."""
    logger.info("Starting up Catalog Backend API...")
    create_tables()
    logger.info("Database tables ready")
