"""
FastAPI application entry point.
Main application instance with middleware, error handlers and route configuration.
"""
from datetime import datetime, timezone
from fastapi import FastAPI, Request, status, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback

from gallery_api.config import settings
from gallery_api.database import get_db, init_db, close_db
from gallery_api.exceptions import GalleryError
from gallery_api.routes import gallery, admin
from gallery_api.services.storage import CloudinaryStorage, get_storage
from gallery_api.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

# Backend clients shared by all requests, injected through dependencies
app.state.storage = CloudinaryStorage.from_settings(settings)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its response status."""
    method = request.method
    path = request.url.path
    logger.debug(f"Incoming {method} request to {path} from origin: {request.headers.get('origin', 'No origin header')}")

    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code} for {method} {path}")
        return response
    except Exception as e:
        logger.error(
            f"Error processing {method} {path}: {str(e)}\n"
            f"  Error type: {type(e).__name__}",
            exc_info=True
        )
        raise


app.include_router(gallery.router, prefix=settings.API_PREFIX)
app.include_router(admin.router, prefix=settings.API_PREFIX)


def error_response(request: Request, status_code: int, message: str, exc: Exception = None, **extra) -> JSONResponse:
    """
    Build the failure envelope.
    In development the stack trace of `exc` is included.
    """
    content = {"success": False, "error": message, **extra}
    if exc is not None and settings.is_development:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


# Exception Handlers
@app.exception_handler(GalleryError)
async def gallery_exception_handler(request: Request, exc: GalleryError):
    """Handle errors raised by the gallery pipeline."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__} on {request.method} {request.url.path}:\n"
        f"  Status: {exc.status_code}\n"
        f"  Detail: {exc.message}"
    )
    return error_response(request, exc.status_code, exc.message, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle framework HTTP errors, including unmatched routes."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    return error_response(request, exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}:\n"
        f"  Errors: {exc.errors()}"
    )
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        message,
        detail=[{"loc": list(error.get("loc", ())), "msg": error.get("msg")} for error in errors],
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """Handle requests rejected by the rate limiter."""
    logger.warning(f"Rate limit exceeded on {request.method} {request.url.path}: {exc.detail}")
    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests from this IP, please try again later.",
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n"
        f"  Error: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", exc)


# Health Endpoints
@app.get("/health")
@limiter.exempt
async def health_check():
    """Health check endpoint."""
    return {
        "success": True,
        "message": f"{settings.API_TITLE} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health/db")
@limiter.exempt
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """
    Database health check endpoint.
    Tests database connection and returns status.
    """
    try:
        result = await db.execute(text("SELECT 1"))
        return {
            "success": True,
            "database": "connected",
            "result": result.scalar()
        }
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "database": "error", "error": "Database connection failed"},
        )


@app.get("/health/storage")
@limiter.exempt
async def health_check_storage(storage: CloudinaryStorage = Depends(get_storage)):
    """
    Storage health check endpoint.
    Validates the Cloudinary configuration.
    """
    if storage.is_configured():
        return {
            "success": True,
            "storage": "configured",
            "cloud_name": storage.cloud_name,
            "bucket": settings.STORAGE_BUCKET,
        }
    return {
        "success": True,
        "storage": "not_configured",
        "message": "Cloudinary credentials not set in environment variables",
    }


@app.on_event("startup")
async def startup_event():
    """
    Initialize database connection on application startup.
    Non-blocking: app will start even if database connection fails.
    """
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"CORS allowed origins: {settings.allowed_origins}")
    logger.info(f"API base path: {settings.API_PREFIX}")

    try:
        await init_db()
        logger.info("Database connection established successfully")
    except Exception as e:
        logger.error(
            f"Failed to initialize database on startup: {str(e)}\n"
            f"The application will continue to run, but database-dependent endpoints will fail."
        )


@app.on_event("shutdown")
async def shutdown_event():
    """Close database connections on application shutdown."""
    try:
        await close_db()
    except Exception as e:
        logger.warning(f"Error during database shutdown: {str(e)}")
