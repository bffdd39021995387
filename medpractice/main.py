from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from http import HTTPStatus
import time
import logging

from .api.deps import get_db
from .api.v1.auth import router as auth_router
from .api.v1.patients import router as patients_router
from .api.v1.appointments import router as appointments_router
from .core.config import settings
from .core.database import Database, init_db
from .core.exceptions import ServiceError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Patient records and appointment scheduling for a medical practice",
    openapi_url="/api/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Middleware setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Only add TrustedHostMiddleware in production, not in testing
if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

# Custom middleware for request logging and timing
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Log request
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.4f}s"
    )

    return response

def _error_body(status_code: int, message) -> dict:
    return {
        "error": HTTPStatus(status_code).phrase,
        "message": message
    }

# Exception handlers
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.message),
        headers=exc.headers
    )

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content=_error_body(400, message)
    )

@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": getattr(exc, "detail", None) or "The requested resource was not found",
            "path": str(request.url.path)
        }
    )

@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error(f"Internal server error: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(patients_router, prefix="/api")
app.include_router(appointments_router, prefix="/api")

# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Open the database pool on startup."""
    logger.info("Starting Medical Practice API...")

    db_url = settings.get_database_url
    db_type = "PostgreSQL" if "postgresql" in db_url else "SQLite" if "sqlite" in db_url else "Unknown"
    logger.info(f"Using {db_type} database")

    try:
        app.state.database = init_db(db_url)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")

@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled connections on shutdown."""
    logger.info("Shutting down Medical Practice API...")
    database = getattr(app.state, "database", None)
    if database is not None:
        database.dispose()

# Health check endpoint
@app.get("/health")
def health_check(db: Database = Depends(get_db)):
    """Health check endpoint, including a database round trip."""
    db.execute("SELECT 1")
    return {
        "status": "healthy",
        "database": "connected",
        "timestamp": time.time(),
        "version": settings.VERSION
    }

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Welcome to the Medical Practice API",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "authentication": "/api/auth",
            "patients": "/api/patients",
            "appointments": "/api/appointments"
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medpractice.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
