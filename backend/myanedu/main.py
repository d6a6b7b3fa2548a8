"""
MyanEdu Backend - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps domain errors to HTTP responses
5. Registers all API route handlers
6. Provides health check endpoint

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (enrollment, payments, notifications, students, media)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from myanedu import __version__
from myanedu.config import DATABASE_URL
from myanedu.errors import DomainError
from myanedu.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from myanedu.routes import payments, notifications, students, catalog, lessons, exams, admin
from myanedu.database import create_tables

# Import all models so they are registered with Base.metadata
import myanedu.models  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

# SQLite local development creates tables directly; PostgreSQL deployments
# run `alembic upgrade head` instead
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="MyanEdu Backend",
    description=(
        "Course-management backend: student accounts, course and batch catalog, "
        "payment submission with admin verification, lessons, comments, "
        "exam results and notifications."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a unique UUID per incoming request, stores it in a context
# variable for every log entry, returns it in X-Request-ID and logs
# request start/end with latency.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Turn a service-layer error into {"detail": ...} with its HTTP status."""
    level = "ERROR" if exc.status_code >= 500 else "WARNING"
    log_with_context(logger, level,
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        context={k: str(v) for k, v in exc.context.items()},
        extra_data={"status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(payments.router, tags=["Payments"])
app.include_router(notifications.router, tags=["Notifications"])
app.include_router(students.router, tags=["Students"])
app.include_router(catalog.router, tags=["Catalog"])
app.include_router(lessons.router, tags=["Lessons"])
app.include_router(exams.router, tags=["Exams"])
app.include_router(admin.router, tags=["Admin"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "myanedu-backend", "version": __version__}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "MyanEdu Backend",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "submit_payment": "POST /payments",
            "submit_payment_with_receipt": "POST /payments/upload",
            "decide_payment": "PUT /payments/{id}",
            "payment_queue": "GET /payments",
            "notifications": "GET /students/{id}/notifications",
            "mark_read": "PUT /notifications/{id}/read"
        }
    }
