"""Main FastAPI application."""
import logging
import uuid

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import setup_logging
from app.api import orders, files, admin_storage

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Print Orders API",
    description="Order intake and file exchange for print-on-demand",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def _error_payload(
    request: Request,
    *,
    code: str,
    message: str,
    retriable: bool,
) -> dict:
    return {
        "code": code,
        "message": message,
        "retriable": retriable,
        "request_id": getattr(request.state, "request_id", "unknown"),
    }


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)

    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        code = str(detail.get("code") or f"http_{exc.status_code}")
        message = str(detail.get("message") or "Request failed")
        retriable = bool(
            detail.get("retriable")
            if detail.get("retriable") is not None
            else exc.status_code in {408, 409, 425, 429} or exc.status_code >= 500
        )
    else:
        code = f"http_{exc.status_code}"
        message = str(detail)
        retriable = exc.status_code in {408, 409, 425, 429} or exc.status_code >= 500

    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, code, message)

    headers = dict(exc.headers or {})
    headers["X-Request-Id"] = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            request,
            code=code,
            message=message,
            retriable=retriable,
        ),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            request,
            code="validation_error",
            message="Request validation failed",
            retriable=False,
        ),
        headers={"X-Request-Id": getattr(request.state, "request_id", "unknown")},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_payload(
            request,
            code="internal_error",
            message="Unexpected server error",
            retriable=True,
        ),
        headers={"X-Request-Id": getattr(request.state, "request_id", "unknown")},
    )

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With", "X-Request-Id"],
)

# Include routers
app.include_router(orders.router)
app.include_router(files.router)
app.include_router(admin_storage.router)   # Storage diagnostics (staff)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "message": "Print Orders API",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
def health():
    """Health check endpoint with real DB connectivity test."""
    from app.core.database import SessionLocal
    from sqlalchemy import text

    result = {"status": "healthy", "database": "disconnected"}
    http_status = 200

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            result["database"] = "connected"
        finally:
            db.close()
    except Exception as exc:
        result["status"] = "degraded"
        result["database"] = f"error: {str(exc)[:120]}"
        http_status = 503

    return JSONResponse(content=result, status_code=http_status)
