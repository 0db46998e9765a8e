"""
Dealership Sales API - Main Application.

FastAPI application with CORS enabled for the back-office frontend.

Errors are returned as ErrorResponse bodies. Business-rule failures keep
their message; anything unexpected is logged and reported as a generic 500
without internal detail.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config import get_settings
from domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SaleError,
    SaleValidationError,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Dealership Sales API",
    description="REST API for motorcycle sales, payments and order tracking",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (SaleValidationError, 400),
    (ConflictError, 409),
    (ForbiddenError, 403),
)


def _error_body(error: str, detail: str, status_code: int) -> dict:
    return {"error": error, "detail": detail, "status_code": status_code}


@app.exception_handler(SaleError)
def handle_sale_error(request: Request, exc: SaleError):
    status_code = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 400)
    logger.info(
        f"{request.method} {request.url.path} rejected: {exc.message}",
        extra={"error_kind": exc.kind, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=_error_body(exc.kind, exc.message, status_code))


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_body("validation_error", "; ".join(messages), 422),
    )


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "An unexpected error occurred", 500),
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "dealership-sales-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Dealership Sales API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import orders, sales

app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(orders.router, prefix="/api/v1", tags=["Order Tracking"])
