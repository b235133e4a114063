"""
Module: main.py
Description: FastAPI application entry point for the webhook emitter.

Initializes the FastAPI application with the delivery routes and error
handlers, and exposes a Mangum handler for API Gateway.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mangum import Mangum

from webhook_emitter.config.settings import settings
from webhook_emitter.handlers.triggers import router as triggers_router
from webhook_emitter.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Webhook Emitter",
    description="Outbound webhook delivery with signed payloads and bounded retries",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.include_router(triggers_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")

    return {
        "status": "ok",
        "message": "Webhook emitter is healthy",
        "version": settings.app_version,
        "environment": settings.stage
    }


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Log HTTP exceptions and return structured error responses."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.status_code,
                "message": exc.detail,
                "type": "http_exception"
            }
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request body validation errors as 400s."""
    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": 400,
                "message": "Invalid request",
                "type": "validation_error",
                "details": [
                    {"loc": list(error.get("loc", [])), "msg": error.get("msg")}
                    for error in exc.errors()
                ]
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected exceptions and return a generic error response."""
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": 500,
                "message": "Internal server error",
                "type": "internal_error"
            }
        }
    )


# Lambda entry point for API Gateway
handler = Mangum(app, lifespan="off")
