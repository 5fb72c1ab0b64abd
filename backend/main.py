# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from core import (
    configure_logging,
    generate_correlation_id,
    get_correlation_id,
    init_sentry,
    set_correlation_id,
)
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import settings
from models.exceptions import (
    ContactConfigurationException,
    ContactRateLimitException,
    ContactValidationException,
    DomainException,
    EmailDeliveryException,
    InvalidPayloadException,
)
from models.schemas import ContactFormResponse
from routers import contact_router
from services.rate_limit_service import ContactAbuseStore

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT, settings.LOG_FILE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        f"Contact API starting (environment={settings.ENVIRONMENT}, "
        f"email_provider={settings.EMAIL_PROVIDER})"
    )
    yield
    store = app.state.abuse_store
    logger.info(
        f"Contact API stopped (tracked_clients={store.tracked_clients()}, "
        f"tracked_fingerprints={store.tracked_fingerprints()})"
    )


app = FastAPI(title="Castello di Mongivetto Contact API", lifespan=lifespan)

# One anti-abuse store per process, shared by every request
app.state.abuse_store = ContactAbuseStore()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        correlation_id = (
            request.headers.get("X-Correlation-ID") or generate_correlation_id()
        )
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()

        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        # DNS and email API calls make the contact endpoint the usual suspect
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Last added runs first; security headers sit closest to the routes
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(RequestLoggingMiddleware)

cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _contact_error(
    status_code: int, message: str, errors: dict[str, str] | None = None
) -> JSONResponse:
    """Build the contact endpoint's failure envelope."""
    body = ContactFormResponse(ok=False, message=message, errors=errors)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # Context goes through bind(): call kwargs would make loguru format the message
    logger.bind(
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    ).exception(f"Unhandled exception: {exc!r}")

    return _contact_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Errore interno del server."
    )


# Centralized exception handlers
@app.exception_handler(InvalidPayloadException)
async def invalid_payload_handler(
    request: Request, exc: InvalidPayloadException
) -> JSONResponse:
    """Handle a body that is not a JSON object."""
    logger.bind(path=str(request.url.path)).info(f"Invalid payload: {exc.message}")
    return _contact_error(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(ContactValidationException)
async def contact_validation_handler(
    request: Request, exc: ContactValidationException
) -> JSONResponse:
    """Handle field validation and undeliverable email domains."""
    logger.bind(path=str(request.url.path)).info(
        f"Contact validation failed: fields={sorted(exc.errors)}"
    )
    return _contact_error(
        status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message, exc.errors
    )


@app.exception_handler(ContactRateLimitException)
async def contact_rate_limit_handler(
    request: Request, exc: ContactRateLimitException
) -> JSONResponse:
    """Handle burst and hourly submission ceilings."""
    logger.bind(path=str(request.url.path)).warning(
        f"Contact rate limit exceeded: reason={exc.reason}"
    )
    return _contact_error(status.HTTP_429_TOO_MANY_REQUESTS, exc.message)


@app.exception_handler(ContactConfigurationException)
async def contact_configuration_handler(
    request: Request, exc: ContactConfigurationException
) -> JSONResponse:
    """Handle missing email settings; the caller only sees a generic message."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.capture_exception(exc)  # Configuration issues are critical
    logger.bind(path=str(request.url.path)).error(
        f"Contact form not configured: missing={exc.missing}"
    )
    return _contact_error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


@app.exception_handler(EmailDeliveryException)
async def email_delivery_handler(
    request: Request, exc: EmailDeliveryException
) -> JSONResponse:
    """Handle email delivery failure."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.capture_exception(exc)
    logger.bind(path=str(request.url.path)).error(f"Email delivery failed: {exc.message}")
    return _contact_error(status.HTTP_502_BAD_GATEWAY, exc.message)


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Fallback for domain exceptions without a dedicated handler."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    logger.bind(path=str(request.url.path)).warning(f"Domain exception: {exc.message}")
    return _contact_error(status.HTTP_400_BAD_REQUEST, exc.message)


# Include routers
app.include_router(contact_router.router, prefix="/api")


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
