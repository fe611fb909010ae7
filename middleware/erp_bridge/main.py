"""
FastAPI Middleware Application

Main application entry point for the Shopify to Dynamics AX 2012 middleware.
Provides the Shopify webhook endpoint, health check and service info.
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from erp_bridge.config import settings
from erp_bridge.routes import health, webhook
from erp_bridge.services.audit_log import build_audit_logger
from erp_bridge.services.pipeline import OrderPipeline
from erp_bridge.utils.exceptions import MiddlewareException
from erp_bridge.utils.logging_config import (
    clear_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)

# Setup logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Opens the shared ERP HTTP client and the audit log on startup.
    """
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={"environment": settings.environment},
    )

    if settings.is_digital_ocean:
        logger.info("Running on DigitalOcean App Platform - logs will appear in Runtime Logs")
    else:
        logger.info(f"Running locally - logs saved to {settings.log_dir}/")

    audit_logger = build_audit_logger(settings.log_dir)
    http_client = httpx.AsyncClient(timeout=settings.http_timeout)

    app.state.audit_logger = audit_logger
    app.state.pipeline = OrderPipeline(audit_logger, http_client=http_client)

    logger.info(f"Server port: {settings.port}")
    logger.info("Webhook endpoint: /webhook")
    logger.info("Health check endpoint: /health")
    logger.info(f"ERP endpoint: {settings.erp_endpoint}")
    logger.info(f"SOAP Action: {settings.soap_action}")
    logger.info(f"Log directory: {settings.log_dir}")
    logger.info("Log files:")
    logger.info(f"  - Incoming webhooks: {settings.log_dir}/YYYY-MM-DD_incoming_webhook.log")
    logger.info(f"  - Outgoing SOAP: {settings.log_dir}/YYYY-MM-DD_outgoing_soap.log")
    logger.info(f"  - SOAP responses: {settings.log_dir}/YYYY-MM-DD_soap_response.log")

    yield

    logger.info("Shutting down application...")
    await http_client.aclose()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Middleware to forward Shopify orders to Microsoft Dynamics AX 2012 over SOAP",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)


# Correlation ID middleware
@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    # Get or generate correlation ID
    correlation_id = request.headers.get("X-Correlation-ID")
    if not correlation_id:
        correlation_id = set_correlation_id()
    else:
        set_correlation_id(correlation_id)

    # Process request
    try:
        response = await call_next(request)
    finally:
        clear_correlation_id()

    # Add correlation ID to response headers
    response.headers["X-Correlation-ID"] = correlation_id

    return response


# Exception handlers
@app.exception_handler(MiddlewareException)
async def middleware_exception_handler(request: Request, exc: MiddlewareException):
    """Handle custom middleware exceptions"""
    logger.error(
        f"Middleware exception: {exc.message}",
        extra={"error": exc.to_dict()},
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(
        f"Unexpected exception: {exc}",
        extra={"error": str(exc), "type": type(exc).__name__},
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        },
    )


# Include routers
app.include_router(webhook.router)
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "erp_bridge.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
