"""
Health Check and Service Information Endpoints
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from erp_bridge.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if application is running.
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "service": settings.service_name,
        },
    )


@router.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "description": "Middleware service to forward Shopify orders to Microsoft Dynamics AX 2012",
        "endpoints": "/webhook (POST) - Shopify webhook handler, /health (GET) - Health check",
    }
