"""Health check routes for uptime monitors and load balancers.

These endpoints bypass authentication (``PUBLIC_PATHS`` and non-API paths
in the auth middleware) and never touch the database.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from chatvault.version import VERSION

logger = logging.getLogger(__name__)

SERVICE_NAME = "chatvault-backend"

router = APIRouter(prefix="/api", tags=["health"])
root_router = APIRouter(tags=["health"])

ROOT_MESSAGE = "chatvault backend is working"


@root_router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return ROOT_MESSAGE


@router.get("/heartbeat")
async def heartbeat() -> Dict[str, str]:
    """Minimal liveness check."""
    return {"status": "ok"}


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Service status for monitoring.

    Returns:
        Dictionary containing:
        - status: "healthy"
        - service: Service name
        - version: Package version
        - timestamp: Current UTC time in ISO-8601 format
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
