"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /health/ always returns 200 if the process is up
    - Lists the CRUD resources mounted on the app
"""

import logging
from fastapi import APIRouter, Request, status

from crudkit import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "crudkit",
        "version": __version__,
        "resources": sorted(getattr(request.app.state, "crud_resources", [])),
    }
