"""Health check endpoints."""

from fastapi import APIRouter

from auditsynth.synthesis.compliance import CONTROL_CATALOG
from auditsynth.synthesis.correlation import CHAIN_TEMPLATES

router = APIRouter()

SERVICE_VERSION = "0.3.0"


@router.get("/health")
async def health_check():
    """Return service health status and loaded catalog sizes."""
    return {
        "status": "healthy",
        "service": "auditsynth",
        "version": SERVICE_VERSION,
        "chain_templates": len(CHAIN_TEMPLATES),
        "controls": sum(len(controls) for controls in CONTROL_CATALOG.values()),
    }


@router.get("/health/live")
async def liveness():
    """Liveness probe: always returns 200 if the process is running."""
    return {"status": "alive"}
