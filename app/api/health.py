# app/api/health.py
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_control_plane
from app.services.context import ControlPlane

router = APIRouter(prefix="/health", tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("", summary="Liveness probe")
async def health(plane: ControlPlane = Depends(get_control_plane)):
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": plane.settings.VERSION,
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "environment": plane.settings.ENVIRONMENT,
        },
    }


@router.get("/ready", summary="Readiness probe")
async def ready(plane: ControlPlane = Depends(get_control_plane)):
    checks = {
        "runtime_reachable": await plane.runtime.ping(),
    }
    is_ready = all(checks.values())
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={
            "success": is_ready,
            "status": "ready" if is_ready else "not_ready",
            "checks": checks,
            "snapshot_generation": plane.registry.snapshot().generation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
