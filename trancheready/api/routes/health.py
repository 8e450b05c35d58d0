"""
TrancheReady Health Routes
==========================

Health check endpoints for monitoring and orchestration.

Endpoints:
    GET /healthz   - Plain liveness probe ("ok")
    GET /health    - Status with signing and evidence-store details

Author: TrancheReady Team
Version: 1.0.0
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from trancheready.api.dependencies import ServiceContainer, get_container


router = APIRouter(tags=["Health"])

# Track startup time for uptime calculation
_start_time = time.time()


@router.get("/healthz", response_class=PlainTextResponse, summary="Liveness")
async def healthz() -> str:
    """Liveness probe for load balancers."""
    return "ok"


@router.get("/health", summary="Health Check")
async def health_check(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        - Overall status: healthy, or degraded when a configured signing
          key could not be loaded
        - Active ruleset and number of evidence packs held in memory
    """
    signing_configured = container.signer is not None
    if not signing_configured:
        signing = "disabled"
    elif container.signing_available:
        signing = "enabled"
    else:
        signing = "degraded"

    return {
        "status": "degraded" if signing == "degraded" else "healthy",
        "service": container.settings.app_name,
        "version": container.settings.app_version,
        "ruleset_id": container.ruleset.ruleset_id,
        "signing": signing,
        "evidence_entries": len(container.store),
        "uptime_seconds": round(time.time() - _start_time, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
