"""
TrancheReady API Routes Package
===============================

FastAPI route modules.

Author: TrancheReady Team
Version: 1.0.0
"""

from trancheready.api.routes.evidence import router as evidence_router
from trancheready.api.routes.health import router as health_router

__all__ = [
    "evidence_router",
    "health_router",
]
