"""
Rate Limiting
=============

Per-client request limits via slowapi. The default limit applies to every
route; upload and validation routes carry the stricter heavy limit.

Author: TrancheReady Team
Version: 1.0.0
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from trancheready.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

HEAVY_LIMIT = settings.rate_limit_heavy
