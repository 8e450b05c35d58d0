"""
TrancheReady API Package
========================

FastAPI REST API layer.

This package provides:
    - main: FastAPI application and route configuration
    - routes/: Endpoint implementations
    - dependencies: Service container and dependency injection
    - ratelimit: Shared slowapi limiter

Author: TrancheReady Team
Version: 1.0.0
"""
