"""
TrancheReady Configuration Module
=================================

Centralized configuration management using Pydantic Settings.

Loads configuration from:
    1. Environment variables (prefixed with TRANCHEREADY_)
    2. .env file (if present)
    3. Default values

Usage:
    from trancheready.config import settings

    print(settings.app_origin)
    print(settings.verify_ttl_min)

Author: TrancheReady Team
Version: 1.0.0
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Naming convention: TRANCHEREADY_UPPER_SNAKE_CASE in env,
    lower_snake_case in code.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRANCHEREADY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="TrancheReady", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # =========================================================================
    # API Server
    # =========================================================================

    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=10000, description="API server port")
    app_origin: str = Field(
        default="http://localhost:10000",
        description="Public origin used to build verify/download links"
    )
    cors_allowed_origins: str = Field(
        default="",
        description="Allowed CORS origins (comma-separated, empty = any)"
    )
    max_upload_bytes: int = Field(
        default=25 * 1024 * 1024,
        gt=0,
        description="Maximum size of a single uploaded CSV file"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        return origins or ["*"]

    # =========================================================================
    # Rate Limiting
    # =========================================================================

    rate_limit_enabled: bool = Field(default=True, description="Enable request rate limiting")
    rate_limit_default: str = Field(
        default="300/15minutes",
        description="Default per-client limit for all routes"
    )
    rate_limit_heavy: str = Field(
        default="60/10minutes",
        description="Per-client limit for upload and validation routes"
    )

    # =========================================================================
    # Request Logging
    # =========================================================================

    request_log_sample: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Fraction of requests logged by the request middleware"
    )

    # =========================================================================
    # Evidence Links
    # =========================================================================

    verify_ttl_min: int = Field(
        default=60,
        gt=0,
        description="Lifetime of verify/download links (minutes)"
    )
    verify_sweep_on_put: bool = Field(
        default=True,
        description="Evict expired evidence entries whenever a new one is stored"
    )

    # =========================================================================
    # Manifest Signing (optional Ed25519, base64 raw keys)
    # =========================================================================

    sign_public_key: str = Field(default="", description="Base64 raw Ed25519 public key")
    sign_private_key: str = Field(
        default="",
        description="Base64 raw Ed25519 secret key (32-byte seed or 64-byte seed+public)"
    )
    sign_key_id: str = Field(default="app", description="Key id recorded as ed25519:<key_id>")

    @property
    def signing_configured(self) -> bool:
        """Whether both halves of the signing key pair are present."""
        return bool(self.sign_public_key and self.sign_private_key)

    # =========================================================================
    # Scoring
    # =========================================================================

    ruleset_id: str = Field(
        default="dnfbp-2025.11",
        description="Identifier of the scoring ruleset to apply"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
