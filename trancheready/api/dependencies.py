"""
TrancheReady API Dependencies
=============================

FastAPI dependency injection for shared resources.

Provides one container per application holding:
    - EvidenceTokenStore (the only shared mutable state)
    - Optional Ed25519 manifest signer
    - EvidenceAssembler bound to both
    - The active scoring ruleset

Author: TrancheReady Team
Version: 1.0.0
"""

from typing import Optional

from fastapi import Request

from trancheready.config import Settings, settings as default_settings
from trancheready.evidence.assembly import EvidenceAssembler
from trancheready.evidence.signing import Ed25519Signer, SigningKeyError
from trancheready.evidence.token_store import EvidenceTokenStore
from trancheready.logging import get_logger
from trancheready.scoring.ruleset import Ruleset, get_ruleset

logger = get_logger(__name__)


class ServiceContainer:
    """
    Container for shared services.

    Signing runs in degraded mode when the configured key pair is
    unusable: evidence is still produced, just unsigned.
    """

    _instance: Optional["ServiceContainer"] = None

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[EvidenceTokenStore] = None,
        signer: Optional[Ed25519Signer] = None,
    ):
        self.settings = settings if settings is not None else default_settings
        self.store = store if store is not None else EvidenceTokenStore()
        self.signer = signer if signer is not None else Ed25519Signer.from_settings(self.settings)
        self.ruleset: Ruleset = get_ruleset(self.settings.ruleset_id)
        self.assembler = EvidenceAssembler(
            store=self.store,
            signer=self.signer,
            app_origin=self.settings.app_origin,
            ttl_minutes=self.settings.verify_ttl_min,
            sweep_on_put=self.settings.verify_sweep_on_put,
        )
        self.signing_available = False
        self._initialized = False

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        """Get or create the process-wide default instance."""
        if cls._instance is None:
            cls._instance = ServiceContainer()
        return cls._instance

    def initialize(self) -> None:
        """Check configured services (graceful degradation on failure)."""
        if self._initialized:
            return

        logger.info("Initializing service container...")

        if self.signer is None:
            logger.info("manifest_signing_disabled", reason="no key pair configured")
        else:
            try:
                self.signer.check()
                self.signing_available = True
                logger.info("manifest_signing_enabled", key_id=self.signer.key_id)
            except SigningKeyError as e:
                logger.warning(
                    "manifest_signing_degraded",
                    key_id=self.signer.key_id,
                    error=str(e),
                )

        self._initialized = True
        logger.info(
            "service_container_ready",
            ruleset_id=self.ruleset.ruleset_id,
            verify_ttl_min=self.settings.verify_ttl_min,
        )

    @property
    def public_key_b64(self) -> str:
        """Public key published to verifiers (empty when signing is off)."""
        if self.signer is not None:
            return self.signer.public_key_b64
        return self.settings.sign_public_key

    def shutdown(self) -> None:
        """Release services; evidence held in memory is dropped with the process."""
        logger.info("service_container_shutdown", evidence_entries=len(self.store))
        self._initialized = False


# =============================================================================
# FastAPI Dependencies
# =============================================================================

def get_container(request: Request) -> ServiceContainer:
    """Container attached to the running application."""
    return request.app.state.container


def get_token_store(request: Request) -> EvidenceTokenStore:
    return get_container(request).store


def get_assembler(request: Request) -> EvidenceAssembler:
    return get_container(request).assembler
