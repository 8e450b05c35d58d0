"""
TrancheReady Evidence Package
=============================

Tamper-evident, time-limited evidence packs for scoring runs.

This package provides:
    - manifest: SHA-256 file digests and the canonical signing form
    - signing: Ed25519 key loading, signing and signature checks
    - verify: Independent re-verification of manifests and archives
    - token_store: Expiring, token-gated in-memory evidence cache
    - cases / report / archive: Case list, cover page and ZIP packaging
    - assembly: Orchestrates the above for one scoring run

Author: TrancheReady Team
Version: 1.0.0
"""

from trancheready.evidence.assembly import EvidenceAssembler, EvidencePackage
from trancheready.evidence.manifest import (
    build_manifest,
    canonical_manifest_bytes,
    sha256_hex,
)
from trancheready.evidence.signing import Ed25519Signer, SigningKeyError
from trancheready.evidence.token_store import CachedEvidence, EvidenceTokenStore, new_token
from trancheready.evidence.verify import (
    ManifestVerification,
    SignatureStatus,
    verify_archive,
    verify_manifest,
)

__all__ = [
    "EvidenceAssembler",
    "EvidencePackage",
    "build_manifest",
    "canonical_manifest_bytes",
    "sha256_hex",
    "Ed25519Signer",
    "SigningKeyError",
    "CachedEvidence",
    "EvidenceTokenStore",
    "new_token",
    "ManifestVerification",
    "SignatureStatus",
    "verify_archive",
    "verify_manifest",
]
