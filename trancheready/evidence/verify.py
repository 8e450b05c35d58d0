"""
Evidence Verification
=====================

Independent re-checking of an evidence manifest: recompute each file's
digest and, when the manifest is signed, re-verify the Ed25519 signature
over the canonical manifest bytes.

An unsigned manifest is reported as ``unsigned``, never as an invalid
signature.

Author: TrancheReady Team
Version: 1.0.0
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from shared.schemas.evidence import HASH_ALGO, EvidenceManifest
from trancheready.evidence.archive import ArchiveFormatError, read_named_buffers
from trancheready.evidence.manifest import canonical_manifest_bytes, sha256_hex
from trancheready.evidence.signing import SigningKeyError, load_public_key, verify_signature
from trancheready.logging import get_logger

logger = get_logger(__name__)

MANIFEST_NAME = "manifest.json"


class SignatureStatus(str, Enum):
    """Outcome of signature verification."""
    VALID = "valid"
    INVALID = "invalid"
    UNSIGNED = "unsigned"
    NO_PUBLIC_KEY = "no_public_key"


class FileStatus(str, Enum):
    """Outcome of one file digest check."""
    OK = "ok"
    MISMATCH = "mismatch"
    MISSING = "missing"


@dataclass
class FileCheck:
    """Digest comparison for one manifest entry."""
    name: str
    status: FileStatus
    expected_sha256: str
    actual_sha256: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "expected_sha256": self.expected_sha256,
            "actual_sha256": self.actual_sha256,
        }


@dataclass
class ManifestVerification:
    """Result of verifying a manifest (and optionally its files)."""
    signature_status: SignatureStatus
    files: List[FileCheck] = field(default_factory=list)
    hash_algo_supported: bool = True

    @property
    def digests_ok(self) -> bool:
        """No checked file differs from its recorded digest."""
        return self.hash_algo_supported and all(
            f.status != FileStatus.MISMATCH for f in self.files
        )

    @property
    def intact(self) -> bool:
        """Digests hold and the signature, if any, is not invalid."""
        return self.digests_ok and self.signature_status != SignatureStatus.INVALID

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature_status": self.signature_status.value,
            "digests_ok": self.digests_ok,
            "intact": self.intact,
            "files": [f.to_dict() for f in self.files],
        }


def check_signature(manifest: EvidenceManifest, public_key: Optional[str]) -> SignatureStatus:
    """Verify the manifest's signature block against ``public_key``."""
    if manifest.signing is None:
        return SignatureStatus.UNSIGNED
    if not public_key:
        return SignatureStatus.NO_PUBLIC_KEY

    try:
        key = load_public_key(public_key)
    except SigningKeyError as e:
        logger.warning("verification_public_key_unusable", error=str(e))
        return SignatureStatus.NO_PUBLIC_KEY

    message = canonical_manifest_bytes(manifest.files, manifest.created_utc, manifest.ruleset_id)
    if verify_signature(message, manifest.signing.signature, key):
        return SignatureStatus.VALID
    return SignatureStatus.INVALID


def verify_manifest(
    manifest: EvidenceManifest,
    files: Optional[Mapping[str, bytes]] = None,
    public_key: Optional[str] = None,
) -> ManifestVerification:
    """
    Verify a manifest and, if given, the file bytes it describes.

    Args:
        manifest: Manifest to check
        files: Optional name to bytes mapping; entries absent from it are
            reported as missing
        public_key: Base64 raw Ed25519 public key

    Returns:
        ManifestVerification
    """
    checks: List[FileCheck] = []
    if files is not None:
        for entry in manifest.files:
            data = files.get(entry.name)
            if data is None:
                checks.append(FileCheck(entry.name, FileStatus.MISSING, entry.sha256))
                continue
            actual = sha256_hex(data)
            ok = actual == entry.sha256 and len(data) == entry.bytes
            checks.append(FileCheck(
                entry.name,
                FileStatus.OK if ok else FileStatus.MISMATCH,
                entry.sha256,
                actual,
            ))

    return ManifestVerification(
        signature_status=check_signature(manifest, public_key),
        files=checks,
        hash_algo_supported=manifest.hash_algo == HASH_ALGO,
    )


def verify_archive(archive: bytes, public_key: Optional[str] = None) -> ManifestVerification:
    """
    Verify a downloaded evidence ZIP against the manifest it contains.

    Raises:
        ArchiveFormatError: If the archive has no readable manifest
    """
    files = read_named_buffers(archive)
    raw = files.pop(MANIFEST_NAME, None)
    if raw is None:
        raise ArchiveFormatError(f"archive has no {MANIFEST_NAME}")
    try:
        manifest = EvidenceManifest.model_validate(json.loads(raw.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        raise ArchiveFormatError(f"unreadable {MANIFEST_NAME}: {e}") from e
    return verify_manifest(manifest, files, public_key)
