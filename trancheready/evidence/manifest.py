"""
Evidence Manifest Builder
=========================

Content digests and optional signature over the files of an evidence pack.

The canonical signing form is compact UTF-8 JSON of exactly
``{"files": [...], "created_utc": ..., "ruleset_id": ...}`` with file
entries keyed ``name, bytes, sha256`` in that order. Manifests issued
earlier were signed over this byte sequence, so it must never change.

Author: TrancheReady Team
Version: 1.0.0
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import List, Mapping, Optional, Protocol, Sequence

from shared.schemas.evidence import (
    HASH_ALGO,
    EvidenceManifest,
    FileDigestEntry,
    ManifestSigning,
)
from shared.schemas.risk import RulesetMetadata
from trancheready.logging import get_logger

logger = get_logger(__name__)


class ManifestSigner(Protocol):
    """Anything that can produce a detached base64 signature."""
    key_id: str

    def sign(self, message: bytes) -> str: ...


def sha256_hex(data: bytes) -> str:
    """Lower-case hex SHA-256 of ``data``."""
    return hashlib.sha256(data).hexdigest()


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def digest_files(files: Mapping[str, bytes]) -> List[FileDigestEntry]:
    """One digest entry per file, in mapping order."""
    return [
        FileDigestEntry(name=name, bytes=len(data), sha256=sha256_hex(data))
        for name, data in files.items()
    ]


def canonical_manifest_bytes(
    files: Sequence[FileDigestEntry],
    created_utc: str,
    ruleset_id: str,
) -> bytes:
    """The exact byte sequence that is signed and verified."""
    payload = {
        "files": [
            {"name": f.name, "bytes": f.bytes, "sha256": f.sha256}
            for f in files
        ],
        "created_utc": created_utc,
        "ruleset_id": ruleset_id,
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_manifest(
    files: Mapping[str, bytes],
    meta: RulesetMetadata,
    signer: Optional[ManifestSigner] = None,
    now: Optional[datetime] = None,
) -> EvidenceManifest:
    """
    Build the manifest for a set of evidence files.

    Args:
        files: File name to exact file bytes, in pack order
        meta: Metadata of the scoring run the files belong to
        signer: Optional signer; when absent the manifest is unsigned
        now: Creation time override (defaults to the current UTC time)

    Returns:
        EvidenceManifest, signed when a signer is given and signing succeeds.
        A signing failure never aborts evidence generation: the manifest
        comes back unsigned and a ``manifest_signing_failed`` event is logged.
    """
    entries = digest_files(files)
    created_utc = utc_timestamp(now)

    signing = None
    if signer is not None:
        try:
            message = canonical_manifest_bytes(entries, created_utc, meta.ruleset_id)
            signing = ManifestSigning(key_id=signer.key_id, signature=signer.sign(message))
        except Exception as e:
            logger.warning(
                "manifest_signing_failed",
                key_id=getattr(signer, "key_id", None),
                ruleset_id=meta.ruleset_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            signing = None

    return EvidenceManifest(
        created_utc=created_utc,
        hash_algo=HASH_ALGO,
        ruleset_id=meta.ruleset_id,
        files=entries,
        signing=signing,
    )
