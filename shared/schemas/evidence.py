"""
Evidence Manifest Schema
========================

Structured record of content digests (and optional signature) over the
files of an evidence pack.

The serialized form of these models is consumed by external verifiers.
Do NOT change field names or ordering without versioning.

Example:
    {
        "created_utc": "2025-11-03T04:12:09.512Z",
        "hash_algo": "SHA-256",
        "ruleset_id": "dnfbp-2025.11",
        "files": [
            {"name": "clients.json", "bytes": 2048, "sha256": "9f86d0..."}
        ],
        "signing": {"key_id": "ed25519:app", "signature": "q83v..."}
    }

Author: TrancheReady Team
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

HASH_ALGO = "SHA-256"


class FileDigestEntry(BaseModel):
    """Digest of one evidence file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="File name inside the evidence pack")
    bytes: int = Field(..., ge=0, description="Byte length of the file")
    sha256: str = Field(..., description="Lower-case hex SHA-256 digest")


class ManifestSigning(BaseModel):
    """Detached signature over the canonical manifest form."""

    model_config = ConfigDict(frozen=True)

    key_id: str = Field(..., description="Signature scheme and key, e.g. ed25519:app")
    signature: str = Field(..., description="Base64 detached signature")


class EvidenceManifest(BaseModel):
    """
    Manifest of an evidence pack.

    ``signing`` is present only when a key pair was configured and
    signing succeeded.
    """

    model_config = ConfigDict(frozen=True)

    created_utc: str = Field(..., description="ISO-8601 UTC creation time")
    hash_algo: str = Field(default=HASH_ALGO, description="Digest algorithm identifier")
    ruleset_id: str = Field(..., description="Ruleset that produced the scores")
    files: List[FileDigestEntry] = Field(default_factory=list)
    signing: Optional[ManifestSigning] = None

    @property
    def is_signed(self) -> bool:
        return self.signing is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output, omitting ``signing`` when unsigned."""
        return self.model_dump(mode="json", exclude_none=True)
