"""
Evidence Assembly
=================

Packages one scoring run into a tamper-evident, time-limited evidence pack.

Steps:
    1. Serialize clients, transactions, scores, cases and the cover page
       into named byte blobs
    2. Build the manifest over those blobs (signed when a key is configured)
    3. Append ``manifest.json`` and zip everything
    4. Register the archive under a fresh token and hand back the
       verify/download links

Author: TrancheReady Team
Version: 1.0.0
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from urllib.parse import quote, urljoin

from shared.schemas.evidence import EvidenceManifest
from shared.schemas.records import ClientProfile, TransactionRecord
from trancheready.evidence.archive import zip_named_buffers
from trancheready.evidence.cases import Case
from trancheready.evidence.manifest import ManifestSigner, build_manifest
from trancheready.evidence.token_store import EvidenceTokenStore, new_token
from trancheready.evidence.verify import MANIFEST_NAME
from trancheready.logging import get_logger
from trancheready.scoring.engine import ScoringOutput

logger = get_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json_bytes(data: Any) -> bytes:
    """Pretty-printed UTF-8 JSON; amounts become numbers, dates ISO strings."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default).encode("utf-8")


@dataclass(frozen=True)
class EvidencePackage:
    """Handle returned to the caller for a stored evidence pack."""
    token: str
    verify_url: str
    download_url: str
    manifest: EvidenceManifest
    expires_at: datetime


class EvidenceAssembler:
    """
    Builds, signs, archives and registers evidence packs.

    Example:
        assembler = EvidenceAssembler(store, signer, app_origin="https://app.example")
        package = assembler.assemble(clients, txs, scoring, cases, report_html)
        print(package.verify_url)
    """

    def __init__(
        self,
        store: EvidenceTokenStore,
        signer: Optional[ManifestSigner] = None,
        app_origin: str = "http://localhost:10000",
        ttl_minutes: int = 60,
        sweep_on_put: bool = True,
        archiver: Callable[[Mapping[str, bytes]], bytes] = zip_named_buffers,
        token_factory: Callable[[], str] = new_token,
    ):
        """
        Initialize the assembler.

        Args:
            store: Token store that will hold the archives
            signer: Optional manifest signer
            app_origin: Base origin for verify/download links
            ttl_minutes: Link lifetime
            sweep_on_put: Evict expired entries before each insert
            archiver: Turns named blobs into archive bytes
            token_factory: Produces new unguessable tokens
        """
        self.store = store
        self.signer = signer
        self.app_origin = app_origin
        self.ttl_minutes = ttl_minutes
        self.sweep_on_put = sweep_on_put
        self._archive = archiver
        self._new_token = token_factory

    def build_files(
        self,
        clients: Sequence[ClientProfile],
        transactions: Sequence[TransactionRecord],
        scoring: ScoringOutput,
        cases: Sequence[Case],
        report_html: bytes,
    ) -> Dict[str, bytes]:
        """Named blobs covered by the manifest, in pack order."""
        return {
            "clients.json": to_json_bytes([c.model_dump() for c in clients]),
            "transactions.json": to_json_bytes([t.model_dump() for t in transactions]),
            "risk.json": to_json_bytes({
                "meta": scoring.meta.model_dump(),
                "scores": [s.model_dump() for s in scoring.scores],
            }),
            "cases.json": to_json_bytes([c.to_dict() for c in cases]),
            "program.html": report_html,
        }

    def link(self, kind: str, token: str) -> str:
        """Absolute ``/verify/<token>`` or ``/download/<token>`` URL."""
        return urljoin(self.app_origin, f"/{kind}/{quote(token, safe='')}")

    def assemble(
        self,
        clients: Sequence[ClientProfile],
        transactions: Sequence[TransactionRecord],
        scoring: ScoringOutput,
        cases: Sequence[Case],
        report_html: bytes,
    ) -> EvidencePackage:
        """
        Build and register the evidence pack for one scoring run.

        Returns:
            EvidencePackage with the token and its verify/download links
        """
        files = self.build_files(clients, transactions, scoring, cases, report_html)
        manifest = build_manifest(files, scoring.meta, signer=self.signer)

        packed = dict(files)
        packed[MANIFEST_NAME] = to_json_bytes(manifest.to_dict())
        archive = self._archive(packed)

        if self.sweep_on_put:
            self.store.sweep_expired()

        token = self._new_token()
        entry = self.store.put(token, archive, manifest, self.ttl_minutes)

        logger.info(
            "evidence_generated",
            ruleset_id=manifest.ruleset_id,
            files=len(packed),
            archive_bytes=len(archive),
            signed=manifest.is_signed,
            clients=len(clients),
            transactions=len(transactions),
        )

        return EvidencePackage(
            token=token,
            verify_url=self.link("verify", token),
            download_url=self.link("download", token),
            manifest=manifest,
            expires_at=entry.expires_at,
        )
