"""
TrancheReady Evidence Routes
============================

Upload, validation, verification and download endpoints.

Endpoints:
    GET  /api/templates          - Header-only CSV templates
    POST /api/validate           - Dry-run normalization of both CSV files
    POST /upload                 - Score and build a token-gated evidence pack
    GET  /verify/{token}         - Manifest and verification result
    GET  /download/{token}       - Evidence ZIP

Author: TrancheReady Team
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from shared.schemas.records import LookbackWindow
from shared.schemas.risk import RiskScoreResult
from trancheready.api.dependencies import ServiceContainer, get_container, get_token_store
from trancheready.api.ratelimit import HEAVY_LIMIT, limiter
from trancheready.evidence.token_store import EvidenceTokenStore
from trancheready.evidence.verify import verify_archive
from trancheready.ingestion.normalize import (
    ClientBatch,
    CsvFormatError,
    TransactionBatch,
    csv_template,
    normalize_clients,
    normalize_transactions,
    parse_csv,
)
from trancheready.logging import get_logger
from trancheready.pipeline import run_evidence_pipeline

logger = get_logger(__name__)

router = APIRouter(tags=["Evidence"])

LINK_EXPIRED = "Link expired or not found."
ARCHIVE_FILENAME = "trancheready-evidence.zip"


# =============================================================================
# Response Models
# =============================================================================

class ValidateCounts(BaseModel):
    clients: int
    txs: int
    rejects: int


class ValidateResponse(BaseModel):
    """Response model for a dry-run validation."""
    ok: bool = True
    counts: ValidateCounts
    clientHeaderMap: Dict[str, str]
    txHeaderMap: Dict[str, str]
    rejects: List[Dict[str, Any]]
    lookback: LookbackWindow


class UploadResponse(BaseModel):
    """Response model for a generated evidence pack."""
    ok: bool = True
    ruleset_id: str
    risk: List[RiskScoreResult]
    verify_url: str
    download_url: str
    expires_at: str


# =============================================================================
# Helpers
# =============================================================================

async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"{upload.filename} exceeds {max_bytes} bytes")
    return data


async def _normalize_uploads(
    clients: Optional[UploadFile],
    transactions: Optional[UploadFile],
    container: ServiceContainer,
) -> Tuple[ClientBatch, TransactionBatch]:
    if clients is None or transactions is None:
        raise HTTPException(
            status_code=400,
            detail="Both files required: clients, transactions",
        )

    max_bytes = container.settings.max_upload_bytes
    client_bytes = await _read_upload(clients, max_bytes)
    tx_bytes = await _read_upload(transactions, max_bytes)

    try:
        client_batch = normalize_clients(parse_csv(client_bytes))
        tx_batch = normalize_transactions(parse_csv(tx_bytes))
    except CsvFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return client_batch, tx_batch


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/api/templates", summary="CSV Template")
async def get_template(
    name: str = Query("clients", description="clients or transactions"),
) -> Response:
    """Download a header-only CSV template."""
    kind = "transactions" if name.lower() == "transactions" else "clients"
    filename = "Transactions.template.csv" if kind == "transactions" else "Clients.template.csv"
    return Response(
        content=csv_template(kind),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/validate", response_model=ValidateResponse, summary="Validate Uploads")
@limiter.limit(HEAVY_LIMIT)
async def validate_uploads(
    request: Request,
    clients: Optional[UploadFile] = File(None),
    transactions: Optional[UploadFile] = File(None),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """
    Normalize both files without scoring them.

    Reports record counts, how headers were mapped, rejected rows and the
    lookback window that scoring would use.
    """
    client_batch, tx_batch = await _normalize_uploads(clients, transactions, container)
    rejects = [r.to_dict() for r in client_batch.rejects + tx_batch.rejects]

    return {
        "ok": True,
        "counts": {
            "clients": len(client_batch.clients),
            "txs": len(tx_batch.transactions),
            "rejects": len(rejects),
        },
        "clientHeaderMap": client_batch.header_map,
        "txHeaderMap": tx_batch.header_map,
        "rejects": rejects,
        "lookback": tx_batch.lookback,
    }


@router.post("/upload", response_model=UploadResponse, summary="Generate Evidence Pack")
@limiter.limit(HEAVY_LIMIT)
async def upload(
    request: Request,
    clients: Optional[UploadFile] = File(None),
    transactions: Optional[UploadFile] = File(None),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """
    Score the uploaded client book and build its evidence pack.

    - **risk**: per-client score, band and reasons
    - **verify_url** / **download_url**: token links valid for the
      configured TTL
    """
    client_batch, tx_batch = await _normalize_uploads(clients, transactions, container)

    try:
        result = await run_in_threadpool(
            run_evidence_pipeline,
            client_batch,
            tx_batch,
            container.assembler,
            container.ruleset,
        )
    except Exception:
        logger.exception("evidence_generation_failed")
        raise HTTPException(status_code=500, detail="Processing failed.")

    package = result.package
    return {
        "ok": True,
        "ruleset_id": result.scoring.meta.ruleset_id,
        "risk": result.scoring.scores,
        "verify_url": package.verify_url,
        "download_url": package.download_url,
        "expires_at": package.expires_at.isoformat(),
    }


@router.get("/verify/{token}", summary="Verify Evidence")
async def verify(
    token: str,
    container: ServiceContainer = Depends(get_container),
) -> Any:
    """Manifest of an evidence pack with a fresh integrity check of its archive."""
    entry = container.store.get(token)
    if entry is None:
        return PlainTextResponse(LINK_EXPIRED, status_code=404)

    public_key = container.public_key_b64
    verification = verify_archive(entry.archive, public_key or None)
    return {
        "manifest": entry.manifest.to_dict(),
        "public_key": public_key,
        "verification": verification.to_dict(),
        "expires_at": entry.expires_at.isoformat(),
    }


@router.get("/download/{token}", summary="Download Evidence")
async def download(
    token: str,
    store: EvidenceTokenStore = Depends(get_token_store),
) -> Response:
    """Evidence ZIP for a live token."""
    entry = store.get(token)
    if entry is None:
        return PlainTextResponse(LINK_EXPIRED, status_code=404)
    return Response(
        content=entry.archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
    )
