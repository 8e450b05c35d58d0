"""
Program Report
==============

Renders ``program.html``, the human-readable cover page of an evidence
pack: ruleset metadata, how uploaded CSV headers were mapped, and which
rows were rejected during normalization.

Author: TrancheReady Team
Version: 1.0.0
"""

import html
import json
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from shared.schemas.risk import RulesetMetadata
from trancheready.evidence.manifest import utc_timestamp

_STYLE = (
    "body{font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial;"
    "line-height:1.55;padding:24px;color:#0D1321}"
    "code,pre{font-family:ui-monospace,Menlo,Consolas,monospace;background:#F7F9FD;"
    "border:1px solid #E6EAF2;border-radius:8px;padding:10px;display:block;overflow:auto}"
)


def _pre(value: Any) -> str:
    return f"<pre>{html.escape(json.dumps(value, indent=2, ensure_ascii=False))}</pre>"


def render_program_html(
    meta: RulesetMetadata,
    client_header_map: Dict[str, str],
    tx_header_map: Dict[str, str],
    rejects: Sequence[Dict[str, Any]],
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Render the evidence cover page.

    Args:
        meta: Ruleset metadata of the scoring run
        client_header_map: Original to canonical client CSV headers
        tx_header_map: Original to canonical transaction CSV headers
        rejects: Row rejects from normalization
        generated_at: Timestamp shown on the page (defaults to now)

    Returns:
        UTF-8 encoded HTML document
    """
    parts = [
        '<!doctype html><meta charset="utf-8"><title>TrancheReady Evidence</title>',
        f"<style>{_STYLE}</style>",
        "<h1>TrancheReady Evidence</h1>",
        f"<p>Generated: {html.escape(utc_timestamp(generated_at))}</p>",
        "<h2>Ruleset</h2>",
        _pre(meta.model_dump(mode="json")),
        "<h2>Header Mapping</h2>",
        _pre({"clients": client_header_map, "transactions": tx_header_map}),
        "<h2>Row Rejects</h2>",
        _pre(list(rejects)),
    ]
    return "".join(parts).encode("utf-8")
