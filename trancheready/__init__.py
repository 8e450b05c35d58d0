"""
TrancheReady Core Package
=========================

AML/CTF client risk scoring with tamper-evident evidence packs.

This package contains:
    - scoring/: Versioned ruleset and risk scoring engine
    - evidence/: Manifest, signing, verification, token store, assembly
    - ingestion/: CSV normalization of client and transaction uploads
    - api/: FastAPI REST API layer
    - pipeline: Upload to evidence-pack orchestration

Author: TrancheReady Team
Version: 1.0.0
"""

__version__ = "1.0.0"
