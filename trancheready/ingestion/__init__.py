"""
TrancheReady Ingestion Package
==============================

CSV parsing and normalization of uploaded client and transaction files.

Author: TrancheReady Team
Version: 1.0.0
"""

from trancheready.ingestion.normalize import (
    ClientBatch,
    CsvFormatError,
    CsvTable,
    RowReject,
    TransactionBatch,
    csv_template,
    normalize_clients,
    normalize_transactions,
    parse_csv,
)

__all__ = [
    "ClientBatch",
    "CsvFormatError",
    "CsvTable",
    "RowReject",
    "TransactionBatch",
    "csv_template",
    "normalize_clients",
    "normalize_transactions",
    "parse_csv",
]
