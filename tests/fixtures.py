"""
Test Fixtures for CSV Uploads
=============================

Small but realistic client book for ingestion, pipeline and API tests:
    - 4 clients (one clean, one PEP, one structuring, one corridor)
    - 10 transactions, two of which are unusable
    - Expected scoring outcomes

Author: TrancheReady Team
Version: 1.0.0
"""

CLIENTS_CSV = (
    "\ufeffClient ID,PEP,Sanctions,KYC Review Date,Channel,Services,Country\n"
    "C-100,no,no,2025-06-01,Branch,Advice,AU\n"
    "C-200,Yes,,2025-05-01,Branch,Advice,AU\n"
    "C-300,,,2023-01-15,Online,Remittance,AU\n"
    "C-400,n,n,not recorded,Phone,Property,CN\n"
    "\n"
    ",yes,yes,2025-01-01,,,\n"
    "C-100,yes,yes,2025-01-01,,,\n"
).encode("utf-8")

TRANSACTIONS_CSV = (
    "Client ID,Txn Date,Direction,Payment Method,CCY,Amount,Counterparty Country\n"
    "C-300,2025-09-01,in,Cash,aud,\"$9,700.00\",\n"
    "C-300,03/09/2025,credit,cash,AUD,9800,\n"
    "C-300,2025-09-05,IN,cash,AUD,9650,\n"
    "C-300,2025-09-07,in,cash,AUD,9999,\n"
    "C-400,2025-10-01,out,wire,AUD,25000,cn\n"
    "C-400,2025-10-15,out,wire,AUD,1200,HK\n"
    "C-100,2025-10-31,in,wire,AUD,12.50,AU\n"
    "C-100,2023-01-01,in,wire,AUD,500000,\n"
    "C-200,31/31/2025,in,cash,AUD,100,\n"
    "C-200,2025-10-02,sideways,cash,AUD,100,\n"
).encode("utf-8")

# Latest accepted transaction date, hence the lookback end
LOOKBACK_END = "2025-10-31"
LOOKBACK_START = "2024-04-30"

EXPECTED_SCORES = {
    # clean; the 2023 transfer falls before the lookback
    "C-100": (0, "Low"),
    # PEP
    "C-200": (20, "Medium"),
    # stale KYC 5 + online 3 + remittance 6 + structuring 12
    "C-300": (26, "Medium"),
    # property 4 + residency 8 + corridor 10
    "C-400": (22, "Medium"),
}

EXPECTED_CLIENT_REJECTS = [
    {"file": "clients", "row": 7, "reason": "missing client_id"},
    {"file": "clients", "row": 8, "reason": "duplicate client_id C-100"},
]

EXPECTED_TRANSACTION_REJECTS = [
    {"file": "transactions", "row": 10, "reason": "invalid date"},
    {"file": "transactions", "row": 11, "reason": "invalid direction"},
]
