"""
CSV Normalization
=================

Turns uploaded client and transaction CSV files into typed records.

Headers are matched loosely (case, punctuation and common aliases are
ignored) and every mapping is reported back so it can be shown in the
evidence pack. Transaction rows that cannot be typed are rejected with a
reason and never reach the scoring engine.

Usage:
    table = parse_csv(upload_bytes)
    batch = normalize_transactions(table)
    print(batch.lookback, len(batch.rejects))

Author: TrancheReady Team
Version: 1.0.0
"""

import calendar
import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from shared.schemas.records import ClientProfile, Direction, LookbackWindow, TransactionRecord

LOOKBACK_MONTHS = 18

TRUE_VALUES = frozenset({"true", "yes", "y", "1"})

CLIENT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "client_id": (
        "client_id", "clientid", "client", "customer_id", "customerid",
        "customer", "client_number", "customer_number", "id",
    ),
    "pep_flag": ("pep_flag", "pep", "is_pep", "politically_exposed", "pep_status"),
    "sanctions_flag": ("sanctions_flag", "sanctions", "sanctioned", "sanctions_hit", "is_sanctioned"),
    "kyc_last_reviewed_at": (
        "kyc_last_reviewed_at", "kyc_last_reviewed", "kyc_review_date",
        "last_kyc_review", "kyc_date", "last_reviewed", "kyc_reviewed_at",
    ),
    "delivery_channel": ("delivery_channel", "channel", "onboarding_channel", "service_channel"),
    "services": ("services", "service", "designated_services", "products"),
    "residency_country": (
        "residency_country", "residency", "country", "country_of_residence",
        "residence_country", "residency_country_code",
    ),
}

TRANSACTION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "client_id": CLIENT_ALIASES["client_id"],
    "date": ("date", "txn_date", "transaction_date", "booking_date", "value_date", "tx_date"),
    "direction": ("direction", "dir", "in_out", "flow", "debit_credit"),
    "method": ("method", "payment_method", "txn_method", "instrument", "channel"),
    "currency": ("currency", "ccy", "currency_code"),
    "amount": ("amount", "amt", "value", "txn_amount", "transaction_amount"),
    "counterparty_country": (
        "counterparty_country", "cp_country", "counterparty_country_code",
        "beneficiary_country", "destination_country",
    ),
}

REQUIRED_CLIENT_FIELDS = ("client_id",)
REQUIRED_TRANSACTION_FIELDS = ("client_id", "date", "direction", "amount")

DIRECTION_VALUES: Dict[str, Direction] = {
    "in": Direction.IN, "inbound": Direction.IN, "credit": Direction.IN,
    "cr": Direction.IN, "deposit": Direction.IN, "incoming": Direction.IN,
    "out": Direction.OUT, "outbound": Direction.OUT, "debit": Direction.OUT,
    "dr": Direction.OUT, "withdrawal": Direction.OUT, "outgoing": Direction.OUT,
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")


class CsvFormatError(ValueError):
    """Raised when an upload is not a usable CSV file."""
    pass


@dataclass(frozen=True)
class RowReject:
    """A data row that was dropped during normalization."""
    file: str
    row: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "row": self.row, "reason": self.reason}


@dataclass
class ClientBatch:
    """Normalized clients plus how their headers were mapped."""
    clients: List[ClientProfile]
    header_map: Dict[str, str]
    rejects: List[RowReject] = field(default_factory=list)


@dataclass
class TransactionBatch:
    """Normalized transactions, header mapping, rejects and derived lookback."""
    transactions: List[TransactionRecord]
    header_map: Dict[str, str]
    rejects: List[RowReject]
    lookback: LookbackWindow


# =============================================================================
# Parsing helpers
# =============================================================================

@dataclass(frozen=True)
class CsvTable:
    """
    A parsed CSV upload.

    ``line_numbers[i]`` is the file line (header = line 1) on which
    ``rows[i]`` ends, so rejects point at what a user sees in an editor.
    """
    headers: List[str]
    rows: List[Dict[str, str]]
    line_numbers: List[int]

    def records(self) -> Iterator[Tuple[int, Dict[str, str]]]:
        """Yield ``(line_number, row)`` pairs."""
        return zip(self.line_numbers, self.rows)


def parse_csv(data: bytes) -> CsvTable:
    """
    Parse a CSV upload with a header row.

    Accepts UTF-8 with or without BOM; blank lines are skipped but still
    counted for line numbers.

    Raises:
        CsvFormatError: If the bytes are not UTF-8, there is no header row,
            or the CSV structure is malformed (e.g. an oversized field)
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvFormatError(f"file is not UTF-8 encoded: {e}") from e

    reader = csv.DictReader(io.StringIO(text))
    rows: List[Dict[str, str]] = []
    line_numbers: List[int] = []
    try:
        headers = reader.fieldnames
        if not headers:
            raise CsvFormatError("file has no header row")

        for row in reader:
            values = [v for k, v in row.items() if k is not None]
            if any((v or "").strip() for v in values):
                rows.append(row)
                line_numbers.append(reader.line_num)
    except csv.Error as e:
        raise CsvFormatError(f"malformed CSV near line {reader.line_num}: {e}") from e

    return CsvTable(headers=list(headers), rows=rows, line_numbers=line_numbers)


def header_key(header: str) -> str:
    """Lower-case a header and collapse non-alphanumerics to underscores."""
    return re.sub(r"[^a-z0-9]+", "_", header.strip().lower()).strip("_")


def map_headers(
    headers: Iterable[str],
    aliases: Mapping[str, Sequence[str]],
) -> Dict[str, str]:
    """
    Map original headers to canonical field names.

    The first header matching a field wins; unrecognized headers are left
    out of the mapping.
    """
    lookup = {alias: canonical for canonical, names in aliases.items() for alias in names}
    mapping: Dict[str, str] = {}
    taken: Set[str] = set()
    for header in headers:
        if header is None:
            continue
        canonical = lookup.get(header_key(header))
        if canonical and canonical not in taken:
            mapping[header] = canonical
            taken.add(canonical)
    return mapping


def _require(header_map: Dict[str, str], required: Sequence[str], what: str) -> None:
    missing = [f for f in required if f not in header_map.values()]
    if missing:
        raise CsvFormatError(f"{what} file is missing required column(s): {', '.join(missing)}")


def _canonical_row(row: Mapping[str, Optional[str]], header_map: Mapping[str, str]) -> Dict[str, str]:
    return {canonical: (row.get(original) or "").strip() for original, canonical in header_map.items()}


def parse_flag(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def parse_date(value: str) -> Optional[date]:
    """Parse ISO or day-first dates; returns None when unparsable."""
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in DATE_FORMATS[1:]:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: str) -> Optional[Decimal]:
    """Parse an amount such as ``$9,700.00``; returns None when unusable."""
    text = re.sub(r"[\s,$]", "", value)
    if not text:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def subtract_months(day: date, months: int) -> date:
    """Same day ``months`` calendar months earlier, clamped to month length."""
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def derive_lookback(dates: Iterable[date], today: Optional[date] = None) -> LookbackWindow:
    """Lookback ending at the latest date (or today) and spanning 18 months."""
    end = max(dates, default=None) or today or date.today()
    return LookbackWindow(start=subtract_months(end, LOOKBACK_MONTHS), end=end)


# =============================================================================
# Normalizers
# =============================================================================

def normalize_clients(table: CsvTable) -> ClientBatch:
    """
    Normalize client rows.

    Rows without a client id are rejected; for duplicate ids the first row
    wins and later ones are rejected.

    Raises:
        CsvFormatError: If the client id column is missing
    """
    header_map = map_headers(table.headers, CLIENT_ALIASES)
    _require(header_map, REQUIRED_CLIENT_FIELDS, "clients")

    clients: List[ClientProfile] = []
    rejects: List[RowReject] = []
    seen: Set[str] = set()

    for number, row in table.records():
        values = _canonical_row(row, header_map)
        client_id = values.get("client_id", "")
        if not client_id:
            rejects.append(RowReject("clients", number, "missing client_id"))
            continue
        if client_id in seen:
            rejects.append(RowReject("clients", number, f"duplicate client_id {client_id}"))
            continue
        seen.add(client_id)

        clients.append(ClientProfile(
            client_id=client_id,
            pep_flag=parse_flag(values.get("pep_flag", "")),
            sanctions_flag=parse_flag(values.get("sanctions_flag", "")),
            kyc_last_reviewed_at=parse_date(values.get("kyc_last_reviewed_at", "")),
            delivery_channel=values.get("delivery_channel", ""),
            services=values.get("services", ""),
            residency_country=values.get("residency_country") or None,
        ))

    return ClientBatch(clients=clients, header_map=header_map, rejects=rejects)


def normalize_transactions(
    table: CsvTable,
    today: Optional[date] = None,
) -> TransactionBatch:
    """
    Normalize transaction rows and derive the lookback window.

    Args:
        table: Parsed CSV upload
        today: Lookback end used when no transaction is accepted

    Raises:
        CsvFormatError: If a required column is missing
    """
    header_map = map_headers(table.headers, TRANSACTION_ALIASES)
    _require(header_map, REQUIRED_TRANSACTION_FIELDS, "transactions")

    transactions: List[TransactionRecord] = []
    rejects: List[RowReject] = []

    for number, row in table.records():
        values = _canonical_row(row, header_map)

        client_id = values.get("client_id", "")
        if not client_id:
            rejects.append(RowReject("transactions", number, "missing client_id"))
            continue

        txn_date = parse_date(values.get("date", ""))
        if txn_date is None:
            rejects.append(RowReject("transactions", number, "invalid date"))
            continue

        direction = DIRECTION_VALUES.get(values.get("direction", "").lower())
        if direction is None:
            rejects.append(RowReject("transactions", number, "invalid direction"))
            continue

        amount = parse_amount(values.get("amount", ""))
        if amount is None or amount < 0:
            rejects.append(RowReject("transactions", number, "invalid amount"))
            continue

        transactions.append(TransactionRecord(
            client_id=client_id,
            date=txn_date,
            direction=direction,
            method=values.get("method") or "other",
            currency=values.get("currency") or "AUD",
            amount=amount,
            counterparty_country=values.get("counterparty_country") or None,
        ))

    lookback = derive_lookback((t.date for t in transactions), today=today)
    return TransactionBatch(
        transactions=transactions,
        header_map=header_map,
        rejects=rejects,
        lookback=lookback,
    )


def csv_template(kind: str) -> str:
    """Header-only CSV template for ``clients`` or ``transactions``."""
    if kind == "transactions":
        fields = list(TRANSACTION_ALIASES)
    elif kind == "clients":
        fields = list(CLIENT_ALIASES)
    else:
        raise ValueError(f"unknown template: {kind}")
    return ",".join(fields) + "\n"
