"""
Tests for CSV Normalization
===========================

Tests header mapping, value parsing, row rejection and lookback derivation.

Author: TrancheReady Team
Version: 1.0.0
"""

from datetime import date
from decimal import Decimal

import pytest

from shared.schemas.records import Direction
from fixtures import (
    CLIENTS_CSV,
    EXPECTED_CLIENT_REJECTS,
    EXPECTED_TRANSACTION_REJECTS,
    LOOKBACK_END,
    LOOKBACK_START,
    TRANSACTIONS_CSV,
)
from trancheready.ingestion.normalize import (
    CsvFormatError,
    csv_template,
    derive_lookback,
    header_key,
    map_headers,
    normalize_clients,
    normalize_transactions,
    parse_amount,
    parse_csv,
    parse_date,
    parse_flag,
    subtract_months,
    CLIENT_ALIASES,
)


# =============================================================================
# Parsing Helpers
# =============================================================================

class TestParsingHelpers:
    """Test suite for value-level parsing."""

    def test_parse_csv_strips_bom_and_blank_lines(self):
        table = parse_csv(CLIENTS_CSV)
        assert table.headers[0] == "Client ID"
        assert len(table.rows) == 6
        assert table.line_numbers == [2, 3, 4, 5, 7, 8]

    def test_parse_csv_rejects_non_utf8(self):
        with pytest.raises(CsvFormatError):
            parse_csv(b"\xff\xfe\x00bad")

    def test_parse_csv_requires_header(self):
        with pytest.raises(CsvFormatError):
            parse_csv(b"")

    def test_parse_csv_oversized_field(self):
        """Fields beyond the csv module's size limit are a format error."""
        data = b'client_id,services\nC-1,"' + b"x" * 200000 + b'"\n'
        with pytest.raises(CsvFormatError, match="malformed CSV"):
            parse_csv(data)

    def test_parse_csv_header_only(self):
        table = parse_csv(b"client_id,date\n")
        assert table.headers == ["client_id", "date"]
        assert table.rows == []
        assert table.line_numbers == []

    @pytest.mark.parametrize("header,key", [
        ("Client ID", "client_id"),
        ("  KYC-Review Date ", "kyc_review_date"),
        ("Counterparty.Country", "counterparty_country"),
    ])
    def test_header_key(self, header, key):
        assert header_key(header) == key

    def test_map_headers_first_match_wins(self):
        mapping = map_headers(["Customer", "Client ID", "Notes"], CLIENT_ALIASES)
        assert mapping == {"Customer": "client_id"}

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("YES", True), ("y", True), ("1", True),
        ("no", False), ("", False), ("0", False), ("maybe", False),
    ])
    def test_parse_flag(self, value, expected):
        assert parse_flag(value) is expected

    @pytest.mark.parametrize("value,expected", [
        ("2025-09-03", date(2025, 9, 3)),
        ("2025-09-03T10:00:00Z", date(2025, 9, 3)),
        ("03/09/2025", date(2025, 9, 3)),
        ("03-09-2025", date(2025, 9, 3)),
        ("2025/09/03", date(2025, 9, 3)),
        ("", None),
        ("31/31/2025", None),
        ("soon", None),
    ])
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("$9,700.00", Decimal("9700.00")),
        (" 12.5 ", Decimal("12.5")),
        ("-3", Decimal("-3")),
        ("", None),
        ("ten", None),
        ("NaN", None),
        ("Infinity", None),
    ])
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected

    def test_subtract_months_clamps_day(self):
        assert subtract_months(date(2025, 10, 31), 18) == date(2024, 4, 30)
        assert subtract_months(date(2025, 8, 31), 6) == date(2025, 2, 28)
        assert subtract_months(date(2025, 1, 15), 1) == date(2024, 12, 15)

    def test_derive_lookback_from_latest_date(self):
        window = derive_lookback([date(2025, 1, 1), date(2025, 10, 31), date(2025, 3, 3)])
        assert window.end == date(2025, 10, 31)
        assert window.start == date(2024, 4, 30)

    def test_derive_lookback_without_dates(self):
        window = derive_lookback([], today=date(2025, 6, 15))
        assert window.end == date(2025, 6, 15)
        assert window.start == date(2023, 12, 15)


# =============================================================================
# Normalizers
# =============================================================================

class TestNormalizeClients:
    """Test suite for client normalization."""

    def test_fixture_clients(self):
        batch = normalize_clients(parse_csv(CLIENTS_CSV))

        assert [c.client_id for c in batch.clients] == ["C-100", "C-200", "C-300", "C-400"]
        assert [r.to_dict() for r in batch.rejects] == EXPECTED_CLIENT_REJECTS
        assert batch.header_map == {
            "Client ID": "client_id",
            "PEP": "pep_flag",
            "Sanctions": "sanctions_flag",
            "KYC Review Date": "kyc_last_reviewed_at",
            "Channel": "delivery_channel",
            "Services": "services",
            "Country": "residency_country",
        }

    def test_field_values(self):
        clients = {c.client_id: c for c in normalize_clients(parse_csv(CLIENTS_CSV)).clients}

        assert clients["C-200"].pep_flag is True
        assert clients["C-200"].sanctions_flag is False
        assert clients["C-300"].kyc_last_reviewed_at == date(2023, 1, 15)
        assert clients["C-400"].kyc_last_reviewed_at is None
        assert clients["C-400"].residency_country == "CN"

    def test_missing_client_id_column(self):
        with pytest.raises(CsvFormatError, match="client_id"):
            normalize_clients(parse_csv(b"Name,PEP\nAcme,yes\n"))

    def test_empty_file_with_header(self):
        batch = normalize_clients(parse_csv(b"client_id,pep_flag\n"))
        assert batch.clients == []
        assert batch.rejects == []
        assert batch.header_map == {"client_id": "client_id", "pep_flag": "pep_flag"}

    def test_header_only_missing_client_id(self):
        with pytest.raises(CsvFormatError, match="client_id"):
            normalize_clients(parse_csv(b"Name,PEP\n"))


class TestNormalizeTransactions:
    """Test suite for transaction normalization."""

    def test_fixture_transactions(self):
        batch = normalize_transactions(parse_csv(TRANSACTIONS_CSV))

        assert len(batch.transactions) == 8
        assert [r.to_dict() for r in batch.rejects] == EXPECTED_TRANSACTION_REJECTS
        assert batch.lookback.end.isoformat() == LOOKBACK_END
        assert batch.lookback.start.isoformat() == LOOKBACK_START
        assert batch.header_map["Txn Date"] == "date"
        assert batch.header_map["CCY"] == "currency"

    def test_values_are_normalized(self):
        first = normalize_transactions(parse_csv(TRANSACTIONS_CSV)).transactions[0]

        assert first.client_id == "C-300"
        assert first.date == date(2025, 9, 1)
        assert first.direction == Direction.IN
        assert first.method == "cash"
        assert first.currency == "AUD"
        assert first.amount == Decimal("9700.00")
        assert first.counterparty_country is None

    def test_defaults_for_optional_columns(self):
        table = parse_csv(b"client_id,date,direction,amount\nC-1,2025-01-01,out,10\n")
        txn = normalize_transactions(table).transactions[0]
        assert txn.method == "other"
        assert txn.currency == "AUD"

    @pytest.mark.parametrize("row,reason", [
        (b",2025-01-01,in,10", "missing client_id"),
        (b"C-1,yesterday,in,10", "invalid date"),
        (b"C-1,2025-01-01,up,10", "invalid direction"),
        (b"C-1,2025-01-01,in,lots", "invalid amount"),
        (b"C-1,2025-01-01,in,-10", "invalid amount"),
    ])
    def test_rejects(self, row, reason):
        batch = normalize_transactions(parse_csv(b"client_id,date,direction,amount\n" + row + b"\n"))
        assert batch.transactions == []
        assert batch.rejects[0].reason == reason
        assert batch.rejects[0].row == 2

    def test_reject_rows_count_blank_lines(self):
        """Reject rows are file line numbers, blank lines included."""
        data = b"client_id,date,direction,amount\n\nC-1,2025-01-01,in,10\n\n\nC-2,2025-01-01,up,10\n"
        batch = normalize_transactions(parse_csv(data))
        assert len(batch.transactions) == 1
        assert [r.row for r in batch.rejects] == [6]

    def test_header_only_missing_required_column(self):
        with pytest.raises(CsvFormatError, match="direction, amount"):
            normalize_transactions(parse_csv(b"client_id,date\n"))

    def test_missing_required_column(self):
        with pytest.raises(CsvFormatError, match="amount"):
            normalize_transactions(parse_csv(b"client_id,date,direction\nC-1,2025-01-01,in\n"))

    def test_no_rows_uses_today(self):
        batch = normalize_transactions(parse_csv(b"client_id,date,direction,amount\n"),
                                       today=date(2025, 6, 15))
        assert batch.transactions == []
        assert batch.lookback.end == date(2025, 6, 15)


class TestTemplates:
    """Test suite for CSV templates."""

    def test_client_template_headers_round_trip(self):
        table = parse_csv(csv_template("clients").encode("utf-8") + b"C-1,yes,no,,,,\n")
        batch = normalize_clients(table)
        assert set(batch.header_map.values()) == set(CLIENT_ALIASES)
        assert batch.clients[0].pep_flag is True

    def test_transaction_template(self):
        header = csv_template("transactions").strip().split(",")
        assert header[:4] == ["client_id", "date", "direction", "method"]

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            csv_template("invoices")
