"""
Normalized Record Schemas
=========================

Typed client and transaction records consumed by the scoring engine.

These are produced by CSV normalization and are immutable once built.
Anything that could not be parsed is rejected (or, for optional fields,
set to None) before a record exists, so the core never re-validates.

Author: TrancheReady Team
Version: 1.0.0
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Direction(str, Enum):
    """Direction of funds relative to the client."""
    IN = "in"
    OUT = "out"


def _upper_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


class ClientProfile(BaseModel):
    """
    Customer due-diligence profile for one client.

    Example:
        {
            "client_id": "C-1001",
            "pep_flag": false,
            "sanctions_flag": false,
            "kyc_last_reviewed_at": "2024-03-01",
            "delivery_channel": "Online",
            "services": "remittance; property",
            "residency_country": "AU"
        }
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1, description="Unique client identifier")
    pep_flag: bool = Field(default=False, description="Politically exposed person")
    sanctions_flag: bool = Field(default=False, description="Sanctions screening hit")
    kyc_last_reviewed_at: Optional[datetime.date] = Field(
        None,
        description="Date of the last KYC review; unparsable input becomes None"
    )
    delivery_channel: str = Field(default="", description="How the service is delivered")
    services: str = Field(default="", description="Free-text list of designated services")
    residency_country: Optional[str] = Field(None, description="ISO 3166 alpha-2 residency")

    @field_validator("kyc_last_reviewed_at", mode="before")
    @classmethod
    def _lenient_review_date(cls, value: Any) -> Any:
        if isinstance(value, datetime.datetime):
            return value.date()
        if value is None or isinstance(value, datetime.date):
            return value
        text = str(value).strip()
        if not text:
            return None
        try:
            return datetime.date.fromisoformat(text[:10])
        except ValueError:
            return None

    @field_validator("delivery_channel", "services", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("residency_country", mode="before")
    @classmethod
    def _country_code(cls, value: Any) -> Optional[str]:
        return _upper_or_none(value)


class TransactionRecord(BaseModel):
    """
    One transaction attributed to a client.

    ``client_id`` is a foreign key into the client set but is not required
    to resolve; transactions for unknown clients are simply never scored.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1, description="Owning client identifier")
    date: datetime.date = Field(..., description="Booking date")
    direction: Direction = Field(..., description="in or out")
    method: str = Field(default="other", description="Payment method, e.g. cash")
    currency: str = Field(default="AUD", description="ISO 4217 currency code")
    amount: Decimal = Field(..., ge=0, description="Non-negative transaction amount")
    counterparty_country: Optional[str] = Field(
        None,
        description="ISO 3166 alpha-2 country of the counterparty"
    )

    @field_validator("method", mode="before")
    @classmethod
    def _lower_method(cls, value: Any) -> str:
        return str(value or "other").strip().lower()

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value: Any) -> str:
        return str(value or "AUD").strip().upper()

    @field_validator("counterparty_country", mode="before")
    @classmethod
    def _country_code(cls, value: Any) -> Optional[str]:
        return _upper_or_none(value)


class LookbackWindow(BaseModel):
    """Behavioural analysis horizon, inclusive of both ends."""

    model_config = ConfigDict(frozen=True)

    start: datetime.date
    end: datetime.date

    @model_validator(mode="after")
    def _ordered(self) -> "LookbackWindow":
        if self.start > self.end:
            raise ValueError("lookback start must not be after end")
        return self
