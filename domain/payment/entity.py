"""
Ledger transaction entity.

A transaction row mirrors one payment attempt at the processor. Its status
uses the processor vocabulary verbatim and is only ever changed with values
the processor reported.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException


class TransactionType(str, Enum):
    """Ledger transaction types"""
    DEPOSIT = "deposit"
    REFUND = "refund"


class PaymentStatus(str, Enum):
    """Processor payment statuses (YooKassa vocabulary)"""
    PENDING = "pending"
    WAITING_FOR_CAPTURE = "waiting_for_capture"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"


# Returned by status checks when the processor could not be consulted.
UNKNOWN_STATUS = "unknown"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Transaction:
    """
    Ledger row for a payment attempt.

    Rules:
    1. gateway_transaction_id is unique and never changes once set
    2. amount is non-negative (zero only for probe payments)
    3. currency is an ISO-4217 alpha-3 code
    """

    id: Optional[int]
    gateway_transaction_id: str
    gateway_name: str
    amount: Decimal
    currency: str
    type: TransactionType
    status: str
    payment_method: str = "balance"
    description: Optional[str] = None
    payment_url: Optional[str] = None
    return_token: Optional[str] = None
    user_id: Optional[int] = None
    ad_id: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.gateway_transaction_id:
            raise DomainValidationException(
                "gateway_transaction_id is required",
                field="gateway_transaction_id",
            )
        if self.amount < 0:
            raise DomainValidationException(
                f"amount must not be negative: {self.amount}",
                field="amount",
            )
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise DomainValidationException(
                f"invalid currency code: {self.currency}",
                field="currency",
            )
        self.currency = self.currency.upper()
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        if self.metadata is None:
            self.metadata = {}

    def apply_processor_status(self, status: str) -> bool:
        """Record a status reported by the processor. Returns True if it changed."""
        if status == self.status:
            return False
        self.status = status
        self.updated_at = datetime.now(timezone.utc)
        return True

    def remember_payment_url(self, url: str) -> None:
        self.payment_url = url
        self.updated_at = datetime.now(timezone.utc)
