"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ISO-4217 codes accepted by the processor (extend as needed)
ISO_4217 = {
    "RUB", "USD", "EUR", "BYN", "KZT", "UAH", "UZS", "GBP", "CNY",
}


def normalize_currency(v: str) -> str:
    u = (v or "").upper()
    if len(u) != 3 or not u.isalpha():
        raise ValueError("currency must be ISO-4217 alpha-3")
    if u not in ISO_4217:
        raise ValueError("unsupported currency")
    return u


class PurchaseOptions(BaseModel):
    """Caller options for a purchase. Unknown keys are kept and stored as ledger metadata."""

    return_url: Optional[str] = None
    description: Optional[str] = None
    order_id: Optional[str] = None
    user_id: Optional[int] = None
    ad_id: Optional[int] = None
    # zero-amount probe payment
    dry_run: bool = False

    model_config = ConfigDict(extra="allow")


class PaymentHandle(BaseModel):
    transaction_id: str
    status: str
    confirmation_url: Optional[str] = None
    ledger_id: Optional[int] = None


class ProcessorPayment(BaseModel):
    """Processor-neutral view of a payment object."""

    id: str
    status: str
    confirmation_url: Optional[str] = None
    paid: bool = False
    amount: Optional[Decimal] = None
    currency: Optional[str] = None


class ProcessorRefund(BaseModel):
    id: str
    status: str
    payment_id: Optional[str] = None


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    PENDING = "pending"
    UNKNOWN = "unknown"
    FAILED = "failed"


class Outcome(BaseModel):
    """Result of a processor round trip.

    `UNKNOWN` means the call itself failed (see `reason`); the payment may
    still be in any state at the processor.
    """

    kind: OutcomeKind
    status: str
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCEEDED

    @classmethod
    def unknown(cls, reason: str) -> "Outcome":
        return cls(kind=OutcomeKind.UNKNOWN, status="unknown", reason=reason)

    @classmethod
    def rejected(cls, reason: str) -> "Outcome":
        """Refused before reaching the processor."""
        return cls(kind=OutcomeKind.FAILED, status="unknown", reason=reason)


class WebhookNotification(BaseModel):
    """Minimal shape of a processor notification: `event` and `object.id`."""

    event: str = Field(min_length=1)
    object_id: str = Field(min_length=1)
    object: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WebhookNotification":
        obj = payload.get("object") or {}
        if not isinstance(obj, Mapping):
            raise ValueError("object must be a mapping")
        return cls(event=payload.get("event") or "", object_id=str(obj.get("id") or ""), object=dict(obj))


class PurchaseRequest(PurchaseOptions):
    """HTTP body for starting a purchase."""

    amount: Decimal = Field(ge=0)
    currency: str = Field(default="RUB")

    @field_validator("currency")
    @classmethod
    def _upper_and_validate_currency(cls, v: str) -> str:
        return normalize_currency(v)

    def options(self) -> PurchaseOptions:
        return PurchaseOptions.model_validate(self.model_dump(exclude={"amount", "currency"}))


class RefundBody(BaseModel):
    amount: Decimal = Field(gt=0)
