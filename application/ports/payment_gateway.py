"""
Payment ports (application/ports).

`PaymentGateway` is the capability set every gateway adapter offers to the
host application. `PaymentProcessor` is the narrow client an adapter needs
from the processor SDK. Application code depends on these Protocols;
infrastructure implements them.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    Outcome,
    PaymentHandle,
    ProcessorPayment,
    ProcessorRefund,
    PurchaseOptions,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Capability set of a payment gateway adapter.

    `purchase` raises on failure. All other operations absorb errors and
    return a sentinel (False, "unknown", "").
    """

    provider: str

    async def purchase(
        self, amount: Decimal, currency: str, options: Optional[PurchaseOptions] = None
    ) -> PaymentHandle: ...

    async def complete(self, transaction_id: str, data: Optional[Mapping[str, Any]] = None) -> bool: ...

    async def get_status(self, transaction_id: str) -> str: ...

    async def refund(self, transaction_id: str, amount: Decimal) -> bool: ...

    async def get_payment_url(self, transaction_id: str) -> str: ...

    async def validate_webhook(self, payload: Mapping[str, Any]) -> bool: ...

    async def resolve_return_token(self, token: str) -> str: ...

    # Outcome-typed variants of complete/get_status and refund
    async def check_payment(self, transaction_id: str) -> Outcome: ...

    async def refund_payment(self, transaction_id: str, amount: Decimal) -> Outcome: ...


@runtime_checkable
class PaymentProcessor(Protocol):
    """Processor client. Mutating calls carry an idempotency key."""

    async def create_payment(self, request: dict[str, Any], idempotency_key: str) -> ProcessorPayment: ...

    async def get_payment_info(self, payment_id: str) -> ProcessorPayment: ...

    async def create_refund(self, request: dict[str, Any], idempotency_key: str) -> ProcessorRefund: ...
