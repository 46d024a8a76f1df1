"""
YooKassa processor client built on the official `yookassa` SDK.

Notes on SDK usage:
- Credentials are process-wide: `Configuration.configure(shop_id, secret)`.
- `Payment.create(params, idempotency_key)` / `Refund.create(params,
  idempotency_key)` take plain dict params; `Payment.find_one(id)` reads.
- SDK calls are blocking (requests under the hood) and run in a worker
  thread. Timeouts and HTTP-level retries are the SDK's concern; this client
  never retries.
"""
from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Callable, Optional

from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout
from yookassa import Configuration, Payment, Refund
from yookassa.domain.exceptions import ResponseProcessingError, TooManyRequestsError

from application.dtos.payments import ProcessorPayment, ProcessorRefund
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from core.logging_config import get_logger


logger = get_logger(__name__)

# SDK / transport errors worth replaying later with the same idempotency key
_RECOVERABLE_ERRORS = (
    TooManyRequestsError,
    ResponseProcessingError,
    Timeout,
    RequestsConnectionError,
)


class YookassaClient:
    provider = "yookassa"

    def __init__(self, shop_id: str, secret_token: str) -> None:
        if not shop_id or not secret_token:
            raise RuntimeError("YOOKASSA__SHOP_ID and YOOKASSA__SECRET_TOKEN must be configured")
        Configuration.configure(shop_id, secret_token)

    @staticmethod
    def _confirmation_url(obj: Any) -> Optional[str]:
        confirmation = getattr(obj, "confirmation", None)
        return getattr(confirmation, "confirmation_url", None) if confirmation else None

    def _to_payment(self, obj: Any) -> ProcessorPayment:
        amount = getattr(obj, "amount", None)
        value = getattr(amount, "value", None)
        return ProcessorPayment(
            id=str(obj.id),
            status=str(obj.status),
            confirmation_url=self._confirmation_url(obj),
            paid=bool(getattr(obj, "paid", False)),
            amount=Decimal(str(value)) if value is not None else None,
            currency=getattr(amount, "currency", None),
        )

    def _wrap(self, exc: Exception) -> Exception:
        name = type(exc).__name__
        code = getattr(exc, "code", None)
        if isinstance(exc, _RECOVERABLE_ERRORS):
            return PaymentRecoverableError(str(exc) or name, provider=self.provider, provider_code=code)
        return PaymentProviderError(str(exc) or name, provider=self.provider, provider_code=code)

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as exc:
            raise self._wrap(exc) from exc

    async def create_payment(self, request: dict[str, Any], idempotency_key: str) -> ProcessorPayment:
        obj = await self._call(Payment.create, request, idempotency_key)
        return self._to_payment(obj)

    async def get_payment_info(self, payment_id: str) -> ProcessorPayment:
        obj = await self._call(Payment.find_one, payment_id)
        return self._to_payment(obj)

    async def create_refund(self, request: dict[str, Any], idempotency_key: str) -> ProcessorRefund:
        obj = await self._call(Refund.create, request, idempotency_key)
        return ProcessorRefund(
            id=str(obj.id),
            status=str(obj.status),
            payment_id=getattr(obj, "payment_id", None),
        )
