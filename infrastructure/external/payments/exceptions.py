"""
Processor errors mapped to BusinessException variants.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


def _details(provider: str, extra: Optional[dict], **kwargs) -> dict:
    full = {"provider": provider, **kwargs}
    if extra:
        full.update(extra)
    return full


class PaymentProviderError(BusinessException):
    """The processor rejected the call or could not be reached."""

    def __init__(self, message: str, *, provider: str, provider_code: str | None = None, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.PROVIDER_ERROR,
            message=message,
            error_type="PaymentProviderError",
            details=_details(provider, details, provider_code=provider_code),
        )


class PaymentRecoverableError(BusinessException):
    """Transient failure; the same idempotency key may be replayed later."""

    def __init__(self, message: str, *, provider: str, provider_code: str | None = None, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.PROVIDER_RECOVERABLE,
            message=message,
            error_type="PaymentRecoverableError",
            details=_details(provider, details, provider_code=provider_code),
        )


class PaymentSignatureError(BusinessException):
    """Webhook source could not be trusted."""

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.SIGNATURE_ERROR,
            message=message,
            error_type="PaymentSignatureError",
            details=_details(provider, details),
        )


class WebhookPayloadError(BusinessException):
    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.WEBHOOK_INVALID,
            message=message,
            error_type="WebhookPayloadError",
            details=_details(provider, details),
        )
