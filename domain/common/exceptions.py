"""Domain-level business exceptions shared by domain and infrastructure.

The core layer only maps these to HTTP responses; the domain never depends
back on core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for business errors."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class TransactionNotFoundException(BusinessException):
    def __init__(self, gateway_transaction_id: Optional[str] = None):
        details = {"gateway_transaction_id": gateway_transaction_id} if gateway_transaction_id else None
        super().__init__(
            code=PaymentCode.TRANSACTION_NOT_FOUND,
            message="Transaction not found",
            error_type="TransactionNotFound",
            details=details,
        )


class TransactionAlreadyExistsException(BusinessException):
    def __init__(self, gateway_transaction_id: str):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message=f"Transaction {gateway_transaction_id} already recorded",
            error_type="TransactionAlreadyExists",
            details={"gateway_transaction_id": gateway_transaction_id},
            field="gateway_transaction_id",
        )
