"""
Payment specific codes and processor status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    WEBHOOK_INVALID = 60005

    # Ledger (61xxx)
    TRANSACTION_NOT_FOUND = 61000


# Processor status -> outcome kind (see application.dtos.payments.OutcomeKind)
PROVIDER_STATUS_TO_OUTCOME = {
    "yookassa": {
        "pending": "pending",
        "waiting_for_capture": "pending",
        "succeeded": "succeeded",
        "canceled": "failed",
    },
}
