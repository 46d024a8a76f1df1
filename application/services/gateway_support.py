"""
Cross-cutting helpers for the payment service: config lookup, logging,
idempotency keys and status classification.

The service holds a `GatewaySupport` instead of inheriting from a base class.
"""
from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel

from application.dtos.payments import Outcome, OutcomeKind
from core.logging_config import get_logger
from shared.codes.payment_codes import PROVIDER_STATUS_TO_OUTCOME


logger = get_logger(__name__)


class GatewaySupport:
    def __init__(self, provider: str, config: BaseModel) -> None:
        self.provider = provider
        self._config = config

    def get_config(self, key: str, default: Any = None) -> Any:
        return getattr(self._config, key, default)

    def require_config(self, *keys: str) -> None:
        missing = [k for k in keys if not self.get_config(k)]
        if missing:
            env = ", ".join(f"{self.provider.upper()}__{k.upper()}" for k in missing)
            raise RuntimeError(f"{env} not configured")

    @staticmethod
    def new_idempotency_key() -> str:
        # one key per logical attempt, never reused
        return uuid.uuid4().hex

    def outcome_for(self, status: str) -> Outcome:
        mapping = PROVIDER_STATUS_TO_OUTCOME.get(self.provider, {})
        kind = mapping.get(status, OutcomeKind.PENDING.value)
        return Outcome(kind=OutcomeKind(kind), status=status)

    def log(self, event: str, level: str = "info", **kwargs) -> None:
        """Fire-and-forget; logging problems never reach the caller."""
        try:
            getattr(logger, level)(event, provider=self.provider, **kwargs)
        except Exception:  # pragma: no cover
            pass
