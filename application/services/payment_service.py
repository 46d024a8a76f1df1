"""
Application service orchestrating YooKassa payment use-cases.

Depends only on the `PaymentProcessor` port, the unit-of-work contract and
DTOs. The processor client and the unit-of-work factory are provided by
infrastructure and injected from the composition root (API), keeping
dependencies one-way.

Error policy:
- `purchase` logs and re-raises; a failed purchase must never look pending.
- every other operation logs and returns a sentinel (False, "unknown", "").
  `check_payment` / `refund_payment` return an `Outcome` for callers that
  need to tell "processor said no" apart from "call failed".

Webhook intake does NOT authenticate the sender. Anyone able to reach the
endpoint can mark a payment succeeded; restrict the route (see
`payment_settings.webhook.ip_allowlist`) or confirm via `complete`.
"""
from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from application.dtos.payments import (
    Outcome,
    OutcomeKind,
    PaymentHandle,
    PurchaseOptions,
    WebhookNotification,
    normalize_currency,
)
from application.ports.payment_gateway import PaymentProcessor
from application.services.gateway_support import GatewaySupport
from core.settings import YookassaSettings
from domain.common.exceptions import DomainValidationException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PaymentStatus, Transaction, TransactionType, UNKNOWN_STATUS


CENT = Decimal("0.01")
# Numeric(15, 2) ledger column
MAX_AMOUNT = Decimal("1e13")
SUCCEEDED_EVENT = "payment.succeeded"
RETURN_TOKEN_PARAM = "ref"


def _money(amount: Decimal) -> str:
    return str(amount.quantize(CENT))


def with_return_token(url: str, token: str) -> str:
    """Append the return reference to a URL, keeping its existing query."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((RETURN_TOKEN_PARAM, token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class PaymentService:
    def __init__(
        self,
        processor: PaymentProcessor,
        uow_factory: Callable[..., AbstractUnitOfWork],
        config: YookassaSettings,
    ) -> None:
        self._support = GatewaySupport("yookassa", config)
        self._support.require_config("shop_id", "secret_token")
        self._processor = processor
        self._uow_factory = uow_factory
        self.provider: str = self._support.provider
        self.gateway_name: str = config.gateway_name

    # Validation

    @staticmethod
    def _validate_amount(amount: Any, *, allow_zero: bool = False) -> Decimal:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise DomainValidationException(f"invalid amount: {amount!r}", field="amount") from exc
        if not value.is_finite() or value < 0 or (value == 0 and not allow_zero):
            raise DomainValidationException(f"amount must be greater than 0: {amount}", field="amount")
        if value >= MAX_AMOUNT:
            raise DomainValidationException(f"amount must be less than {MAX_AMOUNT:f}: {amount}", field="amount")
        try:
            return value.quantize(CENT)
        except InvalidOperation as exc:
            raise DomainValidationException(f"invalid amount: {amount!r}", field="amount") from exc

    @staticmethod
    def _validate_currency(currency: str) -> str:
        try:
            return normalize_currency(currency)
        except ValueError as exc:
            raise DomainValidationException(str(exc), field="currency") from exc

    # Ledger helpers

    async def _find(self, transaction_id: str) -> Optional[Transaction]:
        async with self._uow_factory(readonly=True) as uow:
            return await uow.transaction_repository.get_by_gateway_transaction_id(transaction_id)

    async def _record_status(self, transaction_id: str, status: str) -> bool:
        """Write a processor-reported status to the matching row, if any."""
        async with self._uow_factory() as uow:
            repo = uow.transaction_repository
            tx = await repo.get_by_gateway_transaction_id(transaction_id)
            if tx is None:
                self._support.log("transaction_not_found", level="warning", payment_id=transaction_id)
                return False
            if tx.apply_processor_status(status):
                await repo.update(tx)
            return True

    # Capability set

    async def purchase(
        self, amount: Any, currency: str, options: Optional[PurchaseOptions] = None
    ) -> PaymentHandle:
        opts = options or PurchaseOptions()
        try:
            value = self._validate_amount(amount, allow_zero=opts.dry_run)
            code = self._validate_currency(currency)
            idempotency_key = self._support.new_idempotency_key()

            # The processor redirects to return_url verbatim, so the default
            # target carries a token the callback can resolve to this row
            return_token = None
            return_url = opts.return_url
            if not return_url:
                return_token = uuid.uuid4().hex
                return_url = with_return_token(self._support.get_config("default_return_url"), return_token)

            request: dict[str, Any] = {
                "amount": {"value": _money(value), "currency": code},
                "capture": True,
                "confirmation": {"type": "redirect", "return_url": return_url},
                "description": opts.description or "Payment via Yookassa",
                "metadata": {"order_id": opts.order_id},
            }
            payment = await self._processor.create_payment(request, idempotency_key)

            async with self._uow_factory() as uow:
                tx = await uow.transaction_repository.create(
                    Transaction(
                        id=None,
                        gateway_transaction_id=payment.id,
                        gateway_name=self.gateway_name,
                        amount=value,
                        currency=code,
                        type=TransactionType.DEPOSIT,
                        status=payment.status,
                        payment_method="balance",
                        description=opts.description or "Deposit via Yookassa",
                        payment_url=payment.confirmation_url,
                        return_token=return_token,
                        user_id=opts.user_id,
                        ad_id=opts.ad_id,
                        metadata=opts.model_dump(mode="json"),
                    )
                )
        except Exception as exc:
            self._support.log(
                "payment_initiation_failed",
                level="error",
                amount=str(amount),
                currency=currency,
                error=str(exc),
            )
            raise

        self._support.log("payment_initiated", amount=_money(value), currency=code, payment_id=payment.id)
        return PaymentHandle(
            transaction_id=payment.id,
            status=payment.status,
            confirmation_url=payment.confirmation_url,
            ledger_id=tx.id,
        )

    async def resolve_return_token(self, token: str) -> str:
        """Processor payment id behind a return token, or "" when unknown."""
        try:
            async with self._uow_factory(readonly=True) as uow:
                tx = await uow.transaction_repository.get_by_return_token(token)
        except Exception as exc:
            self._support.log("return_token_lookup_failed", level="error", error=str(exc))
            return ""
        if tx is None:
            self._support.log("return_token_unknown", level="warning")
            return ""
        return tx.gateway_transaction_id

    async def _check(self, transaction_id: str) -> Outcome:
        try:
            payment = await self._processor.get_payment_info(transaction_id)
            await self._record_status(transaction_id, payment.status)
        except Exception as exc:
            return Outcome.unknown(str(exc))
        return self._support.outcome_for(payment.status)

    async def check_payment(self, transaction_id: str) -> Outcome:
        outcome = await self._check(transaction_id)
        if outcome.kind is OutcomeKind.UNKNOWN:
            self._support.log("payment_check_failed", level="warning", payment_id=transaction_id, error=outcome.reason)
        else:
            self._support.log("payment_checked", payment_id=transaction_id, status=outcome.status, kind=outcome.kind.value)
        return outcome

    async def complete(self, transaction_id: str, data: Optional[Mapping[str, Any]] = None) -> bool:
        outcome = await self._check(transaction_id)
        if outcome.kind is OutcomeKind.UNKNOWN:
            self._support.log("deposit_completion_failed", level="error", payment_id=transaction_id, error=outcome.reason)
            return False
        if outcome.succeeded:
            self._support.log("deposit_completed", payment_id=transaction_id)
            return True
        self._support.log("deposit_not_completed", payment_id=transaction_id, status=outcome.status)
        return False

    async def get_status(self, transaction_id: str) -> str:
        outcome = await self._check(transaction_id)
        if outcome.kind is OutcomeKind.UNKNOWN:
            self._support.log("status_check_failed", level="error", payment_id=transaction_id, error=outcome.reason)
            return UNKNOWN_STATUS
        self._support.log("payment_status_checked", payment_id=transaction_id, status=outcome.status)
        return outcome.status

    async def refund_payment(self, transaction_id: str, amount: Any) -> Outcome:
        try:
            value = self._validate_amount(amount)
        except DomainValidationException as exc:
            self._support.log("refund_rejected", level="warning", payment_id=transaction_id, amount=str(amount), error=exc.message)
            return Outcome.rejected(exc.message)

        try:
            currency = self._support.get_config("settlement_currency")
            idempotency_key = self._support.new_idempotency_key()
            refund = await self._processor.create_refund(
                {
                    "payment_id": transaction_id,
                    "amount": {"value": _money(value), "currency": currency},
                    "description": f"Refund for payment {transaction_id}",
                },
                idempotency_key,
            )
        except Exception as exc:
            self._support.log("refund_failed", level="error", payment_id=transaction_id, amount=str(amount), error=str(exc))
            return Outcome.unknown(str(exc))

        self._support.log(
            "refund_initiated",
            payment_id=transaction_id,
            amount=_money(value),
            refund_id=refund.id,
            status=refund.status,
        )
        return self._support.outcome_for(refund.status)

    async def refund(self, transaction_id: str, amount: Any) -> bool:
        outcome = await self.refund_payment(transaction_id, amount)
        return outcome.succeeded

    async def get_payment_url(self, transaction_id: str) -> str:
        """Confirmation URL of an existing payment. Never creates a payment."""
        try:
            tx = await self._find(transaction_id)
            if tx is not None and tx.payment_url:
                return tx.payment_url

            payment = await self._processor.get_payment_info(transaction_id)
            url = payment.confirmation_url or ""
            if tx is not None and url:
                async with self._uow_factory() as uow:
                    tx.remember_payment_url(url)
                    await uow.transaction_repository.update(tx)
        except Exception as exc:
            self._support.log("payment_url_failed", level="error", payment_id=transaction_id, error=str(exc))
            return ""
        if not url:
            self._support.log("payment_url_unavailable", level="warning", payment_id=transaction_id)
        return url

    async def validate_webhook(self, payload: Mapping[str, Any]) -> bool:
        if not isinstance(payload, Mapping):
            self._support.log("invalid_webhook_data", level="warning", data=repr(payload))
            return False
        try:
            notification = WebhookNotification.from_payload(payload)
        except ValueError:
            self._support.log("invalid_webhook_data", level="warning", data=dict(payload))
            return False

        try:
            matched = False
            if notification.event == SUCCEEDED_EVENT:
                matched = await self._record_status(notification.object_id, PaymentStatus.SUCCEEDED.value)
        except Exception as exc:
            self._support.log("webhook_validation_failed", level="error", error=str(exc))
            return False

        self._support.log(
            "webhook_received",
            event=notification.event,
            payment_id=notification.object_id,
            matched=matched,
        )
        return True
