import pytest

from application.dtos.payments import ProcessorPayment, ProcessorRefund
from application.services.payment_service import PaymentService
from core.settings import YookassaSettings
from infrastructure.external.payments.exceptions import PaymentProviderError
from infrastructure.repositories.transaction_repository import SQLAlchemyTransactionRepository


class FakeProcessor:
    """In-memory stand-in for the YooKassa client."""

    def __init__(self):
        self.payments: dict[str, ProcessorPayment] = {}
        self.created: list[tuple[dict, str]] = []
        self.refunds: list[tuple[dict, str]] = []
        self.info_requests: list[str] = []
        self.refund_status = "succeeded"
        self.fail_with: Exception | None = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def set_status(self, payment_id: str, status: str) -> None:
        self.payments[payment_id] = self.payments[payment_id].model_copy(update={"status": status})

    def add_payment(self, payment_id: str, status: str = "pending", confirmation_url: str | None = None) -> None:
        self.payments[payment_id] = ProcessorPayment(id=payment_id, status=status, confirmation_url=confirmation_url)

    async def create_payment(self, request, idempotency_key):
        self._maybe_fail()
        payment_id = f"2d{len(self.created) + 1:06d}-000f-5000-9000-1b68e7b15f3f"
        payment = ProcessorPayment(
            id=payment_id,
            status="pending",
            confirmation_url=f"https://yoomoney.ru/checkout/payments/v2/contract?orderId={payment_id}",
        )
        self.created.append((request, idempotency_key))
        self.payments[payment_id] = payment
        return payment

    async def get_payment_info(self, payment_id):
        self.info_requests.append(payment_id)
        self._maybe_fail()
        if payment_id not in self.payments:
            raise PaymentProviderError("Payment not found", provider="yookassa", provider_code="not_found")
        return self.payments[payment_id]

    async def create_refund(self, request, idempotency_key):
        self._maybe_fail()
        self.refunds.append((request, idempotency_key))
        return ProcessorRefund(
            id=f"rf{len(self.refunds):06d}",
            status=self.refund_status,
            payment_id=request["payment_id"],
        )


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def yookassa_config():
    return YookassaSettings(
        shop_id="123456",
        secret_token="test_secret",
        default_return_url="https://shop.example/payments/callback",
    )


@pytest.fixture
def gateway(processor, uow_factory, yookassa_config):
    return PaymentService(processor=processor, uow_factory=uow_factory, config=yookassa_config)


@pytest.fixture
def ledger_writes(monkeypatch):
    """Record every create/update that reaches the ledger."""
    writes: list[tuple[str, str]] = []
    original_create = SQLAlchemyTransactionRepository.create
    original_update = SQLAlchemyTransactionRepository.update

    async def _create(self, transaction):
        writes.append(("create", transaction.gateway_transaction_id))
        return await original_create(self, transaction)

    async def _update(self, transaction):
        writes.append(("update", transaction.gateway_transaction_id))
        return await original_update(self, transaction)

    monkeypatch.setattr(SQLAlchemyTransactionRepository, "create", _create)
    monkeypatch.setattr(SQLAlchemyTransactionRepository, "update", _update)
    return writes
