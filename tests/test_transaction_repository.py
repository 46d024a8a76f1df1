from decimal import Decimal

import pytest

from domain.common.exceptions import (
    DomainValidationException,
    TransactionAlreadyExistsException,
    TransactionNotFoundException,
)
from domain.payment.entity import Transaction, TransactionType


def _tx(gateway_transaction_id="2d000001", **kwargs):
    fields = dict(
        id=None,
        gateway_transaction_id=gateway_transaction_id,
        gateway_name="yookassa",
        amount=Decimal("250.50"),
        currency="rub",
        type=TransactionType.DEPOSIT,
        status="pending",
        metadata={"order_id": "ord-1"},
    )
    fields.update(kwargs)
    return Transaction(**fields)


@pytest.mark.asyncio
async def test_create_and_get(uow_factory):
    async with uow_factory() as uow:
        created = await uow.transaction_repository.create(_tx())
    assert created.id is not None
    assert created.currency == "RUB"

    async with uow_factory(readonly=True) as uow:
        found = await uow.transaction_repository.get_by_gateway_transaction_id("2d000001")
    assert found.amount == Decimal("250.50")
    assert found.type is TransactionType.DEPOSIT
    assert found.metadata == {"order_id": "ord-1"}
    assert found.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_missing_returns_none(uow_factory):
    async with uow_factory(readonly=True) as uow:
        assert await uow.transaction_repository.get_by_gateway_transaction_id("nope") is None


@pytest.mark.asyncio
async def test_gateway_transaction_id_is_unique(uow_factory, count_transactions):
    async with uow_factory() as uow:
        await uow.transaction_repository.create(_tx())

    with pytest.raises(TransactionAlreadyExistsException):
        async with uow_factory() as uow:
            await uow.transaction_repository.create(_tx())
    assert await count_transactions() == 1


@pytest.mark.asyncio
async def test_update_status_and_url(uow_factory):
    async with uow_factory() as uow:
        await uow.transaction_repository.create(_tx())

    async with uow_factory() as uow:
        tx = await uow.transaction_repository.get_by_gateway_transaction_id("2d000001")
        assert tx.apply_processor_status("succeeded") is True
        tx.remember_payment_url("https://yoomoney.ru/checkout/2d000001")
        updated = await uow.transaction_repository.update(tx)
    assert updated.status == "succeeded"

    async with uow_factory(readonly=True) as uow:
        tx = await uow.transaction_repository.get_by_gateway_transaction_id("2d000001")
    assert tx.status == "succeeded"
    assert tx.payment_url == "https://yoomoney.ru/checkout/2d000001"


@pytest.mark.asyncio
async def test_update_missing_row(uow_factory):
    with pytest.raises(TransactionNotFoundException):
        async with uow_factory() as uow:
            await uow.transaction_repository.update(_tx("ghost"))


def test_entity_validation():
    with pytest.raises(DomainValidationException):
        _tx(amount=Decimal("-1"))
    with pytest.raises(DomainValidationException):
        _tx(currency="RU")
    with pytest.raises(DomainValidationException):
        _tx(gateway_transaction_id="")
    assert _tx().apply_processor_status("pending") is False


@pytest.mark.asyncio
async def test_get_by_return_token(uow_factory):
    async with uow_factory() as uow:
        await uow.transaction_repository.create(_tx("2d000001", return_token="a1b2c3"))
        await uow.transaction_repository.create(_tx("2d000002"))

    async with uow_factory(readonly=True) as uow:
        found = await uow.transaction_repository.get_by_return_token("a1b2c3")
        missing = await uow.transaction_repository.get_by_return_token("zzz")
    assert found.gateway_transaction_id == "2d000001"
    assert missing is None
