"""
Ledger repository backed by SQLAlchemy
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.common.exceptions import TransactionAlreadyExistsException, TransactionNotFoundException
from domain.payment.entity import Transaction, TransactionType
from domain.payment.repository import TransactionRepository
from infrastructure.models.transaction import TransactionModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyTransactionRepository(TransactionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: TransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            gateway_transaction_id=model.gateway_transaction_id,
            gateway_name=model.gateway_name,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            type=TransactionType(model.type),
            status=model.status,
            payment_method=model.payment_method,
            description=model.description,
            payment_url=model.payment_url,
            return_token=model.return_token,
            user_id=model.user_id,
            ad_id=model.ad_id,
            metadata=model.extra_metadata or {},
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Transaction) -> TransactionModel:
        return TransactionModel(
            id=entity.id,
            gateway_transaction_id=entity.gateway_transaction_id,
            gateway_name=entity.gateway_name,
            amount=entity.amount,
            currency=entity.currency,
            type=entity.type.value,
            status=entity.status,
            payment_method=entity.payment_method,
            description=entity.description,
            payment_url=entity.payment_url,
            return_token=entity.return_token,
            user_id=entity.user_id,
            ad_id=entity.ad_id,
            extra_metadata=entity.metadata,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _get_model(self, gateway_transaction_id: str) -> Optional[TransactionModel]:
        result = await self.session.execute(
            select(TransactionModel).where(
                TransactionModel.gateway_transaction_id == gateway_transaction_id
            )
        )
        return result.scalar_one_or_none()

    async def create(self, transaction: Transaction) -> Transaction:
        try:
            db_tx = self._to_model(transaction)
            self.session.add(db_tx)
            await self.session.flush()
            await self.session.refresh(db_tx)
        except IntegrityError:
            logger.warning(
                "transaction_create_conflict",
                gateway_transaction_id=transaction.gateway_transaction_id,
            )
            raise TransactionAlreadyExistsException(transaction.gateway_transaction_id)
        logger.info(
            "transaction_created",
            transaction_id=db_tx.id,
            gateway_transaction_id=db_tx.gateway_transaction_id,
            status=db_tx.status,
        )
        return self._to_entity(db_tx)

    async def get_by_gateway_transaction_id(self, gateway_transaction_id: str) -> Optional[Transaction]:
        db_tx = await self._get_model(gateway_transaction_id)
        return self._to_entity(db_tx) if db_tx else None

    async def get_by_return_token(self, return_token: str) -> Optional[Transaction]:
        result = await self.session.execute(
            select(TransactionModel).where(TransactionModel.return_token == return_token)
        )
        db_tx = result.scalar_one_or_none()
        return self._to_entity(db_tx) if db_tx else None

    async def update(self, transaction: Transaction) -> Transaction:
        # gateway_transaction_id is the lookup key and is never rewritten
        db_tx = await self._get_model(transaction.gateway_transaction_id)
        if not db_tx:
            raise TransactionNotFoundException(transaction.gateway_transaction_id)

        db_tx.status = transaction.status
        db_tx.payment_url = transaction.payment_url
        db_tx.description = transaction.description
        db_tx.extra_metadata = transaction.metadata
        if transaction.updated_at is not None:
            db_tx.updated_at = transaction.updated_at

        await self.session.flush()
        await self.session.refresh(db_tx)

        logger.info(
            "transaction_updated",
            transaction_id=db_tx.id,
            gateway_transaction_id=db_tx.gateway_transaction_id,
            status=db_tx.status,
        )
        return self._to_entity(db_tx)
