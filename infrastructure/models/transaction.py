"""
Ledger table mapping. Business rules live in domain.payment.entity.Transaction.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, JSON, Index
)
from datetime import datetime, timezone

from .base import Base


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=True, index=True, comment="Owner user id")
    ad_id = Column(Integer, nullable=True, comment="Related ad id")

    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="Amount")
    currency = Column(String(3), nullable=False, default="RUB", comment="ISO-4217 currency")
    type = Column(String(20), nullable=False, comment="deposit/refund")
    payment_method = Column(String(50), nullable=False, default="balance")
    description = Column(Text, nullable=True)

    gateway_name = Column(String(50), nullable=False, index=True, comment="Adapter identifier")
    gateway_transaction_id = Column(
        String(200), nullable=False, unique=True, index=True, comment="Processor payment id"
    )
    payment_url = Column(String(1000), nullable=True, comment="Confirmation URL")
    return_token = Column(
        String(64), nullable=True, unique=True, index=True, comment="Reference carried by the default return URL"
    )

    status = Column(
        String(50),
        nullable=False,
        index=True,
        comment="Processor status: pending/waiting_for_capture/succeeded/canceled",
    )

    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_transactions_user_status", "user_id", "status"),
    )

    def __repr__(self):
        return (
            f"<TransactionModel(id={self.id}, gateway_transaction_id='{self.gateway_transaction_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
