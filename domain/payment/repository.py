"""
Transaction ledger repository interface.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Transaction


class TransactionRepository(ABC):
    """Ledger access contract - what can be done, not how."""

    @abstractmethod
    async def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction row"""
        pass

    @abstractmethod
    async def get_by_gateway_transaction_id(self, gateway_transaction_id: str) -> Optional[Transaction]:
        """Find the row joined to a processor payment id"""
        pass

    @abstractmethod
    async def get_by_return_token(self, return_token: str) -> Optional[Transaction]:
        """Find the row a payer returned to via the default return URL"""
        pass

    @abstractmethod
    async def update(self, transaction: Transaction) -> Transaction:
        """Write back mutable fields (status, payment_url, metadata)"""
        pass
