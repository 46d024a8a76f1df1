"""Infrastructure models package exports."""
from .base import Base, metadata
from .transaction import TransactionModel

__all__ = [
    "Base",
    "metadata",
    "TransactionModel",
]
