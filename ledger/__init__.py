"""Core business logic package for the finance ledger."""

from .models import Balance, Category, Transaction
from .services import CategoryService, ImportService, TransactionService
from .storage import CategoryRepository, JSONStorage, TransactionRepository
from .exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)

__all__ = [
    "Balance",
    "Category",
    "Transaction",
    "CategoryService",
    "ImportService",
    "TransactionService",
    "CategoryRepository",
    "JSONStorage",
    "TransactionRepository",
    "InsufficientFundsError",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
    "build_services",
]


def build_services(storage: JSONStorage):
    """Wire repositories and services over one storage root."""
    categories = CategoryRepository(storage)
    transactions = TransactionRepository(storage, categories)
    category_service = CategoryService(categories)
    transaction_service = TransactionService(transactions, category_service)
    return category_service, transaction_service, ImportService(transaction_service)
