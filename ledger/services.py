"""Framework-agnostic business services for the ledger."""

from __future__ import annotations

import csv
from typing import Dict, Iterable, List, TextIO

from .exceptions import InsufficientFundsError, RecordNotFoundError, ValidationError
from .logging_setup import get_logger
from .models import OUTCOME, Balance, Category, Transaction
from .storage import CategoryRepository, TransactionRepository
from .validators import (
    CATEGORY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    parse_value,
    validate_required_str,
    validate_type,
)

logger = get_logger(__name__)

IMPORT_COLUMNS = ("title", "type", "value", "category")


class CategoryService:
    """Resolves free-text category labels to stored categories."""

    def __init__(self, repository: CategoryRepository) -> None:
        self._categories = repository

    def resolve(self, title: str) -> Category:
        """Return the category named ``title``, creating it on first use.

        Lookup and creation are two separate storage calls, so two callers
        resolving the same unseen title at once can both miss the lookup.
        The repository refuses the second save with ``PersistenceError``.
        """
        category = self._categories.find_one(title=title)
        if category is not None:
            return category

        category = self._categories.save(self._categories.create(title=title))
        logger.info("Created category %s (%s)", category.title, category.id)
        return category

    def get(self, category_id: str) -> Category:
        category = self._categories.find_one(id=category_id)
        if category is None:
            raise RecordNotFoundError(f"Category {category_id} not found")
        return category

    def list(self) -> List[Category]:
        return sorted(self._categories.find(), key=lambda cat: cat.title.lower())


class TransactionService:
    """Validates, records and removes ledger transactions."""

    def __init__(self, repository: TransactionRepository, categories: CategoryService) -> None:
        self._transactions = repository
        self._categories = categories

    # Public API -----------------------------------------------------------
    def create(self, payload: Dict[str, object]) -> Transaction:
        """Record a transaction after checking it against the current balance.

        Raises ``ValidationError`` for malformed input and
        ``InsufficientFundsError`` when an outcome exceeds the balance total;
        both are raised before anything is written. The category may be
        created even if saving the transaction itself fails afterwards.
        """
        data = self._validate_payload(payload)

        balance = self._transactions.get_balance()
        if data["type"] == OUTCOME and data["value"] > balance.total:
            logger.warning(
                "Rejected outcome %s of %.2f against balance %.2f",
                data["title"],
                data["value"],
                balance.total,
            )
            raise InsufficientFundsError("Do not have enough money for this transaction.")

        category = self._categories.resolve(data["category"])
        transaction = self._transactions.create(
            title=data["title"],
            value=data["value"],
            type=data["type"],
            category_id=category.id,
        )
        transaction = self._transactions.save(transaction)
        logger.info(
            "Recorded %s %s of %.2f in %s",
            transaction.type,
            transaction.id,
            transaction.value,
            category.title,
        )
        return transaction

    def delete(self, transaction_id: str) -> None:
        self._get_or_raise(transaction_id)
        self._transactions.delete(transaction_id)
        logger.info("Deleted transaction %s", transaction_id)

    def get(self, transaction_id: str) -> Transaction:
        """Return a transaction or raise if it does not exist."""
        return self._get_or_raise(transaction_id)

    def list(self) -> List[Transaction]:
        return sorted(self._transactions.find(), key=lambda tx: tx.created_at)

    def balance(self) -> Balance:
        return self._transactions.get_balance()

    # Internal helpers -----------------------------------------------------
    def _get_or_raise(self, transaction_id: str) -> Transaction:
        transaction = self._transactions.find_one(id=transaction_id)
        if transaction is None:
            raise RecordNotFoundError("Transaction not found")
        return transaction

    def _validate_payload(self, payload: Dict[str, object]) -> Dict[str, object]:
        return {
            "title": validate_required_str(payload.get("title"), "title", TITLE_MAX_LENGTH),
            "value": parse_value(payload.get("value"), "value"),
            "type": validate_type(payload.get("type")),
            "category": validate_required_str(
                payload.get("category"), "category", CATEGORY_MAX_LENGTH
            ),
        }


class ImportService:
    """Loads transactions from CSV exports into the ledger."""

    def __init__(self, transactions: TransactionService) -> None:
        self._transactions = transactions

    def import_csv(self, handle: TextIO) -> List[Transaction]:
        """Create one transaction per CSV row, in file order.

        Each row goes through ``TransactionService.create`` so the overdraft
        rule sees every earlier row. The first failing row stops the import;
        rows before it stay recorded.
        """
        try:
            rows = list(_read_rows(handle))
        except csv.Error as exc:
            raise ValidationError(f"Malformed CSV: {exc}") from exc
        created: List[Transaction] = []
        for line_no, row in rows:
            try:
                created.append(self._transactions.create(row))
            except ValidationError as exc:
                logger.warning("Import stopped at line %d after %d rows", line_no, len(created))
                raise type(exc)(f"Line {line_no}: {exc}") from exc
        logger.info("Imported %d transactions", len(created))
        return created


def _read_rows(handle: TextIO) -> Iterable[tuple]:
    reader = csv.reader(handle)
    header = next(reader, None)
    if header is None:
        raise ValidationError("CSV file is empty")
    columns = [column.strip().lower() for column in header]
    missing = [column for column in IMPORT_COLUMNS if column not in columns]
    if missing:
        raise ValidationError(f"CSV header is missing columns: {', '.join(missing)}")

    for row in reader:
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        if len(cells) != len(columns):
            raise ValidationError(
                f"Line {reader.line_num}: expected {len(columns)} columns, got {len(cells)}"
            )
        yield reader.line_num, dict(zip(columns, cells))
