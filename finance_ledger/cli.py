"""Console interface for the finance ledger."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from ledger import build_services
from ledger.exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from ledger.logging_setup import configure_logging
from ledger.models import TRANSACTION_TYPES
from ledger.services import CategoryService, ImportService, TransactionService
from ledger.storage import JSONStorage
from ledger.validators import parse_value


def _parse_value(value: str) -> str:
    try:
        parse_value(value, "Value")
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return value


def _format_transaction(transaction: Dict[str, Any], category: str) -> str:
    return (
        f"[{transaction['id']}] {transaction['created_at']} {transaction['type']} {transaction['value']}\n"
        f"  Title: {transaction['title']} | Category: {category}\n"
    )


def _category_title(categories: CategoryService, category_id: str) -> str:
    return categories.get(category_id).title


def handle_transaction(
    args: argparse.Namespace,
    service: TransactionService,
    categories: CategoryService,
    importer: ImportService,
) -> None:
    if args.command == "add":
        payload = {
            "title": args.title,
            "value": args.value,
            "type": args.type,
            "category": args.category,
        }
        transaction = service.create(payload)
        print(
            "Transaction recorded:\n"
            + _format_transaction(transaction.to_dict(), args.category.strip())
        )
    elif args.command == "list":
        transactions = service.list()
        if not transactions:
            print("No transactions found.")
            return
        print(f"Found {len(transactions)} transactions:")
        for transaction in transactions:
            print(
                _format_transaction(
                    transaction.to_dict(), _category_title(categories, transaction.category_id)
                )
            )
        _print_balance(service)
    elif args.command == "delete":
        service.delete(args.id)
        print(f"Transaction {args.id} deleted.")
    elif args.command == "import":
        try:
            with args.csv.open("r", encoding="utf-8-sig", newline="") as handle:
                transactions = importer.import_csv(handle)
        except UnicodeDecodeError as exc:
            raise ValidationError(f"{args.csv} must be UTF-8 encoded CSV") from exc
        print(f"Imported {len(transactions)} transactions.")


def handle_category(args: argparse.Namespace, categories: CategoryService) -> None:
    items = categories.list()
    if not items:
        print("No categories found.")
        return
    for category in items:
        print(f"[{category.id}] {category.title}")


def _print_balance(service: TransactionService) -> None:
    balance = service.balance()
    print(
        f"Income: {balance.income:.2f} | Outcome: {balance.outcome:.2f} | "
        f"Total: {balance.total:.2f}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Finance Ledger CLI")
    parser.add_argument(
        "--data-dir",
        default=Path(os.getenv("LEDGER_DATA_DIR", "data")),
        type=Path,
        help="Directory to store JSON data (default: $LEDGER_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $LEDGER_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="entity", required=True)

    transaction_parser = subparsers.add_parser("transaction", help="Manage transactions")
    transaction_sub = transaction_parser.add_subparsers(dest="command", required=True)

    transaction_add = transaction_sub.add_parser("add", help="Record a new transaction")
    transaction_add.add_argument("title")
    transaction_add.add_argument("value", type=_parse_value)
    transaction_add.add_argument("type", choices=sorted(TRANSACTION_TYPES))
    transaction_add.add_argument("category")

    transaction_sub.add_parser("list", help="List transactions with the current balance")

    transaction_delete = transaction_sub.add_parser("delete", help="Delete a transaction")
    transaction_delete.add_argument("id")

    transaction_import = transaction_sub.add_parser("import", help="Import transactions from CSV")
    transaction_import.add_argument("csv", type=Path)

    subparsers.add_parser("balance", help="Show income, outcome and net balance")

    category_parser = subparsers.add_parser("category", help="Inspect categories")
    category_sub = category_parser.add_subparsers(dest="command", required=True)
    category_sub.add_parser("list", help="List categories")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        categories, transactions, importer = build_services(JSONStorage(args.data_dir))
        if args.entity == "transaction":
            handle_transaction(args, transactions, categories, importer)
        elif args.entity == "balance":
            _print_balance(transactions)
        elif args.entity == "category":
            handle_category(args, categories)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except InsufficientFundsError as exc:
        print(f"Insufficient funds: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Unable to read file: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
