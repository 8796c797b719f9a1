from __future__ import annotations

from decimal import Decimal

import pytest

from ledger.exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)


def _payload(title, value, kind, category):
    return {"title": title, "value": value, "type": kind, "category": category}


def test_salary_rent_scenario(transactions):
    transactions.create(_payload("Salary", 1000, "income", "Job"))
    assert transactions.balance().total == Decimal("1000.00")

    with pytest.raises(InsufficientFundsError) as excinfo:
        transactions.create(_payload("Rent", 1200, "outcome", "Housing"))
    assert "enough money" in str(excinfo.value)
    assert transactions.balance().total == Decimal("1000.00")

    transactions.create(_payload("Rent", 800, "outcome", "Housing"))
    assert transactions.balance().total == Decimal("200.00")


def test_balance_matches_persisted_transactions(transactions):
    entries = [
        ("Salary", "1500.00", "income"),
        ("Groceries", "120.35", "outcome"),
        ("Refund", "20.00", "income"),
        ("Gym", "45.00", "outcome"),
    ]
    for title, value, kind in entries:
        transactions.create(_payload(title, value, kind, "Misc"))

    balance = transactions.balance()
    stored = transactions.list()
    income = sum((tx.value for tx in stored if tx.type == "income"), Decimal("0"))
    outcome = sum((tx.value for tx in stored if tx.type == "outcome"), Decimal("0"))

    assert len(stored) == 4
    assert balance.income == income == Decimal("1520.00")
    assert balance.outcome == outcome == Decimal("165.35")
    assert balance.total == income - outcome


def test_rejected_outcome_creates_no_records(transactions, categories):
    transactions.create(_payload("Salary", 50, "income", "Job"))

    with pytest.raises(InsufficientFundsError):
        transactions.create(_payload("Laptop", 900, "outcome", "Electronics"))

    assert len(transactions.list()) == 1
    assert [category.title for category in categories.list()] == ["Job"]


def test_outcome_equal_to_balance_is_allowed(transactions):
    transactions.create(_payload("Salary", "300", "income", "Job"))

    transactions.create(_payload("Rent", "300", "outcome", "Housing"))

    assert transactions.balance().total == Decimal("0.00")


def test_zero_outcome_on_empty_ledger_is_allowed(transactions):
    transaction = transactions.create(_payload("Nothing", 0, "outcome", "Misc"))
    assert transaction.value == Decimal("0.00")


def test_outcome_on_empty_ledger_is_rejected(transactions):
    with pytest.raises(InsufficientFundsError):
        transactions.create(_payload("Coffee", "0.01", "outcome", "Food"))


def test_create_returns_persisted_transaction(transactions, categories):
    transaction = transactions.create(_payload("  Salary ", "99.999", "Income", " Job "))

    assert transaction.id
    assert transaction.title == "Salary"
    assert transaction.value == Decimal("100.00")
    assert transaction.type == "income"
    assert categories.get(transaction.category_id).title == "Job"
    assert transactions.get(transaction.id) == transaction


def test_same_category_title_is_reused(transactions, categories):
    first = transactions.create(_payload("Salary", 100, "income", "Job"))
    second = transactions.create(_payload("Bonus", 50, "income", "Job"))

    assert len(categories.list()) == 1
    assert first.category_id == second.category_id
    assert len(transactions.list()) == 2


def test_resolve_returns_existing_category(categories):
    created = categories.resolve("Food")
    assert categories.resolve("Food") == created
    assert len(categories.list()) == 1


@pytest.mark.parametrize(
    "payload",
    [
        _payload("", 10, "income", "Job"),
        _payload("Salary", -1, "income", "Job"),
        _payload("Salary", "ten", "income", "Job"),
        _payload("Salary", None, "income", "Job"),
        _payload("Salary", True, "income", "Job"),
        _payload("Salary", "NaN", "income", "Job"),
        _payload("Salary", "1e30", "income", "Job"),
        _payload("Salary", 10, "transfer", "Job"),
        _payload("Salary", 10, "income", "   "),
        _payload("Salary", 10, "income", None),
    ],
)
def test_invalid_payload_is_rejected_without_writes(transactions, categories, payload):
    with pytest.raises(ValidationError):
        transactions.create(payload)
    assert transactions.list() == []
    assert categories.list() == []


def test_insufficient_funds_is_a_validation_error():
    assert issubclass(InsufficientFundsError, ValidationError)


def test_delete_missing_transaction_raises_not_found(transactions, categories):
    transactions.create(_payload("Salary", 100, "income", "Job"))

    with pytest.raises(RecordNotFoundError) as excinfo:
        transactions.delete("does-not-exist")

    assert str(excinfo.value) == "Transaction not found"
    assert len(transactions.list()) == 1
    assert len(categories.list()) == 1


def test_delete_keeps_category(transactions, categories):
    kept = transactions.create(_payload("Salary", 100, "income", "Job"))
    removed = transactions.create(_payload("Lunch", 10, "outcome", "Food"))

    transactions.delete(removed.id)

    assert transactions.list() == [kept]
    assert {category.title for category in categories.list()} == {"Job", "Food"}
    assert transactions.balance().total == Decimal("100.00")


def test_category_survives_failed_transaction_save(transactions, categories, storage, monkeypatch):
    transactions.create(_payload("Salary", 100, "income", "Job"))
    original_save = storage.save

    def failing_save(resource, records):
        if resource == "transactions.json":
            raise PersistenceError("disk full")
        return original_save(resource, records)

    monkeypatch.setattr(storage, "save", failing_save)

    with pytest.raises(PersistenceError):
        transactions.create(_payload("Lunch", 10, "outcome", "Food"))

    assert len(transactions.list()) == 1
    assert {category.title for category in categories.list()} == {"Job", "Food"}


def test_list_is_ordered_by_creation(transactions):
    titles = ["Salary", "Rent", "Food"]
    transactions.create(_payload("Salary", 500, "income", "Job"))
    transactions.create(_payload("Rent", 200, "outcome", "Housing"))
    transactions.create(_payload("Food", 50, "outcome", "Groceries"))

    assert [tx.title for tx in transactions.list()] == titles


def test_get_unknown_category_raises(categories):
    with pytest.raises(RecordNotFoundError):
        categories.get("missing")


def test_oversized_value_is_a_validation_error(transactions):
    with pytest.raises(ValidationError) as excinfo:
        transactions.create(_payload("Lottery", "1e30", "income", "Luck"))
    assert "too large" in str(excinfo.value)


@pytest.mark.parametrize("kind, expected", [("Income", "income"), (" OUTCOME ", "outcome")])
def test_type_is_matched_case_insensitively(transactions, kind, expected):
    transactions.create(_payload("Salary", 100, "income", "Job"))

    transaction = transactions.create(_payload("Entry", 10, kind, "Misc"))

    assert transaction.type == expected
