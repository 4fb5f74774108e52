"""Tests for transactions."""

from datetime import date
from decimal import Decimal

import pytest

from celeiro.domain.entities import TransactionType
from celeiro.domain.errors import NotFoundError, ValidationError


def _create(transaction_service, org_id, account_id, description, amount, day, kind="debit", **kwargs):
    return transaction_service.create_transaction(
        org_id, account_id, description, Decimal(amount), date(2024, 3, day), kind, **kwargs
    )


def test_create_transaction(transaction_service, org_id, sample_account, sample_category):
    txn = _create(
        transaction_service,
        org_id,
        sample_account.id,
        "  Supermarket  ",
        "-85.40",
        4,
        category_id=sample_category.id,
        tags=["home"],
    )

    assert txn.description == "Supermarket"
    assert txn.original_description == "Supermarket"
    assert txn.amount == Decimal("85.40")
    assert txn.transaction_type == TransactionType.DEBIT
    assert txn.category_id == sample_category.id
    assert txn.tags == ("home",)


def test_income_category_on_debit_is_rejected(transaction_service, org_id, sample_account, income_category):
    with pytest.raises(ValidationError):
        _create(
            transaction_service, org_id, sample_account.id, "Pay", "100", 1, category_id=income_category.id
        )


def test_expense_category_on_credit_is_rejected(transaction_service, org_id, sample_account, sample_category):
    with pytest.raises(ValidationError):
        _create(
            transaction_service,
            org_id,
            sample_account.id,
            "Refund",
            "10",
            1,
            kind="credit",
            category_id=sample_category.id,
        )


def test_unknown_account(transaction_service, org_id):
    with pytest.raises(NotFoundError):
        _create(transaction_service, org_id, 999, "Ghost", "1", 1)


def test_list_filters_and_order(transaction_service, org_id, sample_account, sample_category):
    first = _create(transaction_service, org_id, sample_account.id, "A", "10", 1, category_id=sample_category.id)
    second = _create(transaction_service, org_id, sample_account.id, "B", "20", 20)
    transaction_service.create_transaction(
        org_id, sample_account.id, "C", Decimal("30"), date(2024, 4, 2), "debit"
    )

    march = transaction_service.list_transactions(org_id, month=3, year=2024)
    assert [t.id for t in march] == [second.id, first.id]

    by_category = transaction_service.list_transactions(org_id, category_id=sample_category.id)
    assert [t.id for t in by_category] == [first.id]

    assert len(transaction_service.list_transactions(org_id, limit=2)) == 2
    assert len(transaction_service.list_transactions(org_id, offset=2)) == 1

    uncategorized = transaction_service.list_uncategorized(org_id)
    assert {t.description for t in uncategorized} == {"B", "C"}


def test_month_filter_requires_year(transaction_service, org_id):
    with pytest.raises(ValidationError):
        transaction_service.list_transactions(org_id, month=3)
    with pytest.raises(ValidationError):
        transaction_service.list_transactions(org_id, month=13, year=2024)


def test_update_keeps_original_description(transaction_service, org_id, sample_account, sample_category):
    txn = _create(transaction_service, org_id, sample_account.id, "PIX 123", "15", 3)

    updated = transaction_service.update_transaction(
        org_id,
        txn.id,
        description="Lunch",
        category_id=sample_category.id,
        notes="with team",
        is_ignored=True,
    )

    assert updated.description == "Lunch"
    assert updated.original_description == "PIX 123"
    assert updated.category_id == sample_category.id
    assert updated.notes == "with team"
    assert updated.is_ignored is True


def test_categorize(transaction_service, org_id, sample_account, sample_category):
    txn = _create(transaction_service, org_id, sample_account.id, "Bakery", "7", 3)
    assert transaction_service.categorize(org_id, txn.id, sample_category.id).category_id == sample_category.id


def test_delete_transaction(transaction_service, org_id, sample_account):
    txn = _create(transaction_service, org_id, sample_account.id, "Temp", "1", 1)
    transaction_service.delete_transaction(org_id, txn.id)

    with pytest.raises(NotFoundError):
        transaction_service.get_transaction(org_id, txn.id)
