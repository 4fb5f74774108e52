"""Tests for OFX import."""

from datetime import date
from decimal import Decimal

import pytest

from celeiro.domain.entities import TransactionType
from celeiro.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def ofx_data(fixtures_dir):
    return (fixtures_dir / "two_transactions.ofx").read_bytes()


def test_import_then_reimport_skips_duplicates(import_service, sample_user, org_id, sample_account, ofx_data):
    """Importing the same statement twice only inserts once."""
    first = import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)
    second = import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)

    assert (first.imported_count, first.duplicate_count) == (2, 0)
    assert (second.imported_count, second.duplicate_count) == (0, 2)
    assert len(first.transaction_ids) == 2
    assert second.transaction_ids == ()


def test_imported_rows(import_service, transaction_service, sample_user, org_id, sample_account, ofx_data):
    import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)

    rows = transaction_service.list_transactions(org_id, account_id=sample_account.id)
    salary, uber = rows
    assert uber.description == "UBER TRIP - UBER TRIP 1234"
    assert uber.original_description == uber.description
    assert uber.amount == Decimal("50.00")
    assert uber.transaction_type == TransactionType.DEBIT
    assert uber.transaction_date == date(2024, 3, 5)
    assert uber.ofx_fitid == "FIT-0001"
    assert uber.ofx_memo == "UBER TRIP 1234"
    assert "<FITID>FIT-0001" in uber.raw_ofx_data
    assert uber.is_classified is False
    assert salary.transaction_type == TransactionType.CREDIT
    assert salary.amount == Decimal("3500.00")


def test_same_fitid_in_another_account(import_service, account_service, sample_user, org_id, sample_account, ofx_data):
    """FITIDs are unique per account only."""
    other = account_service.create_account(sample_user.id, org_id, name="Savings")
    import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)

    result = import_service.import_ofx(sample_user.id, org_id, other.id, ofx_data)
    assert result.imported_count == 2


def test_import_without_transactions(import_service, sample_user, org_id, sample_account, fixtures_dir):
    with pytest.raises(ValidationError) as exc_info:
        import_service.import_ofx(
            sample_user.id, org_id, sample_account.id, (fixtures_dir / "empty_statement.ofx").read_bytes()
        )
    assert exc_info.value.code == "NO_TRANSACTIONS_FOUND"


def test_import_into_foreign_account(import_service, user_service, sample_user, sample_account, ofx_data):
    other = user_service.register_user(name="Bia", email="bia@example.com", organization_name="Bia Org")

    with pytest.raises(NotFoundError):
        import_service.import_ofx(other.id, other.default_organization_id, sample_account.id, ofx_data)


def test_import_runs_classification_rules(
    import_service, classification_service, transaction_service, sample_user, org_id, sample_account, ofx_data, temp_db
):
    transport = next(c for c in temp_db.list_categories(org_id) if c.name == "Transport")
    rule = classification_service.create_rule(
        sample_user.id, org_id, category_id=transport.id, name="Uber", match_description="uber"
    )

    result = import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)

    assert result.classified_count == 1
    uber = next(t for t in transaction_service.list_transactions(org_id) if t.ofx_fitid == "FIT-0001")
    assert uber.category_id == transport.id
    assert uber.is_classified is True
    assert uber.classification_rule_id == rule.id


def test_import_auto_matches_after_classification(
    import_service,
    classification_service,
    planned_entry_service,
    sample_user,
    org_id,
    sample_account,
    sample_category,
    ofx_data,
):
    """A rule-categorized transaction close to a saved pattern counts as auto-matched."""
    classification_service.create_rule(
        sample_user.id, org_id, category_id=sample_category.id, name="Uber", match_description="uber trip"
    )
    planned_entry_service.create_planned_entry(
        sample_user.id,
        org_id,
        category_id=sample_category.id,
        description="UBER TRIP - UBER TRIP 1234",
        amount=Decimal("50.00"),
        expected_day=5,
        is_saved_pattern=True,
    )

    result = import_service.import_ofx(sample_user.id, org_id, sample_account.id, ofx_data)

    assert result.classified_count == 1
    assert result.auto_matched_count == 1


def test_import_skip_post_process(
    import_service, classification_service, sample_user, org_id, sample_account, sample_category, ofx_data
):
    classification_service.create_rule(
        sample_user.id, org_id, category_id=sample_category.id, name="Uber", match_description="uber"
    )

    result = import_service.import_ofx(
        sample_user.id, org_id, sample_account.id, ofx_data, post_process=False
    )
    assert result.imported_count == 2
    assert result.classified_count == 0
