"""Tests for the weighted fuzzy matcher and saved patterns."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from celeiro.domain.entities import EntryType, PlannedEntry, Transaction, TransactionType
from celeiro.domain.errors import NotFoundError, ValidationError
from celeiro.domain.matching import (
    Confidence,
    calculate_amount_score,
    calculate_date_score,
    calculate_match_score,
    confidence_for,
    expected_date,
    find_matches,
    fuzzy_match_description,
    levenshtein_distance,
    normalize_string,
)

CREATED = datetime(2024, 3, 1, tzinfo=UTC)


def _pattern(pattern_id=1, category_id=35, description="UBER TRIP", amount="50", expected_day=5):
    return PlannedEntry(
        id=pattern_id,
        user_id=1,
        organization_id=1,
        category_id=category_id,
        pattern_id=None,
        description=description,
        amount=Decimal(amount),
        amount_min=None,
        amount_max=None,
        expected_day=expected_day,
        expected_day_start=None,
        expected_day_end=None,
        entry_type=EntryType.EXPENSE,
        is_recurrent=True,
        parent_entry_id=None,
        is_active=True,
        is_saved_pattern=True,
        created_at=CREATED,
    )


def _tx(category_id=35, description="UBER TRIP 1234", amount="51", day=5):
    return Transaction(
        id=1,
        account_id=1,
        category_id=category_id,
        description=description,
        original_description=description,
        amount=Decimal(amount),
        transaction_date=date(2024, 3, day),
        transaction_type=TransactionType.DEBIT,
        ofx_fitid=None,
        ofx_check_number=None,
        ofx_memo=None,
        raw_ofx_data=None,
        is_classified=False,
        classification_rule_id=None,
        is_ignored=False,
        notes=None,
        tags=(),
        created_at=CREATED,
    )


def test_score_for_close_transaction():
    """Same category, 2% amount difference, similar description, same day."""
    score = calculate_match_score(_tx(), _pattern())

    assert score.category_score == 1.0
    assert score.amount_score == 1.0
    assert score.description_score == pytest.approx(1 - 5 / 14)
    assert score.date_score == 1.0
    assert score.total_score == pytest.approx(0.4 + 0.3 + 0.2 * (1 - 5 / 14) + 0.1)
    assert score.confidence == Confidence.HIGH


def test_identical_transaction_scores_one():
    score = calculate_match_score(_tx(description="UBER TRIP", amount="50"), _pattern())
    assert score.total_score == pytest.approx(1.0)
    assert score.confidence == Confidence.HIGH


def test_category_mismatch_scores_zero():
    score = calculate_match_score(_tx(category_id=99), _pattern())
    assert score.total_score == 0.0
    assert score.confidence == Confidence.LOW


def test_uncategorized_transaction_scores_zero():
    assert calculate_match_score(_tx(category_id=None), _pattern()).total_score == 0.0


def test_pattern_without_expected_day_gets_half_date_score():
    score = calculate_match_score(_tx(), _pattern(expected_day=None))
    assert score.date_score == 0.5


@pytest.mark.parametrize(
    "tx_amount,pattern_amount,expected",
    [
        ("100", "100", 1.0),
        ("105", "100", 1.0),
        ("110", "100", 0.6),
        ("125", "100", 0.0),
        ("0", "0", 1.0),
        ("0", "10", 0.0),
    ],
)
def test_amount_score(tx_amount, pattern_amount, expected):
    assert calculate_amount_score(Decimal(tx_amount), Decimal(pattern_amount)) == pytest.approx(expected)


@pytest.mark.parametrize("days,expected", [(0, 1.0), (3, 1.0), (6, 0.8), (15, 0.5), (30, 0.0), (40, 0.0)])
def test_date_score(days, expected):
    base = date(2024, 1, 1)
    other = date.fromordinal(base.toordinal() + days)
    assert calculate_date_score(other, base) == pytest.approx(expected)


def test_expected_date_is_capped_at_month_end():
    assert expected_date(date(2024, 2, 10), 31) == date(2024, 2, 29)
    assert expected_date(date(2024, 3, 10), 31) == date(2024, 3, 31)


def test_description_helpers():
    assert normalize_string("  Uber   TRIP \t") == "uber trip"
    assert levenshtein_distance("kitten", "sitting") == 3
    assert fuzzy_match_description("UBER  trip", "uber TRIP") == 1.0
    assert fuzzy_match_description("", "uber") == 0.0
    assert fuzzy_match_description("abc", "xyz") == 0.0


@pytest.mark.parametrize("total,expected", [(0.7, Confidence.HIGH), (0.69, Confidence.MEDIUM), (0.5, Confidence.MEDIUM), (0.49, Confidence.LOW)])
def test_confidence_bands(total, expected):
    assert confidence_for(total) == expected


def test_find_matches_filters_and_sorts():
    patterns = [
        _pattern(pattern_id=1, description="UBER EATS", amount="52"),
        _pattern(pattern_id=2, description="UBER TRIP", amount="50"),
        _pattern(pattern_id=3, category_id=99),
        _pattern(pattern_id=4, amount="200"),
    ]

    matches = find_matches(_tx(), patterns)

    assert [m.pattern_id for m in matches] == [2, 1]
    assert matches[0].total_score >= matches[1].total_score


# Service


@pytest.fixture
def uber_tx(transaction_service, org_id, sample_account, sample_category):
    return transaction_service.create_transaction(
        org_id,
        sample_account.id,
        "UBER TRIP 1234",
        Decimal("51"),
        date(2024, 3, 5),
        "debit",
        category_id=sample_category.id,
    )


@pytest.fixture
def uber_pattern(planned_entry_service, sample_user, org_id, sample_category):
    return planned_entry_service.create_planned_entry(
        sample_user.id,
        org_id,
        category_id=sample_category.id,
        description="UBER TRIP",
        amount=Decimal("50"),
        expected_day=5,
        is_saved_pattern=True,
    )


def test_save_transaction_as_pattern(matching_service, sample_user, org_id, uber_tx, sample_category):
    pattern = matching_service.save_transaction_as_pattern(
        sample_user.id, org_id, uber_tx.id, is_recurrent=True, expected_day=5
    )

    assert pattern.is_saved_pattern is True
    assert pattern.is_recurrent is True
    assert pattern.category_id == sample_category.id
    assert pattern.description == "UBER TRIP 1234"
    assert pattern.amount == Decimal("51")
    assert pattern.entry_type == EntryType.EXPENSE


def test_save_uncategorized_transaction_fails(matching_service, transaction_service, sample_user, org_id, sample_account):
    tx = transaction_service.create_transaction(
        org_id, sample_account.id, "Misc", Decimal("5"), date(2024, 3, 1), "debit"
    )
    with pytest.raises(ValidationError):
        matching_service.save_transaction_as_pattern(sample_user.id, org_id, tx.id)


def test_suggestions(matching_service, org_id, uber_tx, uber_pattern):
    suggestions = matching_service.get_match_suggestions(org_id, uber_tx.id)

    assert [s.pattern.id for s in suggestions] == [uber_pattern.id]
    assert suggestions[0].score.confidence == Confidence.HIGH


def test_auto_match_applies_and_is_idempotent(matching_service, transaction_service, org_id, uber_tx, uber_pattern):
    assert matching_service.auto_match_transaction(org_id, uber_tx.id) is True
    first = transaction_service.get_transaction(org_id, uber_tx.id)

    assert matching_service.auto_match_transaction(org_id, uber_tx.id) is True
    second = transaction_service.get_transaction(org_id, uber_tx.id)

    assert first.category_id == uber_pattern.category_id
    assert second == first


def test_auto_match_skips_medium_confidence(
    matching_service, transaction_service, planned_entry_service, sample_user, org_id, sample_account, sample_category
):
    planned_entry_service.create_planned_entry(
        sample_user.id,
        org_id,
        category_id=sample_category.id,
        description="NETFLIX",
        amount=Decimal("50"),
        expected_day=20,
        is_saved_pattern=True,
    )
    tx = transaction_service.create_transaction(
        org_id,
        sample_account.id,
        "PADARIA",
        Decimal("60"),
        date(2024, 3, 5),
        "debit",
        category_id=sample_category.id,
    )

    assert matching_service.auto_match_transaction(org_id, tx.id) is False


def test_apply_pattern_to_transaction(
    matching_service, transaction_service, org_id, sample_account, uber_pattern
):
    tx = transaction_service.create_transaction(
        org_id, sample_account.id, "UBER", Decimal("50"), date(2024, 3, 5), "debit"
    )

    updated = matching_service.apply_pattern_to_transaction(org_id, tx.id, uber_pattern.id)
    assert updated.category_id == uber_pattern.category_id


def test_apply_non_pattern_entry(matching_service, planned_entry_service, sample_user, org_id, uber_tx, sample_category):
    entry = planned_entry_service.create_planned_entry(
        sample_user.id, org_id, category_id=sample_category.id, description="Rent", amount=Decimal("900")
    )
    with pytest.raises(ValidationError):
        matching_service.apply_pattern_to_transaction(org_id, uber_tx.id, entry.id)
    with pytest.raises(NotFoundError):
        matching_service.apply_pattern_to_transaction(org_id, uber_tx.id, 9999)
