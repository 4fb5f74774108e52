"""Tests for budget progress calculation."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from celeiro.domain.budget_progress import (
    budget_status,
    calculate_category_progress,
    calculate_fixed_progress,
    calculate_progress,
    days_in_month,
)
from celeiro.domain.entities import (
    Budget,
    BudgetItem,
    BudgetStatus,
    BudgetType,
    BudgetWithItems,
    Transaction,
    TransactionType,
)
from celeiro.domain.errors import NotFoundError

CREATED = datetime(2024, 4, 1, tzinfo=UTC)


def _budget(amount="3000", budget_type=BudgetType.FIXED, items=()):
    budget = Budget(
        id=1,
        user_id=1,
        organization_id=1,
        name="April",
        month=4,
        year=2024,
        budget_type=budget_type,
        amount=Decimal(amount),
        is_active=True,
        created_at=CREATED,
    )
    return BudgetWithItems(
        budget=budget,
        items=tuple(
            BudgetItem(id=i, budget_id=1, category_id=category_id, planned_amount=Decimal(planned))
            for i, (category_id, planned) in enumerate(items, start=1)
        ),
    )


def _tx(amount, category_id=None, kind=TransactionType.DEBIT, is_ignored=False, tx_id=1):
    return Transaction(
        id=tx_id,
        account_id=1,
        category_id=category_id,
        description="tx",
        original_description="tx",
        amount=Decimal(amount),
        transaction_date=date(2024, 4, 10),
        transaction_type=kind,
        ofx_fitid=None,
        ofx_check_number=None,
        ofx_memo=None,
        raw_ofx_data=None,
        is_classified=False,
        classification_rule_id=None,
        is_ignored=is_ignored,
        notes=None,
        tags=(),
        created_at=CREATED,
    )


def test_fixed_budget_over_threshold():
    """3000 budget, day 15 of 30, 2000 spent."""
    progress = calculate_fixed_progress(_budget(), [_tx("2000")], current_day=15, month_days=30)

    assert progress.expected_at_current_day == Decimal("1500.00")
    assert progress.actual_spent == Decimal("2000.00")
    assert progress.variance == Decimal("500.00")
    assert progress.status == BudgetStatus.OVER_BUDGET
    assert progress.projection_end_of_month == Decimal("4000.00")
    assert progress.projected_variance_at_end == Decimal("1000.00")
    assert progress.progress_percentage == Decimal("50.00")
    assert progress.categories == ()


def test_fixed_budget_exactly_on_pace():
    progress = calculate_fixed_progress(_budget(), [_tx("1500")], current_day=15, month_days=30)
    assert progress.variance == Decimal("0.00")
    assert progress.status == BudgetStatus.ON_TRACK


def test_fixed_budget_ignores_credits_and_ignored_rows():
    transactions = [
        _tx("100"),
        _tx("5000", kind=TransactionType.CREDIT, tx_id=2),
        _tx("900", is_ignored=True, tx_id=3),
    ]
    progress = calculate_fixed_progress(_budget(), transactions, current_day=10, month_days=30)
    assert progress.actual_spent == Decimal("100.00")


def test_fixed_budget_day_zero_has_no_projection():
    progress = calculate_fixed_progress(_budget(), [_tx("10")], current_day=0, month_days=30)
    assert progress.projection_end_of_month == Decimal("0.00")


@pytest.mark.parametrize(
    "variance,total,expected",
    [
        ("0", "3000", BudgetStatus.ON_TRACK),
        ("-100", "3000", BudgetStatus.ON_TRACK),
        ("30", "3000", BudgetStatus.ON_TRACK),
        ("31", "3000", BudgetStatus.WARNING),
        ("300", "3000", BudgetStatus.WARNING),
        ("301", "3000", BudgetStatus.OVER_BUDGET),
        ("50", "0", BudgetStatus.ON_TRACK),
    ],
)
def test_budget_status_thresholds(variance, total, expected):
    assert budget_status(Decimal(variance), Decimal(total)) == expected


def test_category_progress_with_unplanned_spending():
    budget = _budget(budget_type=BudgetType.CALCULATED, items=[(10, "1000"), (20, "500")])
    transactions = [
        _tx("1200", category_id=10, tx_id=1),
        _tx("100", category_id=20, tx_id=2),
        _tx("50", category_id=30, tx_id=3),
        _tx("70", tx_id=4),
    ]
    names = {10: "Food", 20: "Transport", 30: "Leisure"}

    progress = calculate_category_progress(budget, transactions, 15, 30, names)

    food, transport, leisure = progress.categories
    assert (food.category_name, food.variance, food.status) == ("Food", Decimal("200.00"), BudgetStatus.OVER_BUDGET)
    assert (transport.actual_spent, transport.status) == (Decimal("100.00"), BudgetStatus.ON_TRACK)
    assert leisure.category_id == 30
    assert leisure.planned_amount == Decimal("0.00")
    assert leisure.status == BudgetStatus.OVER_BUDGET

    assert progress.total_budget == Decimal("1500.00")
    assert progress.actual_spent == Decimal("1350.00")
    assert progress.variance == Decimal("-150.00")
    assert progress.status == BudgetStatus.ON_TRACK
    assert progress.expected_at_current_day == Decimal("1500.00")
    assert progress.projection_end_of_month == Decimal("1350.00")


def test_stricter_of_both_picks_smaller_total():
    budget = _budget(amount="3000", budget_type=BudgetType.STRICTER_OF_BOTH, items=[(10, "1500")])
    progress = calculate_progress(budget, [_tx("200", category_id=10)], 15, {10: "Food"})

    assert progress.total_budget == Decimal("1500.00")
    assert len(progress.categories) == 1
    assert progress.budget_type == BudgetType.STRICTER_OF_BOTH


def test_stricter_of_both_keeps_fixed_when_it_is_smaller():
    budget = _budget(amount="1000", budget_type=BudgetType.STRICTER_OF_BOTH, items=[(10, "1500")])
    progress = calculate_progress(budget, [_tx("200", category_id=10)], 15, {10: "Food"})

    assert progress.total_budget == Decimal("1000.00")
    assert progress.categories == ()
    assert progress.days_in_month == 30


def test_stricter_of_both_tie_keeps_fixed():
    budget = _budget(amount="1500", budget_type=BudgetType.STRICTER_OF_BOTH, items=[(10, "1500")])
    progress = calculate_progress(budget, [], 15, {})
    assert progress.categories == ()


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(2024, 4) == 30


def test_progress_service_uses_clock_and_month(
    progress_service, budget_service, transaction_service, sample_user, org_id, sample_account
):
    """The clock is frozen at 2024-03-15, so March is prorated at 15/31."""
    budget = budget_service.create_budget(
        sample_user.id, org_id, "March", 3, 2024, budget_type="fixed", amount=Decimal("3100")
    )
    transaction_service.create_transaction(
        org_id, sample_account.id, "Rent", Decimal("1000"), date(2024, 3, 2), "debit"
    )
    transaction_service.create_transaction(
        org_id, sample_account.id, "Trip", Decimal("999"), date(2024, 4, 2), "debit"
    )

    progress = progress_service.calculate_budget_progress(org_id, budget.id)

    assert progress.current_day == 15
    assert progress.days_in_month == 31
    assert progress.expected_at_current_day == Decimal("1500.00")
    assert progress.actual_spent == Decimal("1000.00")
    assert progress.variance == Decimal("-500.00")
    assert progress.status == BudgetStatus.ON_TRACK
    assert progress.projection_end_of_month == Decimal("2066.67")


def test_progress_service_category_names(
    progress_service, budget_service, transaction_service, sample_user, org_id, sample_account, sample_category
):
    budget = budget_service.create_budget(sample_user.id, org_id, "March", 3, 2024, budget_type="calculated")
    budget_service.add_budget_item(org_id, budget.id, sample_category.id, Decimal("400"))
    transaction_service.create_transaction(
        org_id,
        sample_account.id,
        "Market",
        Decimal("100"),
        date(2024, 3, 3),
        "debit",
        category_id=sample_category.id,
    )

    progress = progress_service.calculate_budget_progress(org_id, budget.id)

    assert [(c.category_name, c.actual_spent) for c in progress.categories] == [
        ("Groceries", Decimal("100.00"))
    ]


def test_progress_for_unknown_budget(progress_service, org_id):
    with pytest.raises(NotFoundError):
        progress_service.calculate_budget_progress(org_id, 404)
