"""Budget progress and end-of-month projection.

All money math is Decimal. Variance is actual minus expected, so a
positive variance means overspend.
"""

import calendar
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from celeiro.database.base import Database
from celeiro.domain.entities import (
    BudgetProgress,
    BudgetStatus,
    BudgetType,
    BudgetWithItems,
    CategoryProgress,
    Transaction,
    TransactionType,
)
from celeiro.domain.errors import NotFoundError, budget_not_found
from celeiro.system import System

ZERO = Decimal("0")
HUNDRED = Decimal("100")
WARNING_THRESHOLD = Decimal("1")
OVER_BUDGET_THRESHOLD = Decimal("10")

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def budget_status(variance: Decimal, total: Decimal) -> BudgetStatus:
    """Classify relative overspend: above 10% is over budget, above 1% a warning."""
    if variance <= 0 or total == 0:
        return BudgetStatus.ON_TRACK
    percent = variance / total * HUNDRED
    if percent > OVER_BUDGET_THRESHOLD:
        return BudgetStatus.OVER_BUDGET
    if percent > WARNING_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


def _spent(tx: Transaction) -> bool:
    return tx.transaction_type == TransactionType.DEBIT and not tx.is_ignored


def calculate_fixed_progress(
    budget: BudgetWithItems,
    transactions: Iterable[Transaction],
    current_day: int,
    month_days: int,
) -> BudgetProgress:
    """Linear prorating of the budget amount across the month."""
    total = budget.budget.amount
    expected = total * current_day / month_days
    actual = sum((tx.amount for tx in transactions if _spent(tx)), ZERO)
    variance = actual - expected
    projection = actual * month_days / current_day if current_day > 0 else ZERO

    return BudgetProgress(
        budget_id=budget.budget.id,
        budget_type=budget.budget.budget_type,
        total_budget=_money(total),
        current_day=current_day,
        days_in_month=month_days,
        progress_percentage=_money(Decimal(current_day) / month_days * HUNDRED),
        expected_at_current_day=_money(expected),
        actual_spent=_money(actual),
        variance=_money(variance),
        status=budget_status(variance, total),
        projection_end_of_month=_money(projection),
        projected_variance_at_end=_money(projection - total),
    )


def calculate_category_progress(
    budget: BudgetWithItems,
    transactions: Iterable[Transaction],
    current_day: int,
    month_days: int,
    category_names: dict[int, str],
) -> BudgetProgress:
    """Per-category comparison of spending against planned items.

    Spending in categories without an item shows up as an over-budget row.
    """
    spending: dict[int, Decimal] = {}
    for tx in transactions:
        if _spent(tx) and tx.category_id is not None:
            spending[tx.category_id] = spending.get(tx.category_id, ZERO) + tx.amount

    rows = []
    total_planned = ZERO
    total_actual = ZERO
    planned_ids = set()
    for item in budget.items:
        planned_ids.add(item.category_id)
        actual = spending.get(item.category_id, ZERO)
        variance = actual - item.planned_amount
        total_planned += item.planned_amount
        total_actual += actual
        rows.append(
            CategoryProgress(
                category_id=item.category_id,
                category_name=category_names.get(item.category_id, ""),
                planned_amount=_money(item.planned_amount),
                actual_spent=_money(actual),
                variance=_money(variance),
                status=budget_status(variance, item.planned_amount),
            )
        )

    for category_id in sorted(spending):
        spent = spending[category_id]
        if category_id in planned_ids or spent <= 0:
            continue
        total_actual += spent
        rows.append(
            CategoryProgress(
                category_id=category_id,
                category_name=category_names.get(category_id, ""),
                planned_amount=_money(ZERO),
                actual_spent=_money(spent),
                variance=_money(spent),
                status=BudgetStatus.OVER_BUDGET,
            )
        )

    variance = total_actual - total_planned
    return BudgetProgress(
        budget_id=budget.budget.id,
        budget_type=budget.budget.budget_type,
        total_budget=_money(total_planned),
        current_day=current_day,
        days_in_month=month_days,
        progress_percentage=_money(Decimal(current_day) / month_days * HUNDRED),
        expected_at_current_day=_money(total_planned),
        actual_spent=_money(total_actual),
        variance=_money(variance),
        status=budget_status(variance, total_planned),
        projection_end_of_month=_money(total_actual),
        projected_variance_at_end=_money(variance),
        categories=tuple(rows),
    )


def calculate_progress(
    budget: BudgetWithItems,
    transactions: list[Transaction],
    current_day: int,
    category_names: dict[int, str],
) -> BudgetProgress:
    """Dispatch on budget type. stricter_of_both keeps the smaller total, fixed on ties."""
    month_days = days_in_month(budget.budget.year, budget.budget.month)
    budget_type = budget.budget.budget_type

    if budget_type == BudgetType.CALCULATED:
        return calculate_category_progress(budget, transactions, current_day, month_days, category_names)
    if budget_type == BudgetType.STRICTER_OF_BOTH:
        fixed = calculate_fixed_progress(budget, transactions, current_day, month_days)
        calculated = calculate_category_progress(
            budget, transactions, current_day, month_days, category_names
        )
        return calculated if calculated.total_budget < fixed.total_budget else fixed
    return calculate_fixed_progress(budget, transactions, current_day, month_days)


class BudgetProgressService:
    """Loads a budget with its month of transactions and computes progress."""

    def __init__(self, db: Database, system: System):
        """Initialize budget progress service.

        Args:
            db: Database instance
            system: Supplies the clock that decides the current day
        """
        self.db = db
        self.system = system

    def calculate_budget_progress(self, organization_id: int, budget_id: int) -> BudgetProgress:
        """Compute progress for a budget.

        Raises:
            NotFoundError: If the budget is not in the organization
        """
        budget = self.db.get_budget(budget_id, organization_id=organization_id)
        if budget is None:
            raise NotFoundError(budget_not_found(budget_id))
        with_items = BudgetWithItems(budget=budget, items=tuple(self.db.list_budget_items(budget_id)))
        transactions = self.db.list_transactions(
            organization_id=organization_id, month=budget.month, year=budget.year
        )
        names = {c.id: c.name for c in self.db.list_categories(organization_id)}
        current_day = self.system.clock.now().day
        return calculate_progress(with_items, transactions, current_day, names)
