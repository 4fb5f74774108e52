"""Income planning: how much of a month's income the budgets leave unplanned."""

from decimal import Decimal, ROUND_HALF_UP

from celeiro.database.base import Database
from celeiro.domain.entities import IncomePlanningReport, IncomePlanningStatus, TransactionType
from celeiro.domain.errors import ValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")

# Share of income that may stay unplanned, as a percentage
UNPLANNED_INCOME_THRESHOLD = Decimal("0.25")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class IncomePlanningService:
    """Compares a month's income with the amounts planned in its budgets."""

    def __init__(self, db: Database):
        self.db = db

    def monthly_income(self, organization_id: int, month: int, year: int) -> Decimal:
        """Sum of the month's credits, ignored transactions left out."""
        transactions = self.db.list_transactions(organization_id, month=month, year=year)
        return sum(
            (
                tx.amount
                for tx in transactions
                if tx.transaction_type == TransactionType.CREDIT and not tx.is_ignored
            ),
            ZERO,
        )

    def planned_total(self, organization_id: int, month: int, year: int) -> Decimal:
        """Sum of the category items of the month's active budgets."""
        total = ZERO
        for budget in self.db.list_budgets(organization_id, month=month, year=year):
            if not budget.is_active:
                continue
            total += sum((item.planned_amount for item in self.db.list_budget_items(budget.id)), ZERO)
        return total

    def get_income_planning(self, organization_id: int, month: int, year: int) -> IncomePlanningReport:
        """Report the unallocated share of a month's income.

        The status is WARNING once more than 0.25% of the income is unplanned.
        A month without income is OK.

        Args:
            organization_id: Organization scope
            month: Month, 1-12
            year: Year

        Returns:
            The income planning report

        Raises:
            ValidationError: If the period is invalid
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"invalid month: {month}")
        if year < 1900:
            raise ValidationError(f"invalid year: {year}")

        income = self.monthly_income(organization_id, month, year)
        planned = self.planned_total(organization_id, month, year)
        unallocated = income - planned

        if income == 0:
            percent = ZERO
            status = IncomePlanningStatus.OK
            message = "No income for this month"
        else:
            percent = _money(unallocated / income * HUNDRED)
            if percent > UNPLANNED_INCOME_THRESHOLD:
                status = IncomePlanningStatus.WARNING
                message = f"{percent}% of income unallocated (max: {UNPLANNED_INCOME_THRESHOLD}%)"
            else:
                status = IncomePlanningStatus.OK
                message = "Income properly allocated"

        return IncomePlanningReport(
            month=month,
            year=year,
            total_income=_money(income),
            total_planned=_money(planned),
            unallocated=_money(unallocated),
            unallocated_percent=percent,
            threshold=UNPLANNED_INCOME_THRESHOLD,
            status=status,
            message=message,
        )
