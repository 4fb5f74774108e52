"""Savings goals, their contributions and progress.

A goal's balance is its initial amount plus the credits linked to it, minus
the linked debits. Reserve goals (``reserva``) have a due date and get a
monthly target and an on-track flag; investment goals do not.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.entities import (
    MonthlyContribution,
    SavingsGoal,
    SavingsGoalDetail,
    SavingsGoalProgress,
    SavingsGoalType,
    Transaction,
    TransactionType,
)
from celeiro.domain.errors import (
    NotFoundError,
    ValidationError,
    missing_required_fields,
    savings_goal_not_found,
)
from celeiro.domain.transaction import TransactionService
from celeiro.logger import get_logger
from celeiro.system import System

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")

UPDATABLE_FIELDS = {"name", "target_amount", "due_date", "icon", "color", "notes"}


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_goal_type(value: SavingsGoalType | str) -> SavingsGoalType:
    try:
        return SavingsGoalType(value)
    except ValueError:
        raise ValidationError(
            f"invalid goal_type: {value}, must be 'reserva' or 'investimento'"
        ) from None


def parse_due_date(value: date | str | None) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"invalid due_date format: {value}") from None


def _check_target(amount: Decimal) -> None:
    if amount <= 0:
        raise ValidationError("target_amount must be greater than zero")


def months_remaining(today: date, due_date: date) -> int:
    """Months left until the due date, counting both the current and the due month."""
    if due_date <= today:
        return 0
    return (due_date.year - today.year) * 12 + due_date.month - today.month + 1


def months_between(start: date, end: date) -> int:
    return max(0, (end.year - start.year) * 12 + end.month - start.month)


def is_on_track(
    today: date, created: date, due_date: date, target_amount: Decimal, current_amount: Decimal
) -> bool:
    """Compare the balance with a straight line from zero at creation to the target at the due date."""
    total_months = months_between(created, due_date)
    if total_months <= 0:
        return current_amount >= target_amount
    expected = target_amount / total_months * months_between(created, today)
    return current_amount >= expected


def _signed(tx: Transaction) -> Decimal:
    return tx.amount if tx.transaction_type == TransactionType.CREDIT else -tx.amount


def monthly_contributions(transactions: list[Transaction]) -> tuple[MonthlyContribution, ...]:
    totals: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    for tx in transactions:
        totals[(tx.transaction_date.year, tx.transaction_date.month)] += _signed(tx)
    return tuple(
        MonthlyContribution(month=month, year=year, amount=_money(amount))
        for (year, month), amount in sorted(totals.items())
    )


class SavingsGoalService:
    """Service for savings goals."""

    def __init__(self, db: Database, system: System):
        """Initialize savings goal service.

        Args:
            db: Database instance
            system: Supplies the clock for creation dates and progress
        """
        self.db = db
        self.system = system
        self.transactions = TransactionService(db)

    def create_savings_goal(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        goal_type: SavingsGoalType | str,
        target_amount: Decimal,
        initial_amount: Decimal = ZERO,
        due_date: date | str | None = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> SavingsGoal:
        """Create a savings goal.

        Args:
            user_id: Owning user
            organization_id: Owning organization
            name: Goal name
            goal_type: reserva or investimento
            target_amount: Amount to reach, greater than zero
            initial_amount: Balance already saved when the goal is created
            due_date: Deadline, required for reserve goals
            icon: Optional icon
            color: Optional hex color
            notes: Optional notes

        Returns:
            The created goal

        Raises:
            ValidationError: On a missing name, unknown type, bad amounts or missing due date
        """
        name = (name or "").strip()
        if not name:
            raise missing_required_fields("name")
        goal_type = parse_goal_type(goal_type)
        due_date = parse_due_date(due_date)
        if goal_type == SavingsGoalType.RESERVE and due_date is None:
            raise ValidationError("due_date is required for 'reserva' type goals")
        _check_target(target_amount)
        if initial_amount < 0:
            raise ValidationError("initial_amount must not be negative")

        goal_id = self.db.create_savings_goal(
            user_id=user_id,
            organization_id=organization_id,
            name=name,
            goal_type=goal_type,
            target_amount=target_amount,
            initial_amount=initial_amount,
            due_date=due_date,
            icon=icon,
            color=color,
            notes=notes,
            created_at=self.system.clock.now(),
        )
        logger.info("savings goal created", savings_goal_id=goal_id, goal_type=goal_type.value)
        return self.db.get_savings_goal(goal_id)

    def get_savings_goal(self, organization_id: int, goal_id: int) -> SavingsGoal:
        goal = self.db.get_savings_goal(goal_id, organization_id=organization_id)
        if goal is None:
            raise NotFoundError(savings_goal_not_found(goal_id))
        return goal

    def list_savings_goals(
        self,
        organization_id: int,
        is_active: Optional[bool] = None,
        is_completed: Optional[bool] = None,
        goal_type: SavingsGoalType | str | None = None,
    ) -> list[SavingsGoal]:
        if goal_type is not None:
            goal_type = parse_goal_type(goal_type)
        return self.db.list_savings_goals(
            organization_id, is_active=is_active, is_completed=is_completed, goal_type=goal_type
        )

    def update_savings_goal(self, organization_id: int, goal_id: int, **changes) -> SavingsGoal:
        """Update goal fields. A None or empty due date clears it.

        Raises:
            ValidationError: On unknown fields, bad values, or clearing a reserve goal's due date
            NotFoundError: If the goal is not in the organization
        """
        goal = self.get_savings_goal(organization_id, goal_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise missing_required_fields("name")
        if "target_amount" in changes:
            _check_target(changes["target_amount"])
        if "due_date" in changes:
            changes["due_date"] = parse_due_date(changes["due_date"])
            if changes["due_date"] is None and goal.goal_type == SavingsGoalType.RESERVE:
                raise ValidationError("due_date is required for 'reserva' type goals")

        if changes:
            self.db.update_savings_goal(goal_id, **changes)
        return self.get_savings_goal(organization_id, goal_id)

    def delete_savings_goal(self, organization_id: int, goal_id: int) -> None:
        """Delete a goal. Its transactions stay, unlinked."""
        self.get_savings_goal(organization_id, goal_id)
        self.db.delete_savings_goal(goal_id)

    def complete_savings_goal(self, organization_id: int, goal_id: int) -> SavingsGoal:
        goal = self.get_savings_goal(organization_id, goal_id)
        if not goal.is_completed:
            self.db.update_savings_goal(
                goal_id, is_completed=True, completed_at=self.system.clock.now()
            )
        return self.get_savings_goal(organization_id, goal_id)

    def reopen_savings_goal(self, organization_id: int, goal_id: int) -> SavingsGoal:
        self.get_savings_goal(organization_id, goal_id)
        self.db.update_savings_goal(goal_id, is_completed=False, completed_at=None)
        return self.get_savings_goal(organization_id, goal_id)

    def _contributions(self, organization_id: int, goal_id: int) -> list[Transaction]:
        return self.db.list_transactions(organization_id, savings_goal_id=goal_id)

    def _progress(self, goal: SavingsGoal, transactions: list[Transaction]) -> SavingsGoalProgress:
        current = goal.initial_amount + sum((_signed(tx) for tx in transactions), ZERO)
        percent = ZERO
        if goal.target_amount > 0:
            percent = _money(current / goal.target_amount * HUNDRED)

        remaining_months = monthly_target = on_track = None
        if goal.goal_type == SavingsGoalType.RESERVE and goal.due_date is not None:
            today = self.system.clock.now().date()
            remaining_months = months_remaining(today, goal.due_date)
            remaining = goal.target_amount - current
            if remaining_months > 0 and remaining > 0:
                monthly_target = _money(remaining / remaining_months)
            on_track = is_on_track(
                today, goal.created_at.date(), goal.due_date, goal.target_amount, current
            )

        return SavingsGoalProgress(
            goal=goal,
            current_amount=_money(current),
            progress_percent=percent,
            monthly_contributions=monthly_contributions(transactions),
            months_remaining=remaining_months,
            monthly_target=monthly_target,
            is_on_track=on_track,
        )

    def get_savings_goal_progress(self, organization_id: int, goal_id: int) -> SavingsGoalProgress:
        """Current balance, percentage of the target and contributions per month.

        Raises:
            NotFoundError: If the goal is not in the organization
        """
        goal = self.get_savings_goal(organization_id, goal_id)
        return self._progress(goal, self._contributions(organization_id, goal_id))

    def get_goal_summary(self, organization_id: int, goal_id: int) -> SavingsGoalDetail:
        """Progress together with the linked transactions, newest first."""
        goal = self.get_savings_goal(organization_id, goal_id)
        transactions = self._contributions(organization_id, goal_id)
        return SavingsGoalDetail(
            progress=self._progress(goal, transactions), transactions=tuple(transactions)
        )

    def add_contribution(
        self, organization_id: int, goal_id: int, amount: Decimal
    ) -> SavingsGoalProgress:
        """Add to (or, with a negative amount, withdraw from) the goal's own balance.

        Args:
            organization_id: Organization scope
            goal_id: Goal receiving the contribution
            amount: Positive to add, negative to withdraw

        Returns:
            Updated progress

        Raises:
            NotFoundError: If the goal is not in the organization
            ValidationError: If the balance would become negative
        """
        goal = self.get_savings_goal(organization_id, goal_id)
        new_amount = goal.initial_amount + amount
        if new_amount < 0:
            raise ValidationError("contribution would result in negative balance")

        self.db.update_savings_goal(goal_id, initial_amount=new_amount)
        logger.info("savings goal contribution", savings_goal_id=goal_id, amount=str(amount))
        return self.get_savings_goal_progress(organization_id, goal_id)

    def link_transaction(self, organization_id: int, goal_id: int, transaction_id: int) -> Transaction:
        """Count a transaction toward a goal. Credits add, debits withdraw."""
        self.get_savings_goal(organization_id, goal_id)
        self.transactions.get_transaction(organization_id, transaction_id)
        self.db.update_transaction(transaction_id, savings_goal_id=goal_id)
        return self.transactions.get_transaction(organization_id, transaction_id)

    def unlink_transaction(self, organization_id: int, transaction_id: int) -> Transaction:
        self.transactions.get_transaction(organization_id, transaction_id)
        self.db.update_transaction(transaction_id, savings_goal_id=None)
        return self.transactions.get_transaction(organization_id, transaction_id)
