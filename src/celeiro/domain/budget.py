"""Budget domain service."""

from decimal import Decimal
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.category import CategoryService
from celeiro.domain.entities import Budget, BudgetItem, BudgetType, BudgetWithItems
from celeiro.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    budget_item_not_found,
    budget_not_found,
    missing_required_fields,
)


def parse_budget_type(value: BudgetType | str) -> BudgetType:
    try:
        return BudgetType(value)
    except ValueError:
        raise ValidationError(f"invalid budget type: {value}") from None


def _check_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"invalid month: {month}")
    if not 1900 <= year <= 9999:
        raise ValidationError(f"invalid year: {year}")


def _check_amount(amount: Decimal, field: str) -> None:
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")


class BudgetService:
    """Service for monthly budgets and their per-category items."""

    def __init__(self, db: Database):
        """Initialize budget service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categories = CategoryService(db)

    def create_budget(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        month: int,
        year: int,
        budget_type: BudgetType | str = BudgetType.FIXED,
        amount: Decimal = Decimal("0"),
    ) -> Budget:
        """Create a budget for one month.

        Args:
            user_id: Owning user
            organization_id: Owning organization
            name: Budget name
            month: 1..12
            year: Four-digit year
            budget_type: fixed, calculated or stricter_of_both
            amount: Monthly cap used by fixed budgets

        Returns:
            The created budget

        Raises:
            ValidationError: On bad name, period, type or amount
            ConflictError: If the user already has an active budget for that month
        """
        name = (name or "").strip()
        if not name:
            raise missing_required_fields("name")
        _check_period(month, year)
        budget_type = parse_budget_type(budget_type)
        _check_amount(amount, "amount")

        if self.db.find_active_budget(user_id, organization_id, month, year) is not None:
            raise ConflictError(f"An active budget already exists for {year:04d}-{month:02d}")

        budget_id = self.db.create_budget(
            user_id=user_id,
            organization_id=organization_id,
            name=name,
            month=month,
            year=year,
            budget_type=budget_type,
            amount=amount,
        )
        return self.db.get_budget(budget_id)

    def get_budget(self, organization_id: int, budget_id: int) -> Budget:
        budget = self.db.get_budget(budget_id, organization_id=organization_id)
        if budget is None:
            raise NotFoundError(budget_not_found(budget_id))
        return budget

    def get_budget_with_items(self, organization_id: int, budget_id: int) -> BudgetWithItems:
        budget = self.get_budget(organization_id, budget_id)
        return BudgetWithItems(budget=budget, items=tuple(self.db.list_budget_items(budget_id)))

    def list_budgets(
        self, organization_id: int, month: Optional[int] = None, year: Optional[int] = None
    ) -> list[Budget]:
        return self.db.list_budgets(organization_id, month=month, year=year)

    def update_budget(
        self,
        organization_id: int,
        budget_id: int,
        name: Optional[str] = None,
        budget_type: Optional[BudgetType | str] = None,
        amount: Optional[Decimal] = None,
        is_active: Optional[bool] = None,
    ) -> Budget:
        """Update budget fields.

        Raises:
            NotFoundError: If the budget is not in the organization
            ConflictError: If reactivating would give the month two active budgets
        """
        budget = self.get_budget(organization_id, budget_id)
        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise missing_required_fields("name")
            changes["name"] = name
        if budget_type is not None:
            changes["budget_type"] = parse_budget_type(budget_type)
        if amount is not None:
            _check_amount(amount, "amount")
            changes["amount"] = amount
        if is_active is not None:
            if is_active and not budget.is_active:
                other = self.db.find_active_budget(
                    budget.user_id, organization_id, budget.month, budget.year
                )
                if other is not None and other.id != budget_id:
                    raise ConflictError(
                        f"An active budget already exists for {budget.year:04d}-{budget.month:02d}"
                    )
            changes["is_active"] = is_active

        if changes:
            self.db.update_budget(budget_id, **changes)
        return self.get_budget(organization_id, budget_id)

    def delete_budget(self, organization_id: int, budget_id: int) -> None:
        self.get_budget(organization_id, budget_id)
        self.db.delete_budget(budget_id)

    # Items

    def add_budget_item(
        self, organization_id: int, budget_id: int, category_id: int, planned_amount: Decimal
    ) -> BudgetItem:
        """Plan an amount for a category inside a budget.

        Raises:
            NotFoundError: If the budget or category is not in scope
            ValidationError: If planned_amount is negative
            ConflictError: If the category already has an item in this budget
        """
        self.get_budget(organization_id, budget_id)
        self.categories.get_category(organization_id, category_id)
        _check_amount(planned_amount, "planned_amount")

        for item in self.db.list_budget_items(budget_id):
            if item.category_id == category_id:
                raise ConflictError(f"Category {category_id} is already planned in budget {budget_id}")

        item_id = self.db.create_budget_item(budget_id, category_id, planned_amount)
        return self.db.get_budget_item(item_id)

    def _get_item(self, organization_id: int, budget_id: int, item_id: int) -> BudgetItem:
        self.get_budget(organization_id, budget_id)
        item = self.db.get_budget_item(item_id)
        if item is None or item.budget_id != budget_id:
            raise NotFoundError(budget_item_not_found(item_id))
        return item

    def update_budget_item(
        self, organization_id: int, budget_id: int, item_id: int, planned_amount: Decimal
    ) -> BudgetItem:
        self._get_item(organization_id, budget_id, item_id)
        _check_amount(planned_amount, "planned_amount")
        self.db.update_budget_item(item_id, planned_amount=planned_amount)
        return self.db.get_budget_item(item_id)

    def delete_budget_item(self, organization_id: int, budget_id: int, item_id: int) -> None:
        self._get_item(organization_id, budget_id, item_id)
        self.db.delete_budget_item(item_id)
