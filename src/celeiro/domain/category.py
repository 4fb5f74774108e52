"""Category domain service."""

from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.entities import Category as CategoryEntity, CategoryType, TransactionType
from celeiro.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    category_not_found,
    forbidden,
    missing_required_fields,
)


def parse_category_type(value: CategoryType | str) -> CategoryType:
    try:
        return CategoryType(value)
    except ValueError:
        raise ValidationError(f"invalid category type: {value}") from None


def check_category_compatible(category: CategoryEntity, transaction_type: TransactionType) -> None:
    """Income categories only go on credits and expense categories only on debits.

    Raises:
        ValidationError: On a mismatch
    """
    if category.category_type == CategoryType.INCOME and transaction_type == TransactionType.DEBIT:
        raise ValidationError("cannot assign income category to a debit (expense) transaction")
    if category.category_type == CategoryType.EXPENSE and transaction_type == TransactionType.CREDIT:
        raise ValidationError("cannot assign expense category to a credit (income) transaction")


class CategoryService:
    """Service for system and organization categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        category_type: CategoryType | str = CategoryType.EXPENSE,
        icon: str = "",
        color: str = "",
    ) -> CategoryEntity:
        """Create an organization category.

        Args:
            user_id: Creating user
            organization_id: Owning organization
            name: Category name, unique among the categories the organization sees
            category_type: expense or income
            icon: Icon name
            color: Display color

        Returns:
            The created category

        Raises:
            ValidationError: If name is empty or the type is unknown
            ConflictError: If a visible category already has that name and type
        """
        name = (name or "").strip()
        if not name:
            raise missing_required_fields("name")
        category_type = parse_category_type(category_type)

        for existing in self.db.list_categories(organization_id):
            if existing.name == name and existing.category_type == category_type:
                raise ConflictError(f"Category '{name}' already exists")

        category_id = self.db.create_category(
            name=name,
            category_type=category_type,
            icon=icon or "",
            color=color or "",
            user_id=user_id,
            organization_id=organization_id,
        )
        return self.db.get_category(category_id)

    def get_category(self, organization_id: int, category_id: int) -> CategoryEntity:
        """Get a category visible to the organization.

        Raises:
            NotFoundError: If the category is neither system nor owned by the organization
        """
        category = self.db.get_category(category_id, organization_id=organization_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def list_categories(self, organization_id: int) -> list[CategoryEntity]:
        """System categories first, then the organization's, each by name."""
        return self.db.list_categories(organization_id)

    def update_category(
        self,
        organization_id: int,
        category_id: int,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> CategoryEntity:
        """Update an organization category.

        Raises:
            NotFoundError: If the category is not visible
            PermissionDeniedError: If the category is a system category
        """
        category = self.get_category(organization_id, category_id)
        if category.is_system:
            raise forbidden("system categories cannot be modified")

        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise missing_required_fields("name")
            changes["name"] = name
        if icon is not None:
            changes["icon"] = icon
        if color is not None:
            changes["color"] = color
        if changes:
            self.db.update_category(category_id, **changes)
        return self.get_category(organization_id, category_id)

    def delete_category(self, organization_id: int, category_id: int) -> None:
        """Delete an organization category.

        Raises:
            NotFoundError: If the category is not visible
            PermissionDeniedError: If the category is a system category
            DependencyError: If transactions still use it
        """
        category = self.get_category(organization_id, category_id)
        if category.is_system:
            raise forbidden("system categories cannot be deleted")

        count = self.db.get_category_transaction_count(category_id)
        if count > 0:
            raise DependencyError(
                f"Cannot delete category {category_id}: it is used by "
                f"{count} transaction{'s' if count != 1 else ''}"
            )
        self.db.delete_category(category_id)
