"""Transaction domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.category import CategoryService, check_category_compatible
from celeiro.domain.entities import Transaction as TransactionEntity, TransactionType
from celeiro.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)


def parse_transaction_type(value: TransactionType | str) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError(f"invalid transaction type: {value}") from None


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categories = CategoryService(db)

    def create_transaction(
        self,
        organization_id: int,
        account_id: int,
        description: str,
        amount: Decimal,
        transaction_date: date,
        transaction_type: TransactionType | str,
        category_id: Optional[int] = None,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> TransactionEntity:
        """Create a manual transaction.

        Args:
            organization_id: Organization scope
            account_id: Account ID
            description: Description; also frozen as the original description
            amount: Amount, stored as its absolute value
            transaction_date: Transaction date
            transaction_type: debit or credit
            category_id: Optional category ID
            notes: Optional notes
            tags: Optional tags

        Returns:
            The created transaction

        Raises:
            NotFoundError: If the account or category is not in scope
            ValidationError: On unknown type or incompatible category
        """
        if self.db.get_account(account_id, organization_id=organization_id) is None:
            raise NotFoundError(account_not_found(account_id))
        transaction_type = parse_transaction_type(transaction_type)

        if category_id is not None:
            category = self.categories.get_category(organization_id, category_id)
            check_category_compatible(category, transaction_type)

        description = (description or "").strip()
        transaction_id = self.db.create_transaction(
            account_id=account_id,
            description=description,
            original_description=description,
            amount=abs(amount),
            transaction_date=transaction_date,
            transaction_type=transaction_type,
            category_id=category_id,
            notes=notes,
            tags=tags,
        )
        return self.db.get_transaction(transaction_id)

    def get_transaction(self, organization_id: int, transaction_id: int) -> TransactionEntity:
        """Get a transaction inside an organization.

        Raises:
            NotFoundError: If the transaction is not in the organization
        """
        txn = self.db.get_transaction(transaction_id, organization_id=organization_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def list_transactions(
        self,
        organization_id: int,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[TransactionEntity]:
        """List transactions, newest first.

        Raises:
            ValidationError: If month is given without year or is out of range
        """
        if month is not None:
            if year is None:
                raise ValidationError("month filter requires year")
            if not 1 <= month <= 12:
                raise ValidationError(f"invalid month: {month}")
        return self.db.list_transactions(
            organization_id=organization_id,
            account_id=account_id,
            category_id=category_id,
            month=month,
            year=year,
            limit=limit,
            offset=offset,
        )

    def list_uncategorized(self, organization_id: int) -> list[TransactionEntity]:
        return self.db.list_transactions(organization_id=organization_id, uncategorized=True)

    def update_transaction(
        self,
        organization_id: int,
        transaction_id: int,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
        amount: Optional[Decimal] = None,
        notes: Optional[str] = None,
        is_ignored: Optional[bool] = None,
        tags: Optional[list[str]] = None,
    ) -> TransactionEntity:
        """Update editable fields. The original description never changes.

        Raises:
            NotFoundError: If the transaction or category is not in scope
            ValidationError: If the category does not fit the transaction type
        """
        txn = self.get_transaction(organization_id, transaction_id)
        changes = {}
        if category_id is not None:
            category = self.categories.get_category(organization_id, category_id)
            check_category_compatible(category, txn.transaction_type)
            changes["category_id"] = category_id
        if description is not None:
            changes["description"] = description.strip()
        if amount is not None:
            changes["amount"] = abs(amount)
        if notes is not None:
            changes["notes"] = notes
        if is_ignored is not None:
            changes["is_ignored"] = is_ignored
        if tags is not None:
            changes["tags"] = list(tags)

        if changes:
            self.db.update_transaction(transaction_id, **changes)
        return self.get_transaction(organization_id, transaction_id)

    def categorize(self, organization_id: int, transaction_id: int, category_id: int) -> TransactionEntity:
        return self.update_transaction(organization_id, transaction_id, category_id=category_id)

    def delete_transaction(self, organization_id: int, transaction_id: int) -> None:
        self.get_transaction(organization_id, transaction_id)
        self.db.delete_transaction(transaction_id)
