"""Bank account domain service."""

from decimal import Decimal
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.entities import Account as AccountEntity, AccountType
from celeiro.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    missing_required_fields,
)


def parse_account_type(value: AccountType | str) -> AccountType:
    try:
        return AccountType(value)
    except ValueError:
        raise ValidationError(f"invalid account type: {value}") from None


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        account_type: AccountType | str = AccountType.CHECKING,
        bank_name: str = "",
        balance: Decimal = Decimal("0"),
        currency: str = "BRL",
    ) -> AccountEntity:
        """Create a new account.

        Args:
            user_id: Owning user
            organization_id: Owning organization
            name: Account name, unique inside the organization
            account_type: checking, savings, credit_card or investment
            bank_name: Bank name
            balance: Opening balance
            currency: ISO currency code

        Returns:
            The created account

        Raises:
            ValidationError: If name is empty or the type is unknown
            ConflictError: If an account with that name already exists
        """
        name = (name or "").strip()
        if not name:
            raise missing_required_fields("name")
        account_type = parse_account_type(account_type)

        for acc in self.db.list_accounts(organization_id, include_inactive=True):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        account_id = self.db.create_account(
            user_id=user_id,
            organization_id=organization_id,
            name=name,
            account_type=account_type,
            bank_name=bank_name or "",
            balance=balance,
            currency=(currency or "BRL").upper(),
        )
        return self.db.get_account(account_id)

    def get_account(self, organization_id: int, account_id: int) -> AccountEntity:
        """Get account by ID inside an organization.

        Raises:
            NotFoundError: If the account is not in the organization
        """
        account = self.db.get_account(account_id, organization_id=organization_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, organization_id: int, include_inactive: bool = False) -> list[AccountEntity]:
        return self.db.list_accounts(organization_id, include_inactive=include_inactive)

    def update_account(
        self,
        organization_id: int,
        account_id: int,
        name: Optional[str] = None,
        account_type: Optional[AccountType | str] = None,
        bank_name: Optional[str] = None,
        balance: Optional[Decimal] = None,
        currency: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> AccountEntity:
        """Update the given fields of an account.

        Raises:
            NotFoundError: If the account is not in the organization
            ConflictError: If the new name is taken
        """
        self.get_account(organization_id, account_id)
        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise missing_required_fields("name")
            for acc in self.db.list_accounts(organization_id, include_inactive=True):
                if acc.id != account_id and acc.name == name:
                    raise ConflictError(f"Account with name '{name}' already exists")
            changes["name"] = name
        if account_type is not None:
            changes["account_type"] = parse_account_type(account_type)
        if bank_name is not None:
            changes["bank_name"] = bank_name
        if balance is not None:
            changes["balance"] = balance
        if currency is not None:
            changes["currency"] = currency.upper()
        if is_active is not None:
            changes["is_active"] = is_active

        if changes:
            self.db.update_account(account_id, **changes)
        return self.get_account(organization_id, account_id)

    def delete_account(self, organization_id: int, account_id: int) -> None:
        """Delete an account.

        Raises:
            NotFoundError: If the account is not in the organization
            DependencyError: If the account still has transactions
        """
        self.get_account(organization_id, account_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        if transaction_count > 0:
            raise DependencyError(account_delete_blocked(account_id, transaction_count))

        self.db.delete_account(account_id)
