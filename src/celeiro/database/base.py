"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Any

# Import entities directly to avoid circular import through domain/__init__.py
from celeiro.domain.entities import (
    Account,
    AdvancedPattern,
    Budget,
    BudgetItem,
    Category,
    ClassificationRule,
    Organization,
    OrganizationInvite,
    OrganizationMember,
    OrganizationWithPermissions,
    Permission,
    PlannedEntry,
    PlannedEntryStatus,
    Role,
    SavingsGoal,
    Transaction,
    User,
)


class Database(ABC):
    """Abstract database interface for celeiro.

    Writes made inside ``with db.transaction():`` commit together or not at
    all. Calls made while a transaction is open on the current context join
    it, including nested ``transaction()`` blocks.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema and seed reference data."""
        pass

    @abstractmethod
    def ping(self) -> None:
        """Run a trivial query. Raises UpstreamError when unreachable."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open a transaction, or join the one already open on this context."""
        pass

    # Organization operations
    @abstractmethod
    def create_organization(
        self,
        name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
    ) -> int:
        """Create an organization. Returns organization ID."""
        pass

    @abstractmethod
    def get_organization(self, organization_id: int) -> Optional[Organization]:
        """Get organization by ID."""
        pass

    # User operations
    @abstractmethod
    def create_user(
        self,
        name: str,
        email: str,
        phone: Optional[str] = None,
        default_organization_id: Optional[int] = None,
    ) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-sensitive)."""
        pass

    @abstractmethod
    def list_users(self, organization_id: Optional[int] = None) -> list[User]:
        """List users, optionally only members of one organization."""
        pass

    @abstractmethod
    def set_default_organization(self, user_id: int, organization_id: int) -> None:
        """Set a user's default organization."""
        pass

    # Membership operations
    @abstractmethod
    def create_membership(self, user_id: int, organization_id: int, role: Role) -> int:
        """Add a user to an organization with a role. Returns membership ID."""
        pass

    @abstractmethod
    def get_membership(
        self, user_id: int, organization_id: int
    ) -> Optional[OrganizationWithPermissions]:
        """Get a membership with its role's permissions."""
        pass

    @abstractmethod
    def list_memberships(self, user_id: int) -> list[OrganizationWithPermissions]:
        """List a user's memberships with permissions, oldest first."""
        pass

    @abstractmethod
    def list_organization_members(self, organization_id: int) -> list[OrganizationMember]:
        """List members of an organization."""
        pass

    @abstractmethod
    def get_role_permissions(self, role: Role) -> list[Permission]:
        """List permissions granted to a role."""
        pass

    # Invite operations
    @abstractmethod
    def create_invite(
        self,
        organization_id: int,
        email: str,
        role: Role,
        token: str,
        invited_by_user_id: int,
        expires_at: datetime,
    ) -> int:
        """Create an organization invite. Returns invite ID."""
        pass

    @abstractmethod
    def get_invite(self, invite_id: int) -> Optional[OrganizationInvite]:
        """Get invite by ID."""
        pass

    @abstractmethod
    def get_invite_by_token(self, token: str) -> Optional[OrganizationInvite]:
        """Get invite by token."""
        pass

    @abstractmethod
    def list_pending_invites(self, organization_id: int, now: datetime) -> list[OrganizationInvite]:
        """List unaccepted, unexpired invites of an organization."""
        pass

    @abstractmethod
    def mark_invite_accepted(self, invite_id: int, accepted_at: datetime) -> None:
        """Mark an invite as accepted."""
        pass

    @abstractmethod
    def delete_invite(self, invite_id: int, organization_id: int) -> bool:
        """Delete an invite of an organization. Returns True if one was deleted."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        category_type: str = "expense",
        icon: str = "",
        color: str = "",
        user_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        is_system: bool = False,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(
        self, category_id: int, organization_id: Optional[int] = None
    ) -> Optional[Category]:
        """Get category by ID; with organization_id, only system or that organization's."""
        pass

    @abstractmethod
    def list_categories(self, organization_id: int) -> list[Category]:
        """List system categories plus the organization's own."""
        pass

    @abstractmethod
    def update_category(self, category_id: int, **changes: Any) -> None:
        """Update category fields."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category."""
        pass

    @abstractmethod
    def get_category_transaction_count(self, category_id: int) -> int:
        """Count transactions assigned to a category."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        account_type: str = "checking",
        bank_name: str = "",
        balance: Decimal = Decimal("0"),
        currency: str = "BRL",
    ) -> int:
        """Create a bank account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, organization_id: Optional[int] = None) -> Optional[Account]:
        """Get account by ID, optionally scoped to an organization."""
        pass

    @abstractmethod
    def list_accounts(self, organization_id: int, include_inactive: bool = False) -> list[Account]:
        """List accounts of an organization."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, **changes: Any) -> None:
        """Update account fields."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Get count of transactions associated with an account."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        description: str,
        amount: Decimal,
        transaction_date: date,
        transaction_type: str,
        category_id: Optional[int] = None,
        original_description: Optional[str] = None,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def bulk_insert_transactions(self, rows: list[dict[str, Any]]) -> list[int]:
        """Insert many transactions in one statement batch. Returns new IDs in order."""
        pass

    @abstractmethod
    def get_transaction(
        self, transaction_id: int, organization_id: Optional[int] = None
    ) -> Optional[Transaction]:
        """Get transaction by ID, optionally scoped to an organization."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        organization_id: int,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        uncategorized: bool = False,
        unclassified: bool = False,
        savings_goal_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List an organization's transactions, newest first."""
        pass

    @abstractmethod
    def get_existing_fitids(self, account_id: int) -> set[str]:
        """Return the OFX FITIDs already stored for an account."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **changes: Any) -> None:
        """Update transaction fields."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Budget operations
    @abstractmethod
    def create_budget(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        month: int,
        year: int,
        budget_type: str,
        amount: Decimal,
    ) -> int:
        """Create a budget. Returns budget ID."""
        pass

    @abstractmethod
    def get_budget(self, budget_id: int, organization_id: Optional[int] = None) -> Optional[Budget]:
        """Get budget by ID, optionally scoped to an organization."""
        pass

    @abstractmethod
    def list_budgets(
        self, organization_id: int, month: Optional[int] = None, year: Optional[int] = None
    ) -> list[Budget]:
        """List budgets of an organization."""
        pass

    @abstractmethod
    def find_active_budget(
        self, user_id: int, organization_id: int, month: int, year: int
    ) -> Optional[Budget]:
        """Find the active budget for a user, organization and month."""
        pass

    @abstractmethod
    def update_budget(self, budget_id: int, **changes: Any) -> None:
        """Update budget fields."""
        pass

    @abstractmethod
    def delete_budget(self, budget_id: int) -> None:
        """Delete a budget and its items."""
        pass

    @abstractmethod
    def create_budget_item(self, budget_id: int, category_id: int, planned_amount: Decimal) -> int:
        """Create a budget item. Returns budget item ID."""
        pass

    @abstractmethod
    def get_budget_item(self, budget_item_id: int) -> Optional[BudgetItem]:
        """Get budget item by ID."""
        pass

    @abstractmethod
    def list_budget_items(self, budget_id: int) -> list[BudgetItem]:
        """List items of a budget."""
        pass

    @abstractmethod
    def update_budget_item(self, budget_item_id: int, **changes: Any) -> None:
        """Update budget item fields."""
        pass

    @abstractmethod
    def delete_budget_item(self, budget_item_id: int) -> None:
        """Delete a budget item."""
        pass

    # Planned entry operations
    @abstractmethod
    def create_planned_entry(
        self,
        user_id: int,
        organization_id: int,
        category_id: int,
        description: str,
        amount: Decimal,
        entry_type: str = "expense",
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        expected_day: Optional[int] = None,
        expected_day_start: Optional[int] = None,
        expected_day_end: Optional[int] = None,
        is_recurrent: bool = False,
        parent_entry_id: Optional[int] = None,
        pattern_id: Optional[int] = None,
        is_saved_pattern: bool = False,
    ) -> int:
        """Create a planned entry. Returns planned entry ID."""
        pass

    @abstractmethod
    def get_planned_entry(
        self, planned_entry_id: int, organization_id: Optional[int] = None
    ) -> Optional[PlannedEntry]:
        """Get planned entry by ID, optionally scoped to an organization."""
        pass

    @abstractmethod
    def list_planned_entries(
        self,
        organization_id: int,
        is_recurrent: Optional[bool] = None,
        is_active: Optional[bool] = None,
        is_saved_pattern: Optional[bool] = None,
        category_id: Optional[int] = None,
        parent_entry_id: Optional[int] = None,
    ) -> list[PlannedEntry]:
        """List planned entries of an organization."""
        pass

    @abstractmethod
    def update_planned_entry(self, planned_entry_id: int, **changes: Any) -> None:
        """Update planned entry fields."""
        pass

    @abstractmethod
    def delete_planned_entry(self, planned_entry_id: int) -> None:
        """Delete a planned entry and its statuses."""
        pass

    @abstractmethod
    def get_planned_entry_status(
        self, planned_entry_id: int, month: int, year: int
    ) -> Optional[PlannedEntryStatus]:
        """Get the status of a planned entry for a month."""
        pass

    @abstractmethod
    def list_planned_entry_statuses(
        self, organization_id: int, month: int, year: int
    ) -> list[PlannedEntryStatus]:
        """List statuses of an organization's planned entries for a month."""
        pass

    @abstractmethod
    def upsert_planned_entry_status(
        self, planned_entry_id: int, month: int, year: int, **changes: Any
    ) -> PlannedEntryStatus:
        """Create or update the status row for a planned entry and month."""
        pass

    @abstractmethod
    def get_planned_entry_status_by_transaction(
        self, transaction_id: int
    ) -> Optional[PlannedEntryStatus]:
        """Find the status row a transaction is matched to."""
        pass

    # Classification rule operations
    @abstractmethod
    def create_classification_rule(
        self,
        user_id: int,
        organization_id: int,
        category_id: int,
        name: str,
        priority: int = 0,
        match_description: Optional[str] = None,
        match_amount_min: Optional[Decimal] = None,
        match_amount_max: Optional[Decimal] = None,
        match_transaction_type: Optional[str] = None,
    ) -> int:
        """Create a classification rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_classification_rule(
        self, rule_id: int, organization_id: Optional[int] = None
    ) -> Optional[ClassificationRule]:
        """Get classification rule by ID."""
        pass

    @abstractmethod
    def list_classification_rules(
        self, organization_id: int, active_only: bool = False
    ) -> list[ClassificationRule]:
        """List rules ordered by ascending priority, then ID."""
        pass

    @abstractmethod
    def update_classification_rule(self, rule_id: int, **changes: Any) -> None:
        """Update classification rule fields."""
        pass

    @abstractmethod
    def delete_classification_rule(self, rule_id: int) -> None:
        """Delete a classification rule."""
        pass

    # Advanced pattern operations
    @abstractmethod
    def create_advanced_pattern(
        self,
        user_id: int,
        organization_id: int,
        target_description: str,
        target_category_id: int,
        description_pattern: Optional[str] = None,
        date_pattern: Optional[str] = None,
        weekday_pattern: Optional[str] = None,
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        apply_retroactively: bool = False,
    ) -> int:
        """Create an advanced pattern. Returns pattern ID."""
        pass

    @abstractmethod
    def get_advanced_pattern(
        self, pattern_id: int, organization_id: Optional[int] = None
    ) -> Optional[AdvancedPattern]:
        """Get advanced pattern by ID."""
        pass

    @abstractmethod
    def list_advanced_patterns(
        self, organization_id: int, is_active: Optional[bool] = None
    ) -> list[AdvancedPattern]:
        """List advanced patterns of an organization."""
        pass

    @abstractmethod
    def update_advanced_pattern(self, pattern_id: int, **changes: Any) -> None:
        """Update advanced pattern fields."""
        pass

    @abstractmethod
    def delete_advanced_pattern(self, pattern_id: int) -> None:
        """Delete an advanced pattern."""
        pass

    # Savings goal operations
    @abstractmethod
    def create_savings_goal(
        self,
        user_id: int,
        organization_id: int,
        name: str,
        goal_type: str,
        target_amount: Decimal,
        initial_amount: Decimal = Decimal("0"),
        due_date: Optional[date] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a savings goal. Returns goal ID."""
        pass

    @abstractmethod
    def get_savings_goal(
        self, savings_goal_id: int, organization_id: Optional[int] = None
    ) -> Optional[SavingsGoal]:
        """Get savings goal by ID."""
        pass

    @abstractmethod
    def list_savings_goals(
        self,
        organization_id: int,
        is_active: Optional[bool] = None,
        is_completed: Optional[bool] = None,
        goal_type: Optional[str] = None,
    ) -> list[SavingsGoal]:
        """List savings goals of an organization."""
        pass

    @abstractmethod
    def update_savings_goal(self, savings_goal_id: int, **changes: Any) -> None:
        """Update savings goal fields."""
        pass

    @abstractmethod
    def delete_savings_goal(self, savings_goal_id: int) -> None:
        """Delete a savings goal, unlinking its transactions."""
        pass
