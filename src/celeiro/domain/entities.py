"""Domain model entities for celeiro.

These are pure data classes representing business concepts, independent of
database schema. Services and the HTTP layer exchange these, never ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    REGULAR_MANAGER = "regular_manager"
    REGULAR_USER = "regular_user"


class Permission(str, Enum):
    VIEW_ORGANIZATIONS = "view_organizations"
    EDIT_ORGANIZATIONS = "edit_organizations"
    CREATE_ORGANIZATIONS = "create_organizations"
    DELETE_ORGANIZATIONS = "delete_organizations"
    VIEW_REGULAR_USERS = "view_regular_users"
    EDIT_REGULAR_USERS = "edit_regular_users"
    CREATE_REGULAR_USERS = "create_regular_users"
    DELETE_REGULAR_USERS = "delete_regular_users"


# Seeded into the role_permissions table on schema initialization.
DEFAULT_ROLE_PERMISSIONS: dict[Role, tuple[Permission, ...]] = {
    Role.SUPER_ADMIN: tuple(Permission),
    Role.ADMIN: tuple(Permission),
    Role.REGULAR_MANAGER: (
        Permission.VIEW_ORGANIZATIONS,
        Permission.EDIT_ORGANIZATIONS,
        Permission.VIEW_REGULAR_USERS,
        Permission.EDIT_REGULAR_USERS,
        Permission.CREATE_REGULAR_USERS,
        Permission.DELETE_REGULAR_USERS,
    ),
    Role.REGULAR_USER: (
        Permission.VIEW_ORGANIZATIONS,
        Permission.VIEW_REGULAR_USERS,
    ),
}


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class CategoryType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class BudgetType(str, Enum):
    FIXED = "fixed"
    CALCULATED = "calculated"
    STRICTER_OF_BOTH = "stricter_of_both"


class BudgetStatus(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_BUDGET = "over_budget"


class EntryType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class PlannedEntryStatusKind(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    MISSED = "missed"
    DISMISSED = "dismissed"


class SavingsGoalType(str, Enum):
    RESERVE = "reserva"
    INVESTMENT = "investimento"


class IncomePlanningStatus(str, Enum):
    OK = "OK"
    WARNING = "WARNING"


# Accounts


@dataclass(frozen=True)
class User:
    """User profile."""

    id: int
    name: str
    email: str
    phone: Optional[str]
    default_organization_id: Optional[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Organization:
    id: int
    name: str
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class OrganizationWithPermissions:
    """A membership of the current user, with permissions resolved from the role."""

    organization_id: int
    name: str
    user_role: Role
    user_permissions: tuple[Permission, ...]
    is_default: bool = False


@dataclass(frozen=True)
class OrganizationMember:
    user_id: int
    name: str
    email: str
    role: Role
    joined_at: datetime


@dataclass(frozen=True)
class OrganizationInvite:
    id: int
    organization_id: int
    email: str
    role: Role
    token: str
    invited_by_user_id: int
    expires_at: datetime
    accepted_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class SessionInfo:
    user: User
    organizations: tuple[OrganizationWithPermissions, ...]


@dataclass(frozen=True)
class Session:
    token: str
    info: SessionInfo
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Authentication:
    session: Session
    is_new_user: bool


@dataclass(frozen=True)
class MagicCode:
    code: str
    email: str
    expires_at: datetime


# Financial


@dataclass(frozen=True)
class Category:
    """Category domain entity. System categories have no owner."""

    id: int
    name: str
    icon: str
    color: str
    category_type: CategoryType
    is_system: bool
    user_id: Optional[int]
    organization_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    user_id: int
    organization_id: int
    name: str
    account_type: AccountType
    bank_name: str
    balance: Decimal
    currency: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    ``amount`` is never negative; the sign lives in ``transaction_type``.
    """

    id: int
    account_id: int
    category_id: Optional[int]
    description: str
    original_description: Optional[str]
    amount: Decimal
    transaction_date: date
    transaction_type: TransactionType
    ofx_fitid: Optional[str]
    ofx_check_number: Optional[str]
    ofx_memo: Optional[str]
    raw_ofx_data: Optional[str]
    is_classified: bool
    classification_rule_id: Optional[int]
    is_ignored: bool
    notes: Optional[str]
    tags: tuple[str, ...]
    created_at: datetime
    savings_goal_id: Optional[int] = None

    @property
    def match_text(self) -> str:
        """Text used by classification rules and patterns."""
        return self.original_description or self.description or ""


@dataclass(frozen=True)
class Budget:
    id: int
    user_id: int
    organization_id: int
    name: str
    month: int
    year: int
    budget_type: BudgetType
    amount: Decimal
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class BudgetItem:
    id: int
    budget_id: int
    category_id: int
    planned_amount: Decimal


@dataclass(frozen=True)
class BudgetWithItems:
    budget: Budget
    items: tuple[BudgetItem, ...]


@dataclass(frozen=True)
class CategoryProgress:
    category_id: int
    category_name: str
    planned_amount: Decimal
    actual_spent: Decimal
    variance: Decimal
    status: BudgetStatus


@dataclass(frozen=True)
class BudgetProgress:
    budget_id: int
    budget_type: BudgetType
    total_budget: Decimal
    current_day: int
    days_in_month: int
    progress_percentage: Decimal
    expected_at_current_day: Decimal
    actual_spent: Decimal
    variance: Decimal
    status: BudgetStatus
    projection_end_of_month: Decimal
    projected_variance_at_end: Decimal
    categories: tuple[CategoryProgress, ...] = ()


@dataclass(frozen=True)
class PlannedEntry:
    """Planned entry. Saved patterns double as matching templates."""

    id: int
    user_id: int
    organization_id: int
    category_id: int
    pattern_id: Optional[int]
    description: str
    amount: Decimal
    amount_min: Optional[Decimal]
    amount_max: Optional[Decimal]
    expected_day: Optional[int]
    expected_day_start: Optional[int]
    expected_day_end: Optional[int]
    entry_type: EntryType
    is_recurrent: bool
    parent_entry_id: Optional[int]
    is_active: bool
    is_saved_pattern: bool
    created_at: datetime


@dataclass(frozen=True)
class PlannedEntryStatus:
    id: int
    planned_entry_id: int
    month: int
    year: int
    status: PlannedEntryStatusKind
    matched_transaction_id: Optional[int]
    matched_amount: Optional[Decimal]
    matched_at: Optional[datetime]
    dismissed_at: Optional[datetime]
    dismissal_reason: Optional[str]


@dataclass(frozen=True)
class AdvancedPattern:
    id: int
    user_id: int
    organization_id: int
    description_pattern: Optional[str]
    date_pattern: Optional[str]
    weekday_pattern: Optional[str]
    amount_min: Optional[Decimal]
    amount_max: Optional[Decimal]
    target_description: str
    target_category_id: int
    apply_retroactively: bool
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class PlannedEntryWithStatus:
    entry: PlannedEntry
    status: PlannedEntryStatusKind
    matched_transaction_id: Optional[int] = None
    matched_amount: Optional[Decimal] = None
    matched_at: Optional[datetime] = None
    linked_pattern: Optional[AdvancedPattern] = None


@dataclass(frozen=True)
class ClassificationRule:
    id: int
    user_id: int
    organization_id: int
    category_id: int
    name: str
    priority: int
    match_description: Optional[str]
    match_amount_min: Optional[Decimal]
    match_amount_max: Optional[Decimal]
    match_transaction_type: Optional[TransactionType]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class ImportResult:
    account_id: int
    imported_count: int
    duplicate_count: int
    auto_matched_count: int = 0
    classified_count: int = 0
    transaction_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ClassificationResult:
    classified_count: int
    failed_count: int


# Savings goals


@dataclass(frozen=True)
class SavingsGoal:
    """Savings goal. Reserve goals always carry a due date."""

    id: int
    user_id: int
    organization_id: int
    name: str
    goal_type: SavingsGoalType
    target_amount: Decimal
    initial_amount: Decimal
    due_date: Optional[date]
    icon: Optional[str]
    color: Optional[str]
    notes: Optional[str]
    is_active: bool
    is_completed: bool
    completed_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class MonthlyContribution:
    month: int
    year: int
    amount: Decimal


@dataclass(frozen=True)
class SavingsGoalProgress:
    goal: SavingsGoal
    current_amount: Decimal
    progress_percent: Decimal
    monthly_contributions: tuple[MonthlyContribution, ...] = ()
    months_remaining: Optional[int] = None
    monthly_target: Optional[Decimal] = None
    is_on_track: Optional[bool] = None


@dataclass(frozen=True)
class SavingsGoalDetail:
    progress: SavingsGoalProgress
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class IncomePlanningReport:
    month: int
    year: int
    total_income: Decimal
    total_planned: Decimal
    unallocated: Decimal
    unallocated_percent: Decimal
    threshold: Decimal
    status: IncomePlanningStatus
    message: str
