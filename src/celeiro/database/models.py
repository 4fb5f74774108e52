"""SQLAlchemy models for the celeiro database."""

from datetime import datetime, UTC

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.pool import StaticPool

Base = declarative_base()

MONEY = Numeric(14, 2)


def _now() -> datetime:
    return datetime.now(UTC)


# Accounts


class Organization(Base):
    """Organization owning financial data."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    memberships = relationship("UserOrganization", back_populates="organization", cascade="all, delete-orphan")


class User(Base):
    """User profile model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    default_organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    memberships = relationship("UserOrganization", back_populates="user", cascade="all, delete-orphan")


class UserOrganization(Base):
    """Membership of a user in an organization with exactly one role."""

    __tablename__ = "user_organizations"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    role = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "organization_id", name="uq_user_organization"),)

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")


class RolePermission(Base):
    """Role to permission mapping."""

    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True)
    role = Column(String, nullable=False)
    permission = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("role", "permission", name="uq_role_permission"),)


class OrganizationInvite(Base):
    """Pending or accepted invitation into an organization."""

    __tablename__ = "organization_invites"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    email = Column(String, nullable=False)
    role = Column(String, nullable=False)
    token = Column(String, unique=True, nullable=False)
    invited_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


# Financial


class Category(Base):
    """Category model. System categories have no owner."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=False, default="")
    color = Column(String, nullable=False, default="")
    category_type = Column(String, nullable=False, default="expense")
    is_system = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="category")


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False, default="checking")
    bank_name = Column(String, nullable=False, default="")
    balance = Column(MONEY, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="BRL")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    description = Column(String, nullable=False, default="")
    original_description = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    transaction_date = Column(Date, nullable=False)
    transaction_type = Column(String, nullable=False)
    ofx_fitid = Column(String, nullable=True)
    ofx_check_number = Column(String, nullable=True)
    ofx_memo = Column(String, nullable=True)
    raw_ofx_data = Column(Text, nullable=True)
    is_classified = Column(Boolean, default=False, nullable=False)
    classification_rule_id = Column(Integer, ForeignKey("classification_rules.id"), nullable=True)
    is_ignored = Column(Boolean, default=False, nullable=False)
    notes = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    savings_goal_id = Column(Integer, ForeignKey("savings_goals.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Import idempotence rests on this constraint
    __table_args__ = (
        UniqueConstraint("account_id", "ofx_fitid", name="uq_account_ofx_fitid"),
        Index("ix_transactions_date", "transaction_date"),
    )

    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")
    savings_goal = relationship("SavingsGoal", back_populates="transactions")


class Budget(Base):
    """Monthly budget model."""

    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    name = Column(String, nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    budget_type = Column(String, nullable=False, default="fixed")
    amount = Column(MONEY, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    items = relationship("BudgetItem", back_populates="budget", cascade="all, delete-orphan")


class BudgetItem(Base):
    """Planned amount for one category inside a budget."""

    __tablename__ = "budget_items"

    id = Column(Integer, primary_key=True)
    budget_id = Column(Integer, ForeignKey("budgets.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    planned_amount = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("budget_id", "category_id", name="uq_budget_category"),)

    budget = relationship("Budget", back_populates="items")


class PlannedEntry(Base):
    """Planned entry / saved pattern model."""

    __tablename__ = "planned_entries"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    pattern_id = Column(Integer, ForeignKey("advanced_patterns.id"), nullable=True)
    description = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False, default=0)
    amount_min = Column(MONEY, nullable=True)
    amount_max = Column(MONEY, nullable=True)
    expected_day = Column(Integer, nullable=True)
    expected_day_start = Column(Integer, nullable=True)
    expected_day_end = Column(Integer, nullable=True)
    entry_type = Column(String, nullable=False, default="expense")
    is_recurrent = Column(Boolean, default=False, nullable=False)
    parent_entry_id = Column(Integer, ForeignKey("planned_entries.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_saved_pattern = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    statuses = relationship("PlannedEntryStatus", back_populates="entry", cascade="all, delete-orphan")


class PlannedEntryStatus(Base):
    """Monthly status of a planned entry."""

    __tablename__ = "planned_entry_statuses"

    id = Column(Integer, primary_key=True)
    planned_entry_id = Column(Integer, ForeignKey("planned_entries.id"), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="pending")
    matched_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    matched_amount = Column(MONEY, nullable=True)
    matched_at = Column(DateTime, nullable=True)
    dismissed_at = Column(DateTime, nullable=True)
    dismissal_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("planned_entry_id", "month", "year", name="uq_planned_entry_month"),
    )

    entry = relationship("PlannedEntry", back_populates="statuses")


class ClassificationRule(Base):
    """Substring/amount/type rule assigning a category."""

    __tablename__ = "classification_rules"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String, nullable=False)
    priority = Column(Integer, nullable=False, default=0)
    match_description = Column(String, nullable=True)
    match_amount_min = Column(MONEY, nullable=True)
    match_amount_max = Column(MONEY, nullable=True)
    match_transaction_type = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class AdvancedPattern(Base):
    """Regex-based classification pattern."""

    __tablename__ = "advanced_patterns"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    description_pattern = Column(String, nullable=True)
    date_pattern = Column(String, nullable=True)
    weekday_pattern = Column(String, nullable=True)
    amount_min = Column(MONEY, nullable=True)
    amount_max = Column(MONEY, nullable=True)
    target_description = Column(String, nullable=False)
    target_category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    apply_retroactively = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class SavingsGoal(Base):
    """Savings goal. Linked transactions count as contributions."""

    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    name = Column(String, nullable=False)
    goal_type = Column(String, nullable=False)
    target_amount = Column(MONEY, nullable=False)
    initial_amount = Column(MONEY, nullable=False, default=0)
    due_date = Column(Date, nullable=True)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="savings_goal")


def create_session_factory(
    database_url: str, pool_size: int = 10, max_overflow: int = 90
) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    Args:
        database_url: SQLAlchemy database URL
        pool_size: Idle connections kept by the pool (ignored for SQLite)
        max_overflow: Connections allowed beyond pool_size (ignored for SQLite)
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # In-memory databases live on one shared connection
        extra = {"poolclass": StaticPool} if url.database in (None, "", ":memory:") else {}
        engine = create_engine(
            database_url, echo=False, connect_args={"check_same_thread": False}, **extra
        )
    else:
        engine = create_engine(
            database_url,
            echo=False,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
