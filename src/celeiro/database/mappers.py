"""Mapper functions to convert between SQLAlchemy models and domain entities.

This layer isolates the conversion logic, so schema changes stay out of the
domain services.
"""

from datetime import datetime, UTC
from typing import Iterable, Optional

from celeiro.domain import entities as domain
from celeiro.database.models import (
    Account as ORMAccount,
    AdvancedPattern as ORMAdvancedPattern,
    Budget as ORMBudget,
    BudgetItem as ORMBudgetItem,
    Category as ORMCategory,
    ClassificationRule as ORMClassificationRule,
    Organization as ORMOrganization,
    OrganizationInvite as ORMOrganizationInvite,
    PlannedEntry as ORMPlannedEntry,
    PlannedEntryStatus as ORMPlannedEntryStatus,
    SavingsGoal as ORMSavingsGoal,
    Transaction as ORMTransaction,
    User as ORMUser,
    UserOrganization as ORMUserOrganization,
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        name=orm_user.name,
        email=orm_user.email,
        phone=orm_user.phone,
        default_organization_id=orm_user.default_organization_id,
        created_at=as_utc(orm_user.created_at),
        updated_at=as_utc(orm_user.updated_at),
    )


def organization_to_domain(orm_org: ORMOrganization) -> domain.Organization:
    """Convert SQLAlchemy Organization model to domain Organization entity."""
    return domain.Organization(
        id=orm_org.id,
        name=orm_org.name,
        city=orm_org.city,
        state=orm_org.state,
        country=orm_org.country,
        created_at=as_utc(orm_org.created_at),
    )


def membership_to_domain(
    orm_membership: ORMUserOrganization,
    permissions: Iterable[str],
    default_organization_id: Optional[int] = None,
) -> domain.OrganizationWithPermissions:
    """Convert a membership row plus its role's permissions."""
    return domain.OrganizationWithPermissions(
        organization_id=orm_membership.organization_id,
        name=orm_membership.organization.name,
        user_role=domain.Role(orm_membership.role),
        user_permissions=tuple(domain.Permission(p) for p in sorted(permissions)),
        is_default=orm_membership.organization_id == default_organization_id,
    )


def member_to_domain(orm_membership: ORMUserOrganization) -> domain.OrganizationMember:
    return domain.OrganizationMember(
        user_id=orm_membership.user_id,
        name=orm_membership.user.name,
        email=orm_membership.user.email,
        role=domain.Role(orm_membership.role),
        joined_at=as_utc(orm_membership.created_at),
    )


def invite_to_domain(orm_invite: ORMOrganizationInvite) -> domain.OrganizationInvite:
    return domain.OrganizationInvite(
        id=orm_invite.id,
        organization_id=orm_invite.organization_id,
        email=orm_invite.email,
        role=domain.Role(orm_invite.role),
        token=orm_invite.token,
        invited_by_user_id=orm_invite.invited_by_user_id,
        expires_at=as_utc(orm_invite.expires_at),
        accepted_at=as_utc(orm_invite.accepted_at),
        created_at=as_utc(orm_invite.created_at),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        icon=orm_category.icon or "",
        color=orm_category.color or "",
        category_type=domain.CategoryType(orm_category.category_type),
        is_system=orm_category.is_system,
        user_id=orm_category.user_id,
        organization_id=orm_category.organization_id,
        created_at=as_utc(orm_category.created_at),
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        user_id=orm_account.user_id,
        organization_id=orm_account.organization_id,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        bank_name=orm_account.bank_name,
        balance=orm_account.balance,
        currency=orm_account.currency,
        is_active=orm_account.is_active,
        created_at=as_utc(orm_account.created_at),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        description=orm_transaction.description,
        original_description=orm_transaction.original_description,
        amount=orm_transaction.amount,
        transaction_date=orm_transaction.transaction_date,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        ofx_fitid=orm_transaction.ofx_fitid,
        ofx_check_number=orm_transaction.ofx_check_number,
        ofx_memo=orm_transaction.ofx_memo,
        raw_ofx_data=orm_transaction.raw_ofx_data,
        is_classified=orm_transaction.is_classified,
        classification_rule_id=orm_transaction.classification_rule_id,
        is_ignored=orm_transaction.is_ignored,
        notes=orm_transaction.notes,
        tags=tuple(orm_transaction.tags or ()),
        created_at=as_utc(orm_transaction.created_at),
        savings_goal_id=orm_transaction.savings_goal_id,
    )


def budget_to_domain(orm_budget: ORMBudget) -> domain.Budget:
    return domain.Budget(
        id=orm_budget.id,
        user_id=orm_budget.user_id,
        organization_id=orm_budget.organization_id,
        name=orm_budget.name,
        month=orm_budget.month,
        year=orm_budget.year,
        budget_type=domain.BudgetType(orm_budget.budget_type),
        amount=orm_budget.amount,
        is_active=orm_budget.is_active,
        created_at=as_utc(orm_budget.created_at),
    )


def budget_item_to_domain(orm_item: ORMBudgetItem) -> domain.BudgetItem:
    return domain.BudgetItem(
        id=orm_item.id,
        budget_id=orm_item.budget_id,
        category_id=orm_item.category_id,
        planned_amount=orm_item.planned_amount,
    )


def planned_entry_to_domain(orm_entry: ORMPlannedEntry) -> domain.PlannedEntry:
    return domain.PlannedEntry(
        id=orm_entry.id,
        user_id=orm_entry.user_id,
        organization_id=orm_entry.organization_id,
        category_id=orm_entry.category_id,
        pattern_id=orm_entry.pattern_id,
        description=orm_entry.description,
        amount=orm_entry.amount,
        amount_min=orm_entry.amount_min,
        amount_max=orm_entry.amount_max,
        expected_day=orm_entry.expected_day,
        expected_day_start=orm_entry.expected_day_start,
        expected_day_end=orm_entry.expected_day_end,
        entry_type=domain.EntryType(orm_entry.entry_type),
        is_recurrent=orm_entry.is_recurrent,
        parent_entry_id=orm_entry.parent_entry_id,
        is_active=orm_entry.is_active,
        is_saved_pattern=orm_entry.is_saved_pattern,
        created_at=as_utc(orm_entry.created_at),
    )


def planned_entry_status_to_domain(orm_status: ORMPlannedEntryStatus) -> domain.PlannedEntryStatus:
    return domain.PlannedEntryStatus(
        id=orm_status.id,
        planned_entry_id=orm_status.planned_entry_id,
        month=orm_status.month,
        year=orm_status.year,
        status=domain.PlannedEntryStatusKind(orm_status.status),
        matched_transaction_id=orm_status.matched_transaction_id,
        matched_amount=orm_status.matched_amount,
        matched_at=as_utc(orm_status.matched_at),
        dismissed_at=as_utc(orm_status.dismissed_at),
        dismissal_reason=orm_status.dismissal_reason,
    )


def classification_rule_to_domain(orm_rule: ORMClassificationRule) -> domain.ClassificationRule:
    return domain.ClassificationRule(
        id=orm_rule.id,
        user_id=orm_rule.user_id,
        organization_id=orm_rule.organization_id,
        category_id=orm_rule.category_id,
        name=orm_rule.name,
        priority=orm_rule.priority,
        match_description=orm_rule.match_description,
        match_amount_min=orm_rule.match_amount_min,
        match_amount_max=orm_rule.match_amount_max,
        match_transaction_type=(
            domain.TransactionType(orm_rule.match_transaction_type)
            if orm_rule.match_transaction_type
            else None
        ),
        is_active=orm_rule.is_active,
        created_at=as_utc(orm_rule.created_at),
    )


def advanced_pattern_to_domain(orm_pattern: ORMAdvancedPattern) -> domain.AdvancedPattern:
    return domain.AdvancedPattern(
        id=orm_pattern.id,
        user_id=orm_pattern.user_id,
        organization_id=orm_pattern.organization_id,
        description_pattern=orm_pattern.description_pattern,
        date_pattern=orm_pattern.date_pattern,
        weekday_pattern=orm_pattern.weekday_pattern,
        amount_min=orm_pattern.amount_min,
        amount_max=orm_pattern.amount_max,
        target_description=orm_pattern.target_description,
        target_category_id=orm_pattern.target_category_id,
        apply_retroactively=orm_pattern.apply_retroactively,
        is_active=orm_pattern.is_active,
        created_at=as_utc(orm_pattern.created_at),
    )


def savings_goal_to_domain(orm_goal: ORMSavingsGoal) -> domain.SavingsGoal:
    return domain.SavingsGoal(
        id=orm_goal.id,
        user_id=orm_goal.user_id,
        organization_id=orm_goal.organization_id,
        name=orm_goal.name,
        goal_type=domain.SavingsGoalType(orm_goal.goal_type),
        target_amount=orm_goal.target_amount,
        initial_amount=orm_goal.initial_amount,
        due_date=orm_goal.due_date,
        icon=orm_goal.icon,
        color=orm_goal.color,
        notes=orm_goal.notes,
        is_active=orm_goal.is_active,
        is_completed=orm_goal.is_completed,
        completed_at=as_utc(orm_goal.completed_at),
        created_at=as_utc(orm_goal.created_at),
    )
