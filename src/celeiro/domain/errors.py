"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Every error carries a stable ``code`` that the HTTP layer maps to a
    status. Subclasses provide semantic categories while preserving
    ValueError compatibility for existing error handling.
    """

    code = "DOMAIN_ERROR"
    default_message = "domain error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message or self.default_message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = "INVALID_FORMAT"
    default_message = "invalid format"


class NotFoundError(DomainError):
    """Requested domain entity does not exist in the caller's scope."""

    code = "NOT_FOUND"
    default_message = "not found"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    code = "CONFLICT"
    default_message = "conflict"


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""

    code = "CONFLICT"
    default_message = "operation blocked by dependent data"


class AuthenticationError(DomainError):
    """Credentials, codes or sessions that cannot be accepted."""

    code = "UNAUTHORIZED"
    default_message = "unauthorized"


class PermissionDeniedError(DomainError):
    """Authenticated caller lacks a required permission."""

    code = "FORBIDDEN"
    default_message = "forbidden"


class UpstreamError(DomainError):
    """A backing service (database, K/V store, mail provider) failed."""

    code = "UPSTREAM_ERROR"
    default_message = "upstream service failure"


# Input
def email_required() -> ValidationError:
    return ValidationError("email is required", code="EMAIL_REQUIRED")


def email_format_invalid() -> ValidationError:
    return ValidationError("email format is invalid", code="EMAIL_FORMAT_INVALID")


def code_required() -> ValidationError:
    return ValidationError("code is required", code="CODE_REQUIRED")


def code_format_invalid() -> ValidationError:
    return ValidationError("code must be 4 digits", code="CODE_FORMAT_INVALID")


def missing_required_fields(*fields: str) -> ValidationError:
    message = "missing required fields"
    if fields:
        message = f"{message}: {', '.join(fields)}"
    return ValidationError(message, code="MISSING_REQUIRED_FIELDS")


def invalid_role(role: str) -> ValidationError:
    return ValidationError(f"invalid role: {role}", code="INVALID_ROLE")


def no_transactions_found() -> ValidationError:
    return ValidationError("no transactions found in OFX data", code="NO_TRANSACTIONS_FOUND")


# Auth
def activation_failed() -> AuthenticationError:
    return AuthenticationError("activation failed", code="ACTIVATION_FAILED")


def invalid_code() -> AuthenticationError:
    return AuthenticationError("invalid code", code="INVALID_CODE")


def code_expired() -> AuthenticationError:
    return AuthenticationError("code has expired", code="CODE_EXPIRED")


def session_not_found() -> AuthenticationError:
    return AuthenticationError("session not found", code="SESSION_NOT_FOUND")


def session_expired() -> AuthenticationError:
    return AuthenticationError("session has expired", code="SESSION_EXPIRED")


def invalid_session_format() -> AuthenticationError:
    return AuthenticationError("invalid session format", code="INVALID_SESSION_FORMAT")


def user_not_found(email: str) -> NotFoundError:
    return NotFoundError(f"User with email '{email}' not found", code="USER_NOT_FOUND")


# Entity messages
def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def budget_not_found(budget_id: int) -> str:
    return f"Budget {budget_id} not found"


def budget_item_not_found(budget_item_id: int) -> str:
    return f"Budget item {budget_item_id} not found"


def planned_entry_not_found(planned_entry_id: int) -> str:
    return f"Planned entry {planned_entry_id} not found"


def planned_entry_status_not_found(planned_entry_id: int, month: int, year: int) -> str:
    return f"No status for planned entry {planned_entry_id} in {year:04d}-{month:02d}"


def rule_not_found(rule_id: int) -> str:
    return f"Classification rule {rule_id} not found"


def pattern_not_found(pattern_id: int) -> str:
    return f"Pattern {pattern_id} not found"


def organization_not_found(organization_id: int) -> str:
    return f"Organization {organization_id} not found"


def savings_goal_not_found(savings_goal_id: int) -> str:
    return f"Savings goal {savings_goal_id} not found"


def account_delete_blocked(account_id: int, transaction_count: int) -> str:
    """Return message when account has dependent transactions."""
    return (
        f"Cannot delete account {account_id}: it has "
        f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}. "
        "Please delete them first."
    )


# Accounts
def user_already_exists(email: str) -> ConflictError:
    return ConflictError(f"User with email '{email}' already exists", code="USER_ALREADY_EXISTS")


def already_member(email: str) -> ConflictError:
    return ConflictError(f"{email} is already a member of this organization", code="ALREADY_MEMBER")


def invite_not_found() -> NotFoundError:
    return NotFoundError("invite not found", code="INVITE_NOT_FOUND")


def invite_expired() -> ConflictError:
    return ConflictError("invite has expired", code="INVITE_EXPIRED")


def invite_already_accepted() -> ConflictError:
    return ConflictError("invite was already accepted", code="INVITE_ALREADY_ACCEPTED")


def unauthorized(message: str = "unauthorized") -> AuthenticationError:
    return AuthenticationError(message, code="UNAUTHORIZED")


def forbidden(message: str = "forbidden") -> PermissionDeniedError:
    return PermissionDeniedError(message, code="FORBIDDEN")
