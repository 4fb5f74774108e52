"""User registration, lookup and the permission gate."""

import re
from typing import Iterable, Optional

from celeiro.database.base import Database
from celeiro.domain.entities import (
    OrganizationWithPermissions,
    Permission,
    Role,
    User,
)
from celeiro.domain.errors import (
    NotFoundError,
    email_format_invalid,
    email_required,
    forbidden,
    invalid_role,
    missing_required_fields,
    organization_not_found,
    user_already_exists,
)
from celeiro.logger import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.fullmatch(email) is not None


def parse_role(value: str) -> Role:
    """Parse a role name.

    Raises:
        ValidationError: INVALID_ROLE for unknown names
    """
    try:
        return Role(value)
    except ValueError:
        raise invalid_role(value) from None


def check_permissions(
    membership: OrganizationWithPermissions, required: Iterable[Permission]
) -> bool:
    """Administrators pass; everyone else needs every required permission."""
    if membership.user_role == Role.ADMIN:
        return True
    return set(required) <= set(membership.user_permissions)


def require_permissions(
    membership: OrganizationWithPermissions, required: Iterable[Permission]
) -> None:
    """Raise FORBIDDEN unless check_permissions passes."""
    required = list(required)
    if not check_permissions(membership, required):
        missing = sorted(p.value for p in set(required) - set(membership.user_permissions))
        raise forbidden(f"missing permissions: {', '.join(missing)}")


class UserService:
    """Service for users and their memberships."""

    def __init__(self, db: Database):
        """Initialize user service.

        Args:
            db: Database instance
        """
        self.db = db

    def register_user(
        self,
        name: str,
        email: str,
        organization_name: Optional[str] = None,
        role: Role | str = Role.REGULAR_MANAGER,
        phone: Optional[str] = None,
        organization_id: Optional[int] = None,
    ) -> User:
        """Register a user inside an organization.

        A new organization named organization_name is created unless
        organization_id names an existing one to join. Everything happens
        in one database transaction.

        Args:
            name: Display name
            email: Unique e-mail address
            organization_name: Name of the organization to create
            role: Membership role
            phone: Optional phone number
            organization_id: Existing organization to join instead

        Returns:
            The created user

        Raises:
            ValidationError: On missing fields, malformed e-mail or unknown role
            NotFoundError: If organization_id does not exist
            ConflictError: If the e-mail is already registered
        """
        name = (name or "").strip()
        email = (email or "").strip()
        organization_name = (organization_name or "").strip()

        missing = [field for field, value in (("name", name), ("email", email)) if not value]
        if organization_id is None and not organization_name:
            missing.append("organization")
        if missing == ["email"]:
            raise email_required()
        if missing:
            raise missing_required_fields(*missing)
        if not is_valid_email(email):
            raise email_format_invalid()
        role = parse_role(role.value if isinstance(role, Role) else role)

        if self.db.get_user_by_email(email) is not None:
            raise user_already_exists(email)

        with self.db.transaction():
            if organization_id is not None:
                if self.db.get_organization(organization_id) is None:
                    raise NotFoundError(organization_not_found(organization_id))
            else:
                organization_id = self.db.create_organization(name=organization_name)
            user_id = self.db.create_user(
                name=name, email=email, phone=phone, default_organization_id=organization_id
            )
            self.db.create_membership(user_id, organization_id, role)

        logger.info("user registered", user_id=user_id, organization_id=organization_id, role=role.value)
        return self.db.get_user(user_id)

    def get_user(self, user_id: int) -> User:
        """Get user by ID.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self.db.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.get_user_by_email(email)

    def list_users(self, organization_id: Optional[int] = None) -> list[User]:
        return self.db.list_users(organization_id)

    def get_organizations_by_user(self, user_id: int) -> list[OrganizationWithPermissions]:
        """Memberships of a user with permissions resolved from each role."""
        return self.db.list_memberships(user_id)
