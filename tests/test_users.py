"""Tests for user registration and permissions."""

import pytest

from celeiro.domain.entities import OrganizationWithPermissions, Permission, Role
from celeiro.domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from celeiro.domain.users import check_permissions, is_valid_email, require_permissions


def test_register_user_creates_organization(user_service, temp_db):
    user = user_service.register_user(
        name="Ana", email="ana@example.com", organization_name="Casa", phone="+55 11 9999"
    )

    assert user.id is not None
    assert user.phone == "+55 11 9999"
    org = temp_db.get_organization(user.default_organization_id)
    assert org.name == "Casa"

    memberships = user_service.get_organizations_by_user(user.id)
    assert len(memberships) == 1
    assert memberships[0].user_role == Role.REGULAR_MANAGER
    assert Permission.CREATE_REGULAR_USERS in memberships[0].user_permissions
    assert Permission.DELETE_ORGANIZATIONS not in memberships[0].user_permissions


def test_register_user_joins_organization_by_id(user_service):
    first = user_service.register_user(name="Ana", email="ana@example.com", organization_name="Casa")
    second = user_service.register_user(
        name="Bia",
        email="bia@example.com",
        role="regular_user",
        organization_id=first.default_organization_id,
    )

    assert first.default_organization_id == second.default_organization_id
    membership = user_service.get_organizations_by_user(second.id)[0]
    assert membership.user_role == Role.REGULAR_USER
    assert set(membership.user_permissions) == {Permission.VIEW_ORGANIZATIONS, Permission.VIEW_REGULAR_USERS}


def test_register_user_with_same_organization_name_gets_its_own(user_service):
    first = user_service.register_user(name="Ana", email="ana@example.com", organization_name="Casa")
    second = user_service.register_user(name="Bia", email="bia@example.com", organization_name="Casa")

    assert first.default_organization_id != second.default_organization_id
    assert user_service.list_users(first.default_organization_id) == [first]


def test_register_user_unknown_organization(user_service):
    with pytest.raises(NotFoundError):
        user_service.register_user(name="Ana", email="ana@example.com", organization_id=999)
    assert user_service.list_users() == []


def test_register_duplicate_email(user_service, sample_user):
    with pytest.raises(ConflictError) as exc_info:
        user_service.register_user(name="Other", email=sample_user.email, organization_name="Else")
    assert exc_info.value.code == "USER_ALREADY_EXISTS"


def test_register_invalid_role(user_service):
    with pytest.raises(ValidationError) as exc_info:
        user_service.register_user(
            name="Ana", email="ana@example.com", organization_name="Casa", role="owner"
        )
    assert exc_info.value.code == "INVALID_ROLE"


def test_register_missing_fields(user_service):
    with pytest.raises(ValidationError) as exc_info:
        user_service.register_user(name="", email="ana@example.com", organization_name="")
    assert exc_info.value.code == "MISSING_REQUIRED_FIELDS"
    assert "name" in str(exc_info.value)
    assert "organization" in str(exc_info.value)


def test_register_missing_email(user_service):
    with pytest.raises(ValidationError) as exc_info:
        user_service.register_user(name="Ana", email="", organization_name="Casa")
    assert exc_info.value.code == "EMAIL_REQUIRED"


def test_register_failure_leaves_no_organization(user_service, temp_db):
    """Validation happens before anything is written."""
    with pytest.raises(ValidationError):
        user_service.register_user(name="Ana", email="bad-email", organization_name="Ghost Org")
    assert temp_db.get_organization(1) is None


def test_list_users_by_organization(user_service, sample_user):
    user_service.register_user(name="Other", email="other@example.com", organization_name="Other Org")

    assert len(user_service.list_users()) == 2
    members = user_service.list_users(sample_user.default_organization_id)
    assert [u.email for u in members] == [sample_user.email]


@pytest.mark.parametrize(
    "email,valid",
    [
        ("a@b.co", True),
        ("first.last+tag@sub.example.org", True),
        ("no-at-sign", False),
        ("a@b", False),
        ("", False),
    ],
)
def test_is_valid_email(email, valid):
    assert is_valid_email(email) is valid


def _membership(role, permissions):
    return OrganizationWithPermissions(
        organization_id=1, name="Org", user_role=role, user_permissions=tuple(permissions)
    )


def test_admin_bypasses_permission_check():
    admin = _membership(Role.ADMIN, [])
    assert check_permissions(admin, [Permission.DELETE_ORGANIZATIONS])


def test_permission_check_requires_all():
    member = _membership(Role.REGULAR_USER, [Permission.VIEW_ORGANIZATIONS])

    assert check_permissions(member, [Permission.VIEW_ORGANIZATIONS])
    assert check_permissions(member, [])
    assert not check_permissions(
        member, [Permission.VIEW_ORGANIZATIONS, Permission.CREATE_REGULAR_USERS]
    )


def test_require_permissions_names_missing():
    member = _membership(Role.REGULAR_USER, [Permission.VIEW_ORGANIZATIONS])

    with pytest.raises(PermissionDeniedError) as exc_info:
        require_permissions(member, [Permission.CREATE_REGULAR_USERS])
    assert exc_info.value.code == "FORBIDDEN"
    assert "create_regular_users" in str(exc_info.value)
