"""Tests for categories."""

from datetime import date
from decimal import Decimal

import pytest

from celeiro.domain.entities import CategoryType
from celeiro.domain.errors import ConflictError, DependencyError, NotFoundError, PermissionDeniedError


def test_system_categories_are_seeded(category_service, org_id):
    categories = category_service.list_categories(org_id)
    system = [c for c in categories if c.is_system]

    assert {c.name for c in system} >= {"Food", "Transport", "Salary"}
    assert all(c.organization_id is None for c in system)


def test_organization_categories_follow_system_ones(category_service, org_id, sample_category):
    categories = category_service.list_categories(org_id)
    assert categories[-1].id == sample_category.id
    assert sample_category.category_type == CategoryType.EXPENSE
    assert sample_category.is_system is False


def test_duplicate_category(category_service, sample_user, org_id, sample_category):
    with pytest.raises(ConflictError):
        category_service.create_category(sample_user.id, org_id, name="Groceries")


def test_same_name_other_type_is_allowed(category_service, sample_user, org_id, sample_category):
    income = category_service.create_category(
        sample_user.id, org_id, name="Groceries", category_type="income"
    )
    assert income.category_type == CategoryType.INCOME


def test_categories_are_scoped(category_service, user_service, sample_category):
    other = user_service.register_user(name="Bia", email="bia@example.com", organization_name="Bia Org")
    with pytest.raises(NotFoundError):
        category_service.get_category(other.default_organization_id, sample_category.id)


def test_update_category(category_service, org_id, sample_category):
    updated = category_service.update_category(org_id, sample_category.id, name="Mercado", color="#00ff00")
    assert updated.name == "Mercado"
    assert updated.color == "#00ff00"


def test_system_category_is_read_only(category_service, org_id):
    food = next(c for c in category_service.list_categories(org_id) if c.name == "Food")

    with pytest.raises(PermissionDeniedError):
        category_service.update_category(org_id, food.id, name="Comida")
    with pytest.raises(PermissionDeniedError):
        category_service.delete_category(org_id, food.id)


def test_delete_category_in_use(category_service, transaction_service, org_id, sample_account, sample_category):
    transaction_service.create_transaction(
        org_id,
        sample_account.id,
        "Market",
        Decimal("80"),
        date(2024, 3, 2),
        "debit",
        category_id=sample_category.id,
    )
    with pytest.raises(DependencyError):
        category_service.delete_category(org_id, sample_category.id)


def test_delete_category(category_service, org_id, sample_category):
    category_service.delete_category(org_id, sample_category.id)
    with pytest.raises(NotFoundError):
        category_service.get_category(org_id, sample_category.id)
