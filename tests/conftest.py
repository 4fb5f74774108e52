"""Shared pytest fixtures for celeiro tests."""

import os
import random
import tempfile
from datetime import datetime, UTC
from pathlib import Path

import pytest

from celeiro.config import Settings
from celeiro.database.factories import create_sqlite_database
from celeiro.domain.account import AccountService
from celeiro.domain.advanced_pattern import AdvancedPatternService
from celeiro.domain.auth import AuthService
from celeiro.domain.budget import BudgetService
from celeiro.domain.budget_progress import BudgetProgressService
from celeiro.domain.category import CategoryService
from celeiro.domain.classification import ClassificationRuleService
from celeiro.domain.income_planning import IncomePlanningService
from celeiro.domain.ofx_import import TransactionImportService
from celeiro.domain.organization import OrganizationService
from celeiro.domain.pattern_matching import MatchingService
from celeiro.domain.planned_entry import PlannedEntryService
from celeiro.domain.savings_goal import SavingsGoalService
from celeiro.domain.session import SessionService
from celeiro.domain.transaction import TransactionService
from celeiro.domain.users import UserService
from celeiro.mailer import MockMailer
from celeiro.system import FrozenClock, IntGenerator, System
from celeiro.transient.memory import MemoryStore


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock frozen at 2024-03-15 12:00 UTC."""
    return FrozenClock(datetime(2024, 3, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def system(clock):
    """System with a frozen clock and a seeded integer generator."""
    return System(clock=clock, ints=IntGenerator(random.Random(1234)))


@pytest.fixture
def store(clock):
    """In-memory key/value store sharing the frozen clock."""
    return MemoryStore(clock=clock)


@pytest.fixture
def mailer():
    """Mailer that records messages."""
    return MockMailer()


@pytest.fixture
def settings(temp_db):
    """Settings pointing at the temporary database."""
    return Settings(
        DATABASE_URL=f"sqlite:///{temp_db.database_path}",
        MAILER_TYPE="mock",
        FRONTEND_URL="http://app.test",
        LOG_JSON=False,
    )


@pytest.fixture
def session_service(store, system, settings):
    return SessionService(store, system, settings)


@pytest.fixture
def auth_service(temp_db, store, mailer, session_service, system, settings):
    return AuthService(temp_db, store, mailer, session_service, system, settings)


@pytest.fixture
def user_service(temp_db):
    return UserService(temp_db)


@pytest.fixture
def organization_service(temp_db, mailer, session_service, system, settings):
    return OrganizationService(temp_db, mailer, session_service, system, settings)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    return TransactionService(temp_db)


@pytest.fixture
def import_service(temp_db):
    return TransactionImportService(temp_db)


@pytest.fixture
def budget_service(temp_db):
    return BudgetService(temp_db)


@pytest.fixture
def progress_service(temp_db, system):
    return BudgetProgressService(temp_db, system)


@pytest.fixture
def planned_entry_service(temp_db, system):
    return PlannedEntryService(temp_db, system)


@pytest.fixture
def matching_service(temp_db):
    return MatchingService(temp_db)


@pytest.fixture
def classification_service(temp_db):
    return ClassificationRuleService(temp_db)


@pytest.fixture
def pattern_service(temp_db):
    return AdvancedPatternService(temp_db)


@pytest.fixture
def savings_goal_service(temp_db, system):
    return SavingsGoalService(temp_db, system)


@pytest.fixture
def income_planning_service(temp_db):
    return IncomePlanningService(temp_db)


@pytest.fixture
def sample_user(user_service):
    """Registered user with a default organization."""
    return user_service.register_user(
        name="Test User", email="test@example.com", organization_name="Test Org"
    )


@pytest.fixture
def org_id(sample_user):
    """Default organization of the sample user."""
    return sample_user.default_organization_id


@pytest.fixture
def sample_account(account_service, sample_user, org_id):
    """Create a sample account for testing."""
    return account_service.create_account(
        user_id=sample_user.id,
        organization_id=org_id,
        name="Test Account",
        bank_name="Test Bank",
    )


@pytest.fixture
def sample_category(category_service, sample_user, org_id):
    """Organization expense category."""
    return category_service.create_category(
        user_id=sample_user.id, organization_id=org_id, name="Groceries", category_type="expense"
    )


@pytest.fixture
def income_category(category_service, sample_user, org_id):
    return category_service.create_category(
        user_id=sample_user.id, organization_id=org_id, name="Freelance", category_type="income"
    )


@pytest.fixture
def app(settings, temp_db, store, mailer, system):
    """FastAPI app wired to the test backends."""
    from celeiro.web.app import create_app

    return create_app(settings, db=temp_db, store=store, mailer=mailer, system=system)


@pytest.fixture
def client(app):
    """HTTP test client."""
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers(auth_service, sample_user):
    """Bearer header for a fresh session of the sample user."""
    auth = auth_service.authenticate(sample_user.email)
    return {"Authorization": f"Bearer {auth.session.token}"}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
