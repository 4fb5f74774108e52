"""Service container shared by the HTTP handlers."""

from dataclasses import dataclass

from celeiro.config import Settings
from celeiro.database.base import Database
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
from celeiro.mailer import Mailer
from celeiro.system import System
from celeiro.transient.base import KeyValueStore


@dataclass
class Services:
    settings: Settings
    db: Database
    store: KeyValueStore
    mailer: Mailer
    system: System
    sessions: SessionService
    users: UserService
    auth: AuthService
    organizations: OrganizationService
    accounts: AccountService
    categories: CategoryService
    transactions: TransactionService
    imports: TransactionImportService
    budgets: BudgetService
    progress: BudgetProgressService
    planned_entries: PlannedEntryService
    matching: MatchingService
    classification: ClassificationRuleService
    patterns: AdvancedPatternService
    savings_goals: SavingsGoalService
    income_planning: IncomePlanningService


def build_services(
    settings: Settings, db: Database, store: KeyValueStore, mailer: Mailer, system: System
) -> Services:
    """Wire every domain service over the given backends."""
    sessions = SessionService(store, system, settings)
    matching = MatchingService(db)
    classification = ClassificationRuleService(db)
    return Services(
        settings=settings,
        db=db,
        store=store,
        mailer=mailer,
        system=system,
        sessions=sessions,
        users=UserService(db),
        auth=AuthService(db, store, mailer, sessions, system, settings),
        organizations=OrganizationService(db, mailer, sessions, system, settings),
        accounts=AccountService(db),
        categories=CategoryService(db),
        transactions=TransactionService(db),
        imports=TransactionImportService(db, matching=matching, classification=classification),
        budgets=BudgetService(db),
        progress=BudgetProgressService(db, system),
        planned_entries=PlannedEntryService(db, system),
        matching=matching,
        classification=classification,
        patterns=AdvancedPatternService(db),
        savings_goals=SavingsGoalService(db, system),
        income_planning=IncomePlanningService(db),
    )
