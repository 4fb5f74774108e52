"""Saved patterns: suggestions, manual apply and high-confidence auto-match."""

from dataclasses import dataclass
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.entities import EntryType, PlannedEntry, Transaction, TransactionType
from celeiro.domain.errors import (
    NotFoundError,
    ValidationError,
    planned_entry_not_found,
)
from celeiro.domain.matching import Confidence, MatchScore, find_matches
from celeiro.domain.transaction import TransactionService
from celeiro.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchSuggestion:
    pattern: PlannedEntry
    score: MatchScore


class MatchingService:
    """Service connecting transactions to saved patterns."""

    def __init__(self, db: Database):
        """Initialize matching service.

        Args:
            db: Database instance
        """
        self.db = db
        self.transactions = TransactionService(db)

    def save_transaction_as_pattern(
        self,
        user_id: int,
        organization_id: int,
        transaction_id: int,
        is_recurrent: bool = False,
        expected_day: Optional[int] = None,
    ) -> PlannedEntry:
        """Create a saved pattern from a categorized transaction.

        Raises:
            NotFoundError: If the transaction is not in the organization
            ValidationError: If the transaction has no category or expected_day is out of range
        """
        tx = self.transactions.get_transaction(organization_id, transaction_id)
        if tx.category_id is None:
            raise ValidationError("transaction must be categorized before saving as pattern")
        if expected_day is not None and not 1 <= expected_day <= 31:
            raise ValidationError(f"invalid expected_day: {expected_day}")

        entry_id = self.db.create_planned_entry(
            user_id=user_id,
            organization_id=organization_id,
            category_id=tx.category_id,
            description=tx.description,
            amount=tx.amount,
            entry_type=(
                EntryType.INCOME if tx.transaction_type == TransactionType.CREDIT else EntryType.EXPENSE
            ),
            expected_day=expected_day,
            is_recurrent=is_recurrent,
            is_saved_pattern=True,
        )
        return self.db.get_planned_entry(entry_id)

    def get_match_suggestions(
        self, organization_id: int, transaction_id: int, category_id: Optional[int] = None
    ) -> list[MatchSuggestion]:
        """Scored saved patterns for a transaction, best first."""
        tx = self.transactions.get_transaction(organization_id, transaction_id)
        return self._suggestions(organization_id, tx, category_id)

    def _suggestions(
        self, organization_id: int, tx: Transaction, category_id: Optional[int] = None
    ) -> list[MatchSuggestion]:
        patterns = self.db.list_planned_entries(
            organization_id, is_saved_pattern=True, is_active=True, category_id=category_id
        )
        by_id = {p.id: p for p in patterns}
        return [MatchSuggestion(pattern=by_id[s.pattern_id], score=s) for s in find_matches(tx, patterns)]

    def apply_pattern_to_transaction(
        self, organization_id: int, transaction_id: int, pattern_id: int
    ) -> Transaction:
        """Give the transaction the category of a saved pattern.

        Raises:
            NotFoundError: If the transaction or pattern is not in scope
            ValidationError: If the entry is not a saved pattern
        """
        pattern = self.db.get_planned_entry(pattern_id, organization_id=organization_id)
        if pattern is None:
            raise NotFoundError(planned_entry_not_found(pattern_id))
        if not pattern.is_saved_pattern:
            raise ValidationError(f"entry {pattern_id} is not a saved pattern")

        self.transactions.get_transaction(organization_id, transaction_id)
        self.db.update_transaction(transaction_id, category_id=pattern.category_id)
        return self.transactions.get_transaction(organization_id, transaction_id)

    def auto_match_transaction(self, organization_id: int, transaction_id: int) -> bool:
        """Apply the top suggestion when its confidence is HIGH.

        Returns:
            True when a pattern was applied
        """
        tx = self.transactions.get_transaction(organization_id, transaction_id)
        suggestions = self._suggestions(organization_id, tx)
        if not suggestions:
            return False

        top = suggestions[0]
        logger.debug(
            "auto-match candidate",
            transaction_id=transaction_id,
            pattern_id=top.pattern.id,
            score=round(top.score.total_score, 4),
        )
        if top.score.confidence != Confidence.HIGH:
            return False

        self.apply_pattern_to_transaction(organization_id, transaction_id, top.pattern.id)
        return True
