"""Regex-based advanced patterns that rename and categorize transactions."""

import re
from decimal import Decimal
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.category import CategoryService
from celeiro.domain.entities import AdvancedPattern, Transaction
from celeiro.domain.errors import (
    DomainError,
    NotFoundError,
    ValidationError,
    missing_required_fields,
    pattern_not_found,
)
from celeiro.logger import get_logger

logger = get_logger(__name__)


def weekday_number(tx: Transaction) -> int:
    """Day of week with Sunday as 0."""
    return (tx.transaction_date.weekday() + 1) % 7


def _compile(pattern: str, field: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(f"invalid {field} regex: {e}") from e


def pattern_matches(pattern: AdvancedPattern, tx: Transaction) -> bool:
    """Test every condition of pattern against tx.

    An invalid regex makes the pattern never match.
    """
    try:
        if pattern.description_pattern:
            if re.search(pattern.description_pattern, tx.match_text) is None:
                return False
        if pattern.date_pattern:
            if re.search(pattern.date_pattern, tx.transaction_date.strftime("%Y-%m-%d")) is None:
                return False
        if pattern.weekday_pattern:
            if re.search(pattern.weekday_pattern, str(weekday_number(tx))) is None:
                return False
    except re.error as e:
        logger.error("invalid advanced pattern regex", pattern_id=pattern.id, error=str(e))
        return False

    if pattern.amount_min is not None and pattern.amount_max is not None:
        amount = abs(tx.amount)
        if amount < pattern.amount_min or amount > pattern.amount_max:
            return False
    return True


class AdvancedPatternService:
    """CRUD for advanced patterns and their application to transactions."""

    def __init__(self, db: Database):
        """Initialize advanced pattern service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categories = CategoryService(db)

    def create_pattern(
        self,
        user_id: int,
        organization_id: int,
        description_pattern: str,
        target_description: str,
        target_category_id: int,
        date_pattern: Optional[str] = None,
        weekday_pattern: Optional[str] = None,
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        apply_retroactively: bool = False,
    ) -> AdvancedPattern:
        """Create a pattern, optionally applying it to unclassified history.

        Args:
            user_id: Creating user
            organization_id: Owning organization
            description_pattern: Regex searched in the original description
            target_description: Description set on match
            target_category_id: Category set on match
            date_pattern: Regex searched in YYYY-MM-DD
            weekday_pattern: Regex searched in the weekday number (Sunday=0)
            amount_min: Inclusive lower bound, given together with amount_max
            amount_max: Inclusive upper bound, given together with amount_min
            apply_retroactively: Run the pattern over unclassified transactions now

        Returns:
            The created pattern

        Raises:
            ValidationError: On missing fields, invalid regexes or bad amount bounds
            NotFoundError: If the target category is not visible
        """
        if not description_pattern:
            raise missing_required_fields("description_pattern")
        target_description = (target_description or "").strip()
        if not target_description:
            raise missing_required_fields("target_description")
        _compile(description_pattern, "description_pattern")
        if date_pattern:
            _compile(date_pattern, "date_pattern")
        if weekday_pattern:
            _compile(weekday_pattern, "weekday_pattern")
        if (amount_min is None) != (amount_max is None):
            raise ValidationError("amount_min and amount_max must both be provided or both be null")
        if amount_min is not None and amount_min > amount_max:
            raise ValidationError("amount_min must be less than or equal to amount_max")
        self.categories.get_category(organization_id, target_category_id)

        pattern_id = self.db.create_advanced_pattern(
            user_id=user_id,
            organization_id=organization_id,
            target_description=target_description,
            target_category_id=target_category_id,
            description_pattern=description_pattern,
            date_pattern=date_pattern or None,
            weekday_pattern=weekday_pattern or None,
            amount_min=amount_min,
            amount_max=amount_max,
            apply_retroactively=apply_retroactively,
        )
        pattern = self.db.get_advanced_pattern(pattern_id)

        if apply_retroactively:
            applied = self.apply_retroactively(organization_id, pattern)
            logger.info("pattern applied retroactively", pattern_id=pattern_id, applied=applied)
        return pattern

    def get_pattern(self, organization_id: int, pattern_id: int) -> AdvancedPattern:
        pattern = self.db.get_advanced_pattern(pattern_id, organization_id=organization_id)
        if pattern is None:
            raise NotFoundError(pattern_not_found(pattern_id))
        return pattern

    def list_patterns(self, organization_id: int, is_active: Optional[bool] = None) -> list[AdvancedPattern]:
        return self.db.list_advanced_patterns(organization_id, is_active=is_active)

    def set_active(self, organization_id: int, pattern_id: int, is_active: bool) -> AdvancedPattern:
        self.get_pattern(organization_id, pattern_id)
        self.db.update_advanced_pattern(pattern_id, is_active=is_active)
        return self.get_pattern(organization_id, pattern_id)

    def delete_pattern(self, organization_id: int, pattern_id: int) -> None:
        self.get_pattern(organization_id, pattern_id)
        self.db.delete_advanced_pattern(pattern_id)

    def apply_pattern(self, tx: Transaction, pattern: AdvancedPattern) -> None:
        """Give tx the pattern's target description and category."""
        self.db.update_transaction(
            tx.id,
            description=pattern.target_description,
            category_id=pattern.target_category_id,
            is_classified=True,
        )

    def apply_retroactively(self, organization_id: int, pattern: AdvancedPattern) -> int:
        """Apply one pattern to every matching unclassified transaction.

        Returns:
            Number of transactions updated
        """
        applied = 0
        for tx in self.db.list_transactions(organization_id=organization_id, unclassified=True):
            if not pattern_matches(pattern, tx):
                continue
            try:
                self.apply_pattern(tx, pattern)
                applied += 1
            except DomainError as e:
                logger.warning("pattern application failed", pattern_id=pattern.id, transaction_id=tx.id, error=str(e))
        return applied

    def apply_patterns(self, organization_id: int) -> int:
        """Apply the first matching active pattern to each unclassified transaction."""
        patterns = self.list_patterns(organization_id, is_active=True)
        if not patterns:
            return 0
        applied = 0
        for tx in self.db.list_transactions(organization_id=organization_id, unclassified=True):
            for pattern in patterns:
                if pattern_matches(pattern, tx):
                    self.apply_pattern(tx, pattern)
                    applied += 1
                    break
        return applied
