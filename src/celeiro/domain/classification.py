"""Classification rules: ordered substring/amount/type conditions assigning a category."""

from decimal import Decimal
from typing import Iterable, Optional

from celeiro.database.base import Database
from celeiro.domain.category import CategoryService
from celeiro.domain.entities import (
    ClassificationResult,
    ClassificationRule,
    Transaction,
    TransactionType,
)
from celeiro.domain.errors import (
    DomainError,
    NotFoundError,
    ValidationError,
    missing_required_fields,
    rule_not_found,
)
from celeiro.domain.transaction import parse_transaction_type
from celeiro.logger import get_logger

logger = get_logger(__name__)


def rule_matches(rule: ClassificationRule, tx: Transaction) -> bool:
    """True when every condition set on the rule holds for tx."""
    if rule.match_description:
        if rule.match_description.lower() not in tx.match_text.lower():
            return False
    if rule.match_amount_min is not None and tx.amount < rule.match_amount_min:
        return False
    if rule.match_amount_max is not None and tx.amount > rule.match_amount_max:
        return False
    if rule.match_transaction_type is not None and tx.transaction_type != rule.match_transaction_type:
        return False
    return True


def first_matching_rule(
    rules: Iterable[ClassificationRule], tx: Transaction
) -> Optional[ClassificationRule]:
    """First active rule in ascending priority that matches tx."""
    ordered = sorted((r for r in rules if r.is_active), key=lambda r: (r.priority, r.id))
    for rule in ordered:
        if rule_matches(rule, tx):
            return rule
    return None


def _check_bounds(amount_min: Optional[Decimal], amount_max: Optional[Decimal]) -> None:
    if amount_min is not None and amount_max is not None and amount_min > amount_max:
        raise ValidationError("match_amount_min must not exceed match_amount_max")


class ClassificationRuleService:
    """CRUD for classification rules and the engine that applies them."""

    def __init__(self, db: Database):
        """Initialize classification rule service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categories = CategoryService(db)

    def create_rule(
        self,
        user_id: int,
        organization_id: int,
        category_id: int,
        name: str,
        priority: int = 0,
        match_description: Optional[str] = None,
        match_amount_min: Optional[Decimal] = None,
        match_amount_max: Optional[Decimal] = None,
        match_transaction_type: Optional[TransactionType | str] = None,
    ) -> ClassificationRule:
        """Create a rule.

        Args:
            user_id: Creating user
            organization_id: Owning organization
            category_id: Category assigned on match
            name: Rule name
            priority: Lower runs first
            match_description: Case-insensitive substring condition
            match_amount_min: Inclusive lower bound
            match_amount_max: Inclusive upper bound
            match_transaction_type: debit or credit

        Returns:
            The created rule

        Raises:
            ValidationError: On missing name, no conditions or inverted bounds
            NotFoundError: If the category is not visible to the organization
        """
        name = (name or "").strip()
        if not name:
            raise missing_required_fields("name")
        if not (
            match_description
            or match_amount_min is not None
            or match_amount_max is not None
            or match_transaction_type
        ):
            raise ValidationError("a rule needs at least one condition")
        _check_bounds(match_amount_min, match_amount_max)
        self.categories.get_category(organization_id, category_id)

        rule_id = self.db.create_classification_rule(
            user_id=user_id,
            organization_id=organization_id,
            category_id=category_id,
            name=name,
            priority=priority,
            match_description=match_description or None,
            match_amount_min=match_amount_min,
            match_amount_max=match_amount_max,
            match_transaction_type=(
                parse_transaction_type(match_transaction_type) if match_transaction_type else None
            ),
        )
        return self.db.get_classification_rule(rule_id)

    def get_rule(self, organization_id: int, rule_id: int) -> ClassificationRule:
        rule = self.db.get_classification_rule(rule_id, organization_id=organization_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    def list_rules(self, organization_id: int, active_only: bool = False) -> list[ClassificationRule]:
        return self.db.list_classification_rules(organization_id, active_only=active_only)

    def update_rule(self, organization_id: int, rule_id: int, **changes) -> ClassificationRule:
        """Update rule fields.

        Accepts name, priority, category_id, is_active and the match_* conditions.

        Raises:
            NotFoundError: If the rule or new category is not in scope
            ValidationError: On unknown fields or inverted bounds
        """
        rule = self.get_rule(organization_id, rule_id)
        allowed = {
            "name",
            "priority",
            "category_id",
            "is_active",
            "match_description",
            "match_amount_min",
            "match_amount_max",
            "match_transaction_type",
        }
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"unknown rule fields: {', '.join(sorted(unknown))}")

        if changes.get("category_id") is not None:
            self.categories.get_category(organization_id, changes["category_id"])
        if changes.get("match_transaction_type"):
            changes["match_transaction_type"] = parse_transaction_type(changes["match_transaction_type"])
        _check_bounds(
            changes.get("match_amount_min", rule.match_amount_min),
            changes.get("match_amount_max", rule.match_amount_max),
        )

        if changes:
            self.db.update_classification_rule(rule_id, **changes)
        return self.get_rule(organization_id, rule_id)

    def delete_rule(self, organization_id: int, rule_id: int) -> None:
        self.get_rule(organization_id, rule_id)
        self.db.delete_classification_rule(rule_id)

    def classify_transaction(
        self,
        organization_id: int,
        tx: Transaction,
        rules: Optional[list[ClassificationRule]] = None,
    ) -> Optional[ClassificationRule]:
        """Apply the first matching rule to tx.

        Returns:
            The rule applied, or None when nothing matched
        """
        if rules is None:
            rules = self.list_rules(organization_id, active_only=True)
        rule = first_matching_rule(rules, tx)
        if rule is None:
            return None
        self.db.update_transaction(
            tx.id,
            category_id=rule.category_id,
            is_classified=True,
            classification_rule_id=rule.id,
        )
        return rule

    def apply_classification_rules(
        self, organization_id: int, transaction_ids: Optional[Iterable[int]] = None
    ) -> ClassificationResult:
        """Run the active rules over unclassified transactions.

        Args:
            organization_id: Organization scope
            transaction_ids: Restrict the pass to these transactions

        Returns:
            Counts of classified transactions and of failed updates
        """
        rules = self.list_rules(organization_id, active_only=True)
        if not rules:
            return ClassificationResult(classified_count=0, failed_count=0)

        if transaction_ids is None:
            candidates = self.db.list_transactions(organization_id=organization_id, unclassified=True)
        else:
            candidates = []
            for transaction_id in transaction_ids:
                tx = self.db.get_transaction(transaction_id, organization_id=organization_id)
                if tx is not None and not tx.is_classified:
                    candidates.append(tx)

        classified = failed = 0
        for tx in candidates:
            try:
                if self.classify_transaction(organization_id, tx, rules) is not None:
                    classified += 1
            except DomainError as e:
                failed += 1
                logger.warning("classification failed", transaction_id=tx.id, error=str(e))
        return ClassificationResult(classified_count=classified, failed_count=failed)
