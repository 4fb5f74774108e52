"""Planned entries and their monthly status."""

from datetime import date
from decimal import Decimal
from typing import Optional

from celeiro.database.base import Database
from celeiro.domain.category import CategoryService
from celeiro.domain.entities import (
    EntryType,
    PlannedEntry,
    PlannedEntryStatus,
    PlannedEntryStatusKind,
    PlannedEntryWithStatus,
)
from celeiro.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    missing_required_fields,
    pattern_not_found,
    planned_entry_not_found,
    planned_entry_status_not_found,
)
from celeiro.domain.transaction import TransactionService
from celeiro.logger import get_logger
from celeiro.system import System

logger = get_logger(__name__)

UPDATABLE_FIELDS = {
    "category_id",
    "description",
    "amount",
    "amount_min",
    "amount_max",
    "expected_day",
    "expected_day_start",
    "expected_day_end",
    "entry_type",
    "is_recurrent",
    "is_active",
    "pattern_id",
}


def parse_entry_type(value: EntryType | str) -> EntryType:
    try:
        return EntryType(value)
    except ValueError:
        raise ValidationError(f"invalid entry type: {value}") from None


def compute_status(entry: PlannedEntry, month: int, year: int, today: date) -> PlannedEntryStatusKind:
    """Status of an entry with no stored row for the month.

    Past months are missed and future months pending. In the current month
    the entry is missed once today is past its last expected day.
    """
    if (year, month) < (today.year, today.month):
        return PlannedEntryStatusKind.MISSED
    if (year, month) > (today.year, today.month):
        return PlannedEntryStatusKind.PENDING
    last_day = entry.expected_day_end or entry.expected_day
    if last_day is not None and today.day > last_day:
        return PlannedEntryStatusKind.MISSED
    return PlannedEntryStatusKind.PENDING


def _check_day(value: Optional[int], field: str) -> None:
    if value is not None and not 1 <= value <= 31:
        raise ValidationError(f"invalid {field}: {value}")


def _check_fields(fields: dict) -> None:
    if "amount" in fields and fields["amount"] is not None and fields["amount"] < 0:
        raise ValidationError("amount must not be negative")
    for name in ("expected_day", "expected_day_start", "expected_day_end"):
        _check_day(fields.get(name), name)
    start, end = fields.get("expected_day_start"), fields.get("expected_day_end")
    if start is not None and end is not None and start > end:
        raise ValidationError("expected_day_start must be less than or equal to expected_day_end")
    low, high = fields.get("amount_min"), fields.get("amount_max")
    if low is not None and high is not None and low > high:
        raise ValidationError("amount_min must be less than or equal to amount_max")


def _check_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"invalid month: {month}")
    if year < 1900:
        raise ValidationError(f"invalid year: {year}")


class PlannedEntryService:
    """Service for planned entries and their per-month status."""

    def __init__(self, db: Database, system: System):
        """Initialize planned entry service.

        Args:
            db: Database instance
            system: Supplies the clock used for computed statuses and timestamps
        """
        self.db = db
        self.system = system
        self.categories = CategoryService(db)
        self.transactions = TransactionService(db)

    def create_planned_entry(
        self,
        user_id: int,
        organization_id: int,
        category_id: int,
        description: str,
        amount: Decimal,
        entry_type: EntryType | str = EntryType.EXPENSE,
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        expected_day: Optional[int] = None,
        expected_day_start: Optional[int] = None,
        expected_day_end: Optional[int] = None,
        is_recurrent: bool = False,
        parent_entry_id: Optional[int] = None,
        pattern_id: Optional[int] = None,
        is_saved_pattern: bool = False,
    ) -> PlannedEntry:
        """Create a planned entry.

        Args:
            user_id: Owning user
            organization_id: Owning organization
            category_id: Category given to matched transactions
            description: Entry description, also used for fuzzy matching
            amount: Expected amount
            entry_type: expense or income
            amount_min: Optional lower bound of the expected amount
            amount_max: Optional upper bound of the expected amount
            expected_day: Expected day of month
            expected_day_start: First day of the expected window
            expected_day_end: Last day of the expected window
            is_recurrent: Repeats every month
            parent_entry_id: Entry this one was derived from
            pattern_id: Linked advanced pattern
            is_saved_pattern: Use the entry as a matching pattern

        Returns:
            The created entry

        Raises:
            ValidationError: On missing description or inconsistent ranges
            NotFoundError: If the category, parent or pattern is not in scope
        """
        description = (description or "").strip()
        if not description:
            raise missing_required_fields("description")
        entry_type = parse_entry_type(entry_type)
        _check_fields(
            {
                "amount": amount,
                "amount_min": amount_min,
                "amount_max": amount_max,
                "expected_day": expected_day,
                "expected_day_start": expected_day_start,
                "expected_day_end": expected_day_end,
            }
        )
        self.categories.get_category(organization_id, category_id)
        if parent_entry_id is not None:
            self.get_planned_entry(organization_id, parent_entry_id)
        if pattern_id is not None:
            self._check_pattern(organization_id, pattern_id)

        entry_id = self.db.create_planned_entry(
            user_id=user_id,
            organization_id=organization_id,
            category_id=category_id,
            description=description,
            amount=amount,
            entry_type=entry_type,
            amount_min=amount_min,
            amount_max=amount_max,
            expected_day=expected_day,
            expected_day_start=expected_day_start,
            expected_day_end=expected_day_end,
            is_recurrent=is_recurrent,
            parent_entry_id=parent_entry_id,
            pattern_id=pattern_id,
            is_saved_pattern=is_saved_pattern,
        )
        return self.db.get_planned_entry(entry_id)

    def _check_pattern(self, organization_id: int, pattern_id: int) -> None:
        if self.db.get_advanced_pattern(pattern_id, organization_id=organization_id) is None:
            raise NotFoundError(pattern_not_found(pattern_id))

    def get_planned_entry(self, organization_id: int, entry_id: int) -> PlannedEntry:
        entry = self.db.get_planned_entry(entry_id, organization_id=organization_id)
        if entry is None:
            raise NotFoundError(planned_entry_not_found(entry_id))
        return entry

    def list_planned_entries(
        self,
        organization_id: int,
        is_recurrent: Optional[bool] = None,
        is_active: Optional[bool] = None,
        is_saved_pattern: Optional[bool] = None,
    ) -> list[PlannedEntry]:
        return self.db.list_planned_entries(
            organization_id,
            is_recurrent=is_recurrent,
            is_active=is_active,
            is_saved_pattern=is_saved_pattern,
        )

    def update_planned_entry(self, organization_id: int, entry_id: int, **changes) -> PlannedEntry:
        """Update entry fields.

        Raises:
            ValidationError: On unknown fields or inconsistent ranges
            NotFoundError: If the entry, category or pattern is not in scope
        """
        entry = self.get_planned_entry(organization_id, entry_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip()
            if not changes["description"]:
                raise missing_required_fields("description")
        if "entry_type" in changes:
            changes["entry_type"] = parse_entry_type(changes["entry_type"])
        if "category_id" in changes:
            self.categories.get_category(organization_id, changes["category_id"])
        if changes.get("pattern_id") is not None:
            self._check_pattern(organization_id, changes["pattern_id"])

        merged = {
            name: changes.get(name, getattr(entry, name))
            for name in (
                "amount",
                "amount_min",
                "amount_max",
                "expected_day",
                "expected_day_start",
                "expected_day_end",
            )
        }
        _check_fields(merged)

        if changes:
            self.db.update_planned_entry(entry_id, **changes)
        return self.get_planned_entry(organization_id, entry_id)

    def delete_planned_entry(self, organization_id: int, entry_id: int) -> None:
        self.get_planned_entry(organization_id, entry_id)
        self.db.delete_planned_entry(entry_id)

    def generate_monthly_instances(
        self, user_id: int, organization_id: int, entry_id: int, month: int, year: int
    ) -> list[PlannedEntry]:
        """Create the instance of a recurrent entry for one month.

        The instance copies the parent's category, description, amounts and
        expected days, is not itself recurrent, and starts pending for the
        month it was generated for.

        Args:
            user_id: User generating the instance
            organization_id: Owning organization
            entry_id: Recurrent parent entry
            month: Month of the instance
            year: Year of the instance

        Returns:
            The generated instances

        Raises:
            NotFoundError: If the parent is not in the organization
            ValidationError: If the parent is not recurrent or the period is invalid
            ConflictError: If an active instance already exists for the month
        """
        _check_period(month, year)
        parent = self.get_planned_entry(organization_id, entry_id)
        if not parent.is_recurrent:
            raise ValidationError(f"planned entry {entry_id} is not recurrent")

        for child in self.db.list_planned_entries(
            organization_id, is_active=True, parent_entry_id=entry_id
        ):
            if self.db.get_planned_entry_status(child.id, month, year) is not None:
                raise ConflictError(
                    f"planned entry {entry_id} already has an instance for {year:04d}-{month:02d}"
                )

        with self.db.transaction():
            instance_id = self.db.create_planned_entry(
                user_id=user_id,
                organization_id=organization_id,
                category_id=parent.category_id,
                description=parent.description,
                amount=parent.amount,
                entry_type=parent.entry_type,
                amount_min=parent.amount_min,
                amount_max=parent.amount_max,
                expected_day=parent.expected_day,
                expected_day_start=parent.expected_day_start,
                expected_day_end=parent.expected_day_end,
                is_recurrent=False,
                parent_entry_id=entry_id,
                pattern_id=parent.pattern_id,
            )
            self.db.upsert_planned_entry_status(
                instance_id, month, year, status=PlannedEntryStatusKind.PENDING
            )

        logger.info(
            "monthly instance generated",
            planned_entry_id=entry_id,
            instance_id=instance_id,
            month=month,
            year=year,
        )
        return [self.db.get_planned_entry(instance_id)]

    # Monthly status

    def _with_status(
        self,
        entry: PlannedEntry,
        stored: Optional[PlannedEntryStatus],
        month: int,
        year: int,
        today: date,
    ) -> PlannedEntryWithStatus:
        linked = None
        if entry.pattern_id is not None:
            linked = self.db.get_advanced_pattern(entry.pattern_id, organization_id=entry.organization_id)
        if stored is None:
            return PlannedEntryWithStatus(
                entry=entry,
                status=compute_status(entry, month, year, today),
                linked_pattern=linked,
            )
        return PlannedEntryWithStatus(
            entry=entry,
            status=stored.status,
            matched_transaction_id=stored.matched_transaction_id,
            matched_amount=stored.matched_amount,
            matched_at=stored.matched_at,
            linked_pattern=linked,
        )

    def get_planned_entries_for_month(
        self, organization_id: int, month: int, year: int
    ) -> list[PlannedEntryWithStatus]:
        """Active entries with their status for a month.

        A stored status wins over the computed one.
        """
        _check_period(month, year)
        today = self.system.clock.now().date()
        stored = {
            s.planned_entry_id: s
            for s in self.db.list_planned_entry_statuses(organization_id, month, year)
        }
        return [
            self._with_status(entry, stored.get(entry.id), month, year, today)
            for entry in self.db.list_planned_entries(organization_id, is_active=True)
        ]

    def get_entry_status(
        self, organization_id: int, entry_id: int, month: int, year: int
    ) -> PlannedEntryWithStatus:
        _check_period(month, year)
        entry = self.get_planned_entry(organization_id, entry_id)
        stored = self.db.get_planned_entry_status(entry_id, month, year)
        return self._with_status(entry, stored, month, year, self.system.clock.now().date())

    def match_planned_entry(
        self, organization_id: int, entry_id: int, month: int, year: int, transaction_id: int
    ) -> PlannedEntryStatus:
        """Mark an entry matched by a transaction for a month.

        The transaction takes the entry's category.

        Raises:
            NotFoundError: If the entry or transaction is not in the organization
        """
        _check_period(month, year)
        entry = self.get_planned_entry(organization_id, entry_id)
        tx = self.transactions.get_transaction(organization_id, transaction_id)

        with self.db.transaction():
            status = self.db.upsert_planned_entry_status(
                entry_id,
                month,
                year,
                status=PlannedEntryStatusKind.MATCHED,
                matched_transaction_id=tx.id,
                matched_amount=tx.amount,
                matched_at=self.system.clock.now(),
                dismissed_at=None,
                dismissal_reason=None,
            )
            self.db.update_transaction(tx.id, category_id=entry.category_id)

        logger.info("planned entry matched", planned_entry_id=entry_id, transaction_id=tx.id)
        return status

    def _stored_status(self, entry_id: int, month: int, year: int) -> PlannedEntryStatus:
        status = self.db.get_planned_entry_status(entry_id, month, year)
        if status is None:
            raise NotFoundError(planned_entry_status_not_found(entry_id, month, year))
        return status

    def unmatch_planned_entry(
        self, organization_id: int, entry_id: int, month: int, year: int
    ) -> PlannedEntryStatus:
        self.get_planned_entry(organization_id, entry_id)
        status = self._stored_status(entry_id, month, year)
        if status.status != PlannedEntryStatusKind.MATCHED:
            raise ValidationError(f"planned entry {entry_id} is not matched in {year:04d}-{month:02d}")
        return self.db.upsert_planned_entry_status(
            entry_id,
            month,
            year,
            status=PlannedEntryStatusKind.PENDING,
            matched_transaction_id=None,
            matched_amount=None,
            matched_at=None,
        )

    def dismiss_planned_entry(
        self, organization_id: int, entry_id: int, month: int, year: int, reason: Optional[str] = None
    ) -> PlannedEntryStatus:
        _check_period(month, year)
        self.get_planned_entry(organization_id, entry_id)
        return self.db.upsert_planned_entry_status(
            entry_id,
            month,
            year,
            status=PlannedEntryStatusKind.DISMISSED,
            dismissed_at=self.system.clock.now(),
            dismissal_reason=reason,
            matched_transaction_id=None,
            matched_amount=None,
            matched_at=None,
        )

    def undismiss_planned_entry(
        self, organization_id: int, entry_id: int, month: int, year: int
    ) -> PlannedEntryStatus:
        self.get_planned_entry(organization_id, entry_id)
        status = self._stored_status(entry_id, month, year)
        if status.status != PlannedEntryStatusKind.DISMISSED:
            raise ValidationError(f"planned entry {entry_id} is not dismissed in {year:04d}-{month:02d}")
        return self.db.upsert_planned_entry_status(
            entry_id,
            month,
            year,
            status=PlannedEntryStatusKind.PENDING,
            dismissed_at=None,
            dismissal_reason=None,
        )

    def get_planned_entry_for_transaction(
        self, organization_id: int, transaction_id: int
    ) -> Optional[PlannedEntryWithStatus]:
        """The entry a transaction is matched to, if any."""
        self.transactions.get_transaction(organization_id, transaction_id)
        status = self.db.get_planned_entry_status_by_transaction(transaction_id)
        if status is None:
            return None
        entry = self.get_planned_entry(organization_id, status.planned_entry_id)
        return self._with_status(
            entry, status, status.month, status.year, self.system.clock.now().date()
        )
