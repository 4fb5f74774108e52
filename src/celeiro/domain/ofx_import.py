"""OFX import service."""

from typing import Optional, Union

from celeiro.database.base import Database
from celeiro.domain.classification import ClassificationRuleService
from celeiro.domain.entities import ImportResult
from celeiro.domain.errors import DomainError, NotFoundError, account_not_found
from celeiro.domain.ofx_parser import OFXParser
from celeiro.domain.pattern_matching import MatchingService
from celeiro.logger import get_logger

logger = get_logger(__name__)


class TransactionImportService:
    """Import OFX statements into an account, skipping known FITIDs."""

    def __init__(
        self,
        db: Database,
        parser: Optional[OFXParser] = None,
        matching: Optional[MatchingService] = None,
        classification: Optional[ClassificationRuleService] = None,
    ):
        """Initialize import service.

        Args:
            db: Database instance
            parser: OFX parser (default: OFXParser())
            matching: Service for the post-import auto-match pass
            classification: Service for the post-import rule pass
        """
        self.db = db
        self.parser = parser or OFXParser()
        self.matching = matching or MatchingService(db)
        self.classification = classification or ClassificationRuleService(db)

    def import_ofx(
        self,
        user_id: int,
        organization_id: int,
        account_id: int,
        data: Union[bytes, str],
        post_process: bool = True,
    ) -> ImportResult:
        """Import OFX data into an account.

        All new rows are inserted in one transaction. Afterwards the
        classification rules and the auto-matcher run over the inserted
        rows; their failures are logged and never undo the import.

        Args:
            user_id: Importing user
            organization_id: Organization scope
            account_id: Target account
            data: Raw OFX content
            post_process: Run the classification and auto-match passes

        Returns:
            ImportResult with imported and duplicate counts

        Raises:
            NotFoundError: If the account is not in the organization
            ValidationError: NO_TRANSACTIONS_FOUND when the file holds no valid records
        """
        if self.db.get_account(account_id, organization_id=organization_id) is None:
            raise NotFoundError(account_not_found(account_id))

        records = self.parser.parse(data)
        seen = self.db.get_existing_fitids(account_id)

        rows = []
        duplicate_count = 0
        for record in records:
            if record.fitid in seen:
                duplicate_count += 1
                continue
            seen.add(record.fitid)
            description = record.description
            rows.append(
                {
                    "account_id": account_id,
                    "description": description,
                    "original_description": description,
                    "amount": abs(record.amount),
                    "transaction_date": record.date_posted.date(),
                    "transaction_type": record.type,
                    "ofx_fitid": record.fitid,
                    "ofx_check_number": record.check_number,
                    "ofx_memo": record.memo or None,
                    "raw_ofx_data": record.raw,
                    "is_classified": False,
                    "tags": [],
                }
            )

        with self.db.transaction():
            transaction_ids = self.db.bulk_insert_transactions(rows)

        logger.info(
            "ofx imported",
            user_id=user_id,
            account_id=account_id,
            imported=len(transaction_ids),
            duplicates=duplicate_count,
        )

        classified_count = auto_matched_count = 0
        if post_process and transaction_ids:
            classified_count, auto_matched_count = self._post_process(organization_id, transaction_ids)

        return ImportResult(
            account_id=account_id,
            imported_count=len(transaction_ids),
            duplicate_count=duplicate_count,
            auto_matched_count=auto_matched_count,
            classified_count=classified_count,
            transaction_ids=tuple(transaction_ids),
        )

    def _post_process(self, organization_id: int, transaction_ids: list[int]) -> tuple[int, int]:
        classified = 0
        try:
            result = self.classification.apply_classification_rules(organization_id, transaction_ids)
            classified = result.classified_count
        except DomainError as e:
            logger.warning("classification pass failed", error=str(e))

        auto_matched = 0
        for transaction_id in transaction_ids:
            try:
                if self.matching.auto_match_transaction(organization_id, transaction_id):
                    auto_matched += 1
            except DomainError as e:
                logger.warning("auto-match failed", transaction_id=transaction_id, error=str(e))
        return classified, auto_matched
