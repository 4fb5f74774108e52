"""OFX bank statement parser.

Only the ``<STMTTRN>`` blocks are read. SGML-style files without closing
tags are accepted, as are timezone suffixes on dates.
"""

import re
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from celeiro.domain.entities import TransactionType
from celeiro.domain.errors import no_transactions_found

STMTTRN_PATTERN = re.compile(r"(?s)<STMTTRN>(.*?)</STMTTRN>")

DEBIT_TYPES = frozenset(
    {"DEBIT", "FEE", "SRVCHG", "ATM", "POS", "CHECK", "PAYMENT", "DIRECTDEBIT", "REPEATPMT"}
)
CREDIT_TYPES = frozenset({"CREDIT", "INT", "DIV", "DEP", "CASH", "DIRECTDEP", "XFER"})

_TAGS = ("TRNTYPE", "DTPOSTED", "TRNAMT", "FITID", "NAME", "MEMO", "CHECKNUM")


@dataclass(frozen=True)
class OFXTransaction:
    """One statement line as read from the file."""

    type: TransactionType
    date_posted: datetime
    amount: Decimal
    fitid: str
    name: str = ""
    memo: str = ""
    check_number: Optional[str] = None
    raw: str = ""

    @property
    def description(self) -> str:
        return compose_description(self.name, self.memo)


def compose_description(name: str, memo: str) -> str:
    """``name - memo`` when both are set and differ, otherwise whichever is set."""
    if name and memo and name != memo:
        return f"{name} - {memo}"
    return name or memo


def normalize_type(trntype: Optional[str], amount: Decimal) -> TransactionType:
    """Map an OFX TRNTYPE to debit/credit, falling back to the sign of amount."""
    upper = (trntype or "").upper()
    if upper in DEBIT_TYPES:
        return TransactionType.DEBIT
    if upper in CREDIT_TYPES:
        return TransactionType.CREDIT
    return TransactionType.DEBIT if amount < 0 else TransactionType.CREDIT


def parse_ofx_date(value: str) -> datetime:
    """Parse ``YYYYMMDD[HHMMSS][.XXX][TZ]`` as UTC, ignoring the zone.

    A value without a full time part, such as ``20240115[-3:BRT]``, is
    read as midnight.

    Raises:
        ValueError: If the value is too short or not a valid date
    """
    if len(value) < 8:
        raise ValueError(f"invalid OFX date: {value!r}")
    year, month, day = int(value[0:4]), int(value[4:6]), int(value[6:8])
    hour = minute = second = 0
    if len(value) >= 14 and value[8:14].isdigit():
        hour, minute, second = int(value[8:10]), int(value[10:12]), int(value[12:14])
    return datetime(year, month, day, hour, minute, second, tzinfo=UTC)


def _extract_value(line: str, tag: str) -> str:
    value = line.strip()
    value = value.removeprefix(f"<{tag}>")
    value = value.removesuffix(f"</{tag}>")
    return value.strip()


def _decode(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        # Brazilian banks still ship CHARSET:1252 statements
        return data.decode("cp1252", errors="replace")


class OFXParser:
    """Parser for OFX statement files."""

    def parse(self, data: Union[bytes, str]) -> list[OFXTransaction]:
        """Parse every valid statement transaction.

        Blocks missing FITID, DTPOSTED or TRNAMT, or with unparsable values,
        are skipped.

        Args:
            data: Raw OFX content

        Returns:
            Transactions in file order

        Raises:
            ValidationError: NO_TRANSACTIONS_FOUND when nothing valid was found
        """
        content = _decode(data)
        transactions = []
        for match in STMTTRN_PATTERN.finditer(content):
            transaction = self._parse_block(match.group(1))
            if transaction is not None:
                transactions.append(transaction)

        if not transactions:
            raise no_transactions_found()
        return transactions

    def _parse_block(self, block: str) -> Optional[OFXTransaction]:
        fields: dict[str, str] = {}
        for line in block.splitlines():
            line = line.strip()
            for tag in _TAGS:
                if line.startswith(f"<{tag}>"):
                    fields[tag] = _extract_value(line, tag)
                    break

        fitid = fields.get("FITID", "")
        if not fitid:
            return None
        try:
            date_posted = parse_ofx_date(fields.get("DTPOSTED", ""))
            amount = Decimal(fields["TRNAMT"])
        except (KeyError, ValueError, InvalidOperation):
            return None
        if not amount.is_finite():
            return None

        return OFXTransaction(
            type=normalize_type(fields.get("TRNTYPE"), amount),
            date_posted=date_posted,
            amount=amount,
            fitid=fitid,
            name=fields.get("NAME", ""),
            memo=fields.get("MEMO", ""),
            check_number=fields.get("CHECKNUM") or None,
            raw=block.strip(),
        )
