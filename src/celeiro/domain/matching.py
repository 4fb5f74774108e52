"""Weighted fuzzy matching of transactions against saved patterns.

Scores are floats in [0, 1]. Money is compared as Decimal and only the
resulting ratio is converted.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from celeiro.domain.entities import PlannedEntry, Transaction

MATCH_WEIGHT_CATEGORY = 0.40
MATCH_WEIGHT_AMOUNT = 0.30
MATCH_WEIGHT_DESCRIPTION = 0.20
MATCH_WEIGHT_DATE = 0.10

MATCH_AMOUNT_TOLERANCE = 0.05
MATCH_DATE_PROXIMITY = 3
MATCH_MIN_SCORE = 0.50
MATCH_PREFILTER_AMOUNT_DIFF = 0.50

HIGH_CONFIDENCE = 0.70
MEDIUM_CONFIDENCE = 0.50


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def confidence_for(total: float) -> Confidence:
    if total >= HIGH_CONFIDENCE:
        return Confidence.HIGH
    if total >= MEDIUM_CONFIDENCE:
        return Confidence.MEDIUM
    return Confidence.LOW


@dataclass(frozen=True)
class MatchScore:
    pattern_id: int
    description: str
    amount: Decimal
    category_id: int
    category_score: float = 0.0
    amount_score: float = 0.0
    description_score: float = 0.0
    date_score: float = 0.0
    total_score: float = 0.0
    confidence: Confidence = Confidence.LOW


def normalize_string(value: str) -> str:
    """Lowercase, trim and collapse runs of whitespace."""
    return " ".join(value.lower().split())


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance counted in code points."""
    return Levenshtein.distance(a, b)


def fuzzy_match_description(a: str, b: str) -> float:
    norm_a = normalize_string(a or "")
    norm_b = normalize_string(b or "")
    if norm_a == norm_b:
        return 1.0
    if not norm_a or not norm_b:
        return 0.0
    distance = levenshtein_distance(norm_a, norm_b)
    similarity = 1.0 - distance / max(len(norm_a), len(norm_b))
    return max(0.0, similarity)


def _percent_diff(amount: Decimal, reference: Decimal) -> float:
    return float(abs(amount - reference) / abs(reference))


def calculate_amount_score(tx_amount: Decimal, pattern_amount: Decimal) -> float:
    """1.0 inside the tolerance, decaying linearly to 0 at five times it."""
    if tx_amount == 0 and pattern_amount == 0:
        return 1.0
    if tx_amount == 0 or pattern_amount == 0:
        return 0.0
    percent_diff = _percent_diff(tx_amount, pattern_amount)
    if percent_diff <= MATCH_AMOUNT_TOLERANCE:
        return 1.0
    score = 1.0 - percent_diff / (MATCH_AMOUNT_TOLERANCE * 5.0)
    return min(1.0, max(0.0, score))


def calculate_date_score(tx_date: date, pattern_date: date) -> float:
    """1.0 within the proximity window, decaying to 0 at ten times it."""
    days = abs((tx_date - pattern_date).days)
    if days <= MATCH_DATE_PROXIMITY:
        return 1.0
    score = 1.0 - days / (MATCH_DATE_PROXIMITY * 10.0)
    return min(1.0, max(0.0, score))


def expected_date(tx_date: date, expected_day: int) -> date:
    """Expected day in the transaction's month, capped at the month's last day."""
    last_day = calendar.monthrange(tx_date.year, tx_date.month)[1]
    return date(tx_date.year, tx_date.month, min(expected_day, last_day))


def _date_score(tx_date: date, expected_day: Optional[int]) -> float:
    if expected_day is None:
        return 0.5
    if tx_date.day == expected_day:
        return 1.0
    return calculate_date_score(tx_date, expected_date(tx_date, expected_day))


def calculate_match_score(tx: Transaction, pattern: PlannedEntry) -> MatchScore:
    """Score a transaction against one pattern. A category mismatch scores 0."""
    if tx.category_id is None or tx.category_id != pattern.category_id:
        return MatchScore(
            pattern_id=pattern.id,
            description=pattern.description,
            amount=pattern.amount,
            category_id=pattern.category_id,
        )

    amount_score = calculate_amount_score(tx.amount, pattern.amount)
    description_score = fuzzy_match_description(tx.description, pattern.description)
    date_score = _date_score(tx.transaction_date, pattern.expected_day)
    total = (
        1.0 * MATCH_WEIGHT_CATEGORY
        + amount_score * MATCH_WEIGHT_AMOUNT
        + description_score * MATCH_WEIGHT_DESCRIPTION
        + date_score * MATCH_WEIGHT_DATE
    )
    return MatchScore(
        pattern_id=pattern.id,
        description=pattern.description,
        amount=pattern.amount,
        category_id=pattern.category_id,
        category_score=1.0,
        amount_score=amount_score,
        description_score=description_score,
        date_score=date_score,
        total_score=total,
        confidence=confidence_for(total),
    )


def find_matches(tx: Transaction, patterns: Iterable[PlannedEntry]) -> list[MatchScore]:
    """Scores of at least MATCH_MIN_SCORE, best first."""
    matches = []
    for pattern in patterns:
        if tx.category_id is not None and tx.category_id != pattern.category_id:
            continue
        if pattern.amount != 0 and _percent_diff(tx.amount, pattern.amount) > MATCH_PREFILTER_AMOUNT_DIFF:
            continue
        score = calculate_match_score(tx, pattern)
        if score.total_score >= MATCH_MIN_SCORE:
            matches.append(score)
    matches.sort(key=lambda m: m.total_score, reverse=True)
    return matches
