"""Parse payment facts out of recognised screenshot text.

Each fact is read by an ordered list of rules, most specific first. The first
rule that yields an acceptable value wins and later rules are never consulted,
so a labelled amount always beats a bare number elsewhere on the screenshot.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

log = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999.99")

_AMOUNT = r"([\d,]+\.\d{2})"
_AMOUNT_RULES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        rf"(?:USD|US\$|\$)\s*{_AMOUNT}",
        rf"{_AMOUNT}\s*(?:USD|\$)",
        rf"\b(?:Amount|Total|Received|You received)\s*:?\s*(?:USD|\$)?\s*{_AMOUNT}",
        _AMOUNT,
    )
)

_TRANSACTION_ID_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:Tax\s*ID|TaxID)\s*:?\s*([0-9]{10,15})", re.IGNORECASE),
    re.compile(
        r"(?:Trx\.?\s*ID|Transaction\s*ID|TRX\s*ID)\s*:?\s*([0-9]{10,15})", re.IGNORECASE
    ),
    re.compile(r"(?:Reference|Ref\.?)\s*:?\s*([A-Z0-9]{8,20})", re.IGNORECASE),
    re.compile(r"\b([0-9]{10,15})\b"),
    re.compile(r"\b([A-Z]{2}[0-9]{10,15})\b"),
)

_MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
_MONTH_DAY_YEAR = r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})"
_DATE_TIME_WITH_CLOCK = re.compile(
    _MONTH_DAY_YEAR + r"\s*\|?\s*(\d{1,2}):(\d{2})\s*([AP]M)?\b", re.IGNORECASE
)
_DATE_NAMED_MONTH = re.compile(_MONTH_DAY_YEAR + r"\b")
_DATE_DAY_FIRST = re.compile(r"\b(\d{2})[/-](\d{2})[/-](\d{4})\b")
_DATE_YEAR_FIRST = re.compile(r"\b(\d{4})[/-](\d{2})[/-](\d{2})\b")


@dataclass(frozen=True, slots=True)
class PaymentFacts:
    """Facts read from a screenshot; any of them may be missing."""

    amount: Decimal | None = None
    transaction_id: str | None = None
    transaction_date: datetime | None = None


def parse_payment_facts(text: str) -> PaymentFacts:
    facts = PaymentFacts(
        amount=extract_amount(text),
        transaction_id=extract_transaction_id(text),
        transaction_date=extract_transaction_date(text),
    )
    log.debug(
        "Parsed payment facts: amount=%s transaction_id=%s transaction_date=%s",
        facts.amount,
        facts.transaction_id,
        facts.transaction_date,
    )
    return facts


def extract_amount(text: str) -> Decimal | None:
    """Return the first in-range amount found by the most specific matching rule."""

    for rule in _AMOUNT_RULES:
        for match in rule.finditer(text):
            amount = _parse_amount(match.group(1))
            if amount is not None and MIN_AMOUNT <= amount <= MAX_AMOUNT:
                return amount
    return None


def extract_transaction_id(text: str) -> str | None:
    normalized = " ".join(text.split())
    for rule in _TRANSACTION_ID_RULES:
        match = rule.search(normalized)
        if match:
            return match.group(1)
    return None


def extract_transaction_date(text: str) -> datetime | None:
    """Return the first parseable date, trying clock-stamped forms first.

    Impossible calendar dates are skipped rather than rejected outright.
    """

    rules: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], datetime | None]], ...] = (
        (_DATE_TIME_WITH_CLOCK, _from_named_month_with_clock),
        (_DATE_NAMED_MONTH, _from_named_month),
        (_DATE_DAY_FIRST, _from_day_first),
        (_DATE_YEAR_FIRST, _from_year_first),
    )
    for pattern, build in rules:
        for parsed in _candidates(pattern, build, text):
            return parsed
    return None


def _candidates(
    pattern: re.Pattern[str],
    build: Callable[[re.Match[str]], datetime | None],
    text: str,
) -> Iterator[datetime]:
    for match in pattern.finditer(text):
        parsed = build(match)
        if parsed is not None:
            yield parsed


def _parse_amount(raw: str) -> Decimal | None:
    cleaned = raw.replace(",", "")
    if not cleaned or cleaned.startswith("."):
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def _month_number(word: str) -> int | None:
    lowered = word.lower()
    for index, name in enumerate(_MONTHS, start=1):
        if name.startswith(lowered):
            return index
    return None


def _safe_datetime(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0
) -> datetime | None:
    try:
        return datetime(year, month, day, hour, minute)  # noqa: DTZ001
    except ValueError:
        return None


def _from_named_month_with_clock(match: re.Match[str]) -> datetime | None:
    month = _month_number(match.group(1))
    if month is None:
        return None
    hour = int(match.group(4))
    meridiem = match.group(6)
    if meridiem is not None:
        if not 1 <= hour <= 12:
            return None
        hour %= 12
        if meridiem.upper() == "PM":
            hour += 12
    return _safe_datetime(
        int(match.group(3)), month, int(match.group(2)), hour, int(match.group(5))
    )


def _from_named_month(match: re.Match[str]) -> datetime | None:
    month = _month_number(match.group(1))
    if month is None:
        return None
    return _safe_datetime(int(match.group(3)), month, int(match.group(2)))


def _from_day_first(match: re.Match[str]) -> datetime | None:
    return _safe_datetime(int(match.group(3)), int(match.group(2)), int(match.group(1)))


def _from_year_first(match: re.Match[str]) -> datetime | None:
    return _safe_datetime(int(match.group(1)), int(match.group(2)), int(match.group(3)))


__all__ = [
    "MAX_AMOUNT",
    "MIN_AMOUNT",
    "PaymentFacts",
    "extract_amount",
    "extract_transaction_date",
    "extract_transaction_id",
    "parse_payment_facts",
]
