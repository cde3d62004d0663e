"""
Pattern Registry Module
Notification templates, one per provider message shape, tried in priority
order by the transaction extractor.
"""

import re
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, localcontext
from typing import Iterable, Iterator, Optional

from .records import MalformedFieldError, TransactionRecord
from .sms_rules import TransactionType, direction_from_verb

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")

# Date fragments like "on 21-Jul-25" in bank notifications
DATE_HINT_PATTERN = re.compile(r'\bon\s+(\d{1,2}-[A-Za-z]{3}-\d{2,4})\b', re.ASCII)
DATE_HINT_FORMATS = ('%d-%b-%y', '%d-%b-%Y')

CURRENCY_PREFIX = r'(?:₹|\bRs\.?|\bINR)'
GROUPED_AMOUNT = r'\d[\d,]*(?:\.\d{1,2})?'

# Free-text runs are capped so a search stays linear in the message length
MAX_MERCHANT_LENGTH = 256
# Any character except a line terminator
LINE_CHAR = r'[^\n\r\x85\u2028\u2029]'
MERCHANT_RUN = LINE_CHAR + r'{1,%d}?' % MAX_MERCHANT_LENGTH
BOUNDED_RUN = r'.{1,%d}?' % MAX_MERCHANT_LENGTH
SENTENCE_GAP = r'[^.]{0,%d}?' % MAX_MERCHANT_LENGTH


class TransactionPattern:
    """
    One notification template.

    The regex must define an ``amount`` and a ``merchant`` group. Optional
    groups: ``date`` (ISO unless date_formats is given) and ``direction``
    (a debit/credit verb). Without a date group the date comes from a
    date hint in the message, then from the caller's received_on, then
    today.
    """

    def __init__(
        self,
        name: str,
        regex: str,
        priority: int = 100,
        flags: int = 0,
        direction: TransactionType = TransactionType.DEBIT,
        date_formats: Optional[tuple[str, ...]] = None,
        use_date_hint: bool = False,
        normalize_whitespace: bool = False,
        clean_merchant: bool = False,
        grouped_amounts: bool = False,
        description: str = ""
    ):
        self.name = name
        self.regex = re.compile(regex, flags)
        missing = {"amount", "merchant"} - set(self.regex.groupindex)
        if missing:
            raise ValueError(f"Pattern '{name}' lacks groups: {', '.join(sorted(missing))}")
        self.priority = priority
        self.direction = direction
        self.date_formats = date_formats
        self.use_date_hint = use_date_hint
        self.normalize_whitespace = normalize_whitespace
        self.clean_merchant = clean_merchant
        self.grouped_amounts = grouped_amounts
        self.description = description

    def try_extract(self, text: str, received_on: Optional[date] = None) -> Optional[TransactionRecord]:
        """
        Match the template against text.

        Returns:
            TransactionRecord for the first occurrence, or None

        Raises:
            MalformedFieldError: If a matched field cannot be converted
        """
        subject = " ".join(text.split()) if self.normalize_whitespace else text
        match = self.regex.search(subject)
        if not match:
            return None

        groups = match.groupdict()
        amount = self._parse_amount(groups["amount"])

        merchant = groups["merchant"]
        if self.clean_merchant:
            merchant = merchant.strip().rstrip(".,;:-").strip()
        if not merchant:
            raise MalformedFieldError(f"Empty merchant in pattern '{self.name}'")

        if groups.get("direction"):
            try:
                direction = direction_from_verb(groups["direction"])
            except ValueError as e:
                raise MalformedFieldError(str(e)) from e
        else:
            direction = self.direction

        return TransactionRecord(
            amount=amount,
            merchant=merchant,
            date=self._resolve_date(groups.get("date"), subject, received_on),
            transaction_type=direction,
            source=self.name,
            upi_id=merchant if "@" in merchant else None,
        )

    def _parse_amount(self, raw: str) -> Decimal:
        clean = raw.replace(",", "") if self.grouped_amounts else raw
        try:
            amount = Decimal(clean)
        except InvalidOperation as e:
            raise MalformedFieldError(f"Invalid amount format: {raw}") from e
        if not amount.is_finite() or amount < 0:
            raise MalformedFieldError(f"Invalid amount value: {raw}")
        if amount.as_tuple().exponent == -2:
            return amount

        # Precision must cover every integer digit plus the two decimals
        try:
            with localcontext() as ctx:
                ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 2)
                return amount.quantize(TWO_PLACES)
        except InvalidOperation as e:
            raise MalformedFieldError(f"Invalid amount value: {raw}") from e

    def _resolve_date(self, raw: Optional[str], subject: str, received_on: Optional[date]) -> str:
        if raw is not None:
            if self.date_formats is None:
                return raw
            return self._parse_date(raw)

        if self.use_date_hint:
            hint = DATE_HINT_PATTERN.search(subject)
            if hint:
                return self._parse_date(hint.group(1), DATE_HINT_FORMATS)

        return (received_on or date.today()).isoformat()

    def _parse_date(self, raw: str, formats: Optional[tuple[str, ...]] = None) -> str:
        for fmt in formats or self.date_formats:
            try:
                return datetime.strptime(raw, fmt).date().isoformat()
            except ValueError:
                continue
        raise MalformedFieldError(f"Invalid date: {raw}")

    def __repr__(self) -> str:
        return f"TransactionPattern(name={self.name!r}, priority={self.priority})"


YOU_SPENT = TransactionPattern(
    name="you_spent",
    regex=(
        r'You spent \$(?P<amount>\d+\.\d{2}) at '
        r'(?P<merchant>' + MERCHANT_RUN + r') '
        r'on (?P<date>\d{4}-\d{2}-\d{2})'
    ),
    priority=10,
    flags=re.ASCII,
    description="You spent $<amount> at <merchant> on <YYYY-MM-DD>",
)

BANK_UPI = TransactionPattern(
    name="bank_upi",
    regex=(
        CURRENCY_PREFIX + r'\s*(?P<amount>' + GROUPED_AMOUNT + r')\s+(?:has\s+been\s+)?'
        r'(?P<direction>debited|credited)\b' + SENTENCE_GAP +
        r'\bUPI/(?P<merchant>[\w@-]+(?:\.[\w@-]+)*)'
    ),
    priority=20,
    flags=re.IGNORECASE | re.ASCII,
    use_date_hint=True,
    normalize_whitespace=True,
    grouped_amounts=True,
    description="Rs/INR <amount> debited|credited ... UPI/<upi-id>",
)

UPI_APP = TransactionPattern(
    name="upi_app",
    regex=(
        r'\bYou\s+(?P<direction>paid|received)\s+' + CURRENCY_PREFIX +
        r'\s*(?P<amount>' + GROUPED_AMOUNT + r')\s+(?:to|from)\s+'
        r'(?P<merchant>' + BOUNDED_RUN + r')\s+(?:using|via)\b'
    ),
    priority=30,
    flags=re.IGNORECASE | re.ASCII,
    normalize_whitespace=True,
    clean_merchant=True,
    grouped_amounts=True,
    description="You paid|received ₹<amount> to|from <merchant> using|via <app>",
)

UPI_APP_SHORT = TransactionPattern(
    name="upi_app_short",
    regex=(
        CURRENCY_PREFIX + r'\s*(?P<amount>' + GROUPED_AMOUNT + r')\s+'
        r'(?P<direction>paid|sent|received)\s+(?:to|from)\s+'
        r'(?P<merchant>' + BOUNDED_RUN + r')\s+(?:using|via)\b'
    ),
    priority=40,
    flags=re.IGNORECASE | re.ASCII,
    normalize_whitespace=True,
    clean_merchant=True,
    grouped_amounts=True,
    description="₹<amount> paid|sent|received to|from <merchant> via|using <app>",
)

BUILTIN_PATTERNS = {
    pattern.name: pattern
    for pattern in (YOU_SPENT, BANK_UPI, UPI_APP, UPI_APP_SHORT)
}

DEFAULT_PATTERN_NAMES = ("you_spent",)


class PatternRegistry:
    """
    Ordered collection of transaction patterns.

    Iteration yields patterns by ascending priority; equal priorities keep
    registration order.
    """

    def __init__(self, patterns: Optional[Iterable[TransactionPattern]] = None):
        self._patterns: dict[str, TransactionPattern] = {}
        self._ordered: tuple[TransactionPattern, ...] = ()
        for pattern in patterns or ():
            self.register(pattern)

    def register(self, pattern: TransactionPattern):
        """
        Add a pattern.

        Raises:
            ValueError: If a pattern with the same name is registered
        """
        if pattern.name in self._patterns:
            raise ValueError(f"Pattern already registered: {pattern.name}")
        self._patterns[pattern.name] = pattern
        self._reorder()
        logger.debug(f"Registered pattern '{pattern.name}' (priority {pattern.priority})")

    def unregister(self, name: str) -> TransactionPattern:
        """
        Remove a pattern by name.

        Raises:
            KeyError: If no such pattern is registered
        """
        pattern = self._patterns.pop(name)
        self._reorder()
        return pattern

    def get(self, name: str) -> Optional[TransactionPattern]:
        return self._patterns.get(name)

    def names(self) -> list[str]:
        """Registered pattern names in evaluation order."""
        return [pattern.name for pattern in self._ordered]

    def _reorder(self):
        self._ordered = tuple(sorted(self._patterns.values(), key=lambda p: p.priority))

    def __iter__(self) -> Iterator[TransactionPattern]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, name: object) -> bool:
        return name in self._patterns


def build_registry(names: Optional[Iterable[str]] = None) -> PatternRegistry:
    """
    Build a registry from built-in pattern names.

    Args:
        names: Pattern names; defaults to the single "you_spent" pattern

    Returns:
        PatternRegistry with the requested patterns

    Raises:
        ValueError: If a name is not a built-in pattern
    """
    selected = list(DEFAULT_PATTERN_NAMES if names is None else names)
    unknown = [name for name in selected if name not in BUILTIN_PATTERNS]
    if unknown:
        raise ValueError(
            f"Unknown pattern(s): {', '.join(unknown)}. "
            f"Available: {', '.join(BUILTIN_PATTERNS)}"
        )
    return PatternRegistry(BUILTIN_PATTERNS[name] for name in dict.fromkeys(selected))


def default_registry() -> PatternRegistry:
    """Registry holding only the "You spent $..." pattern."""
    return build_registry(DEFAULT_PATTERN_NAMES)
