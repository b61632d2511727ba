"""Money parsing utilities for catalog and wizard input."""
import re
from decimal import Decimal, InvalidOperation

MONEY_PATTERN = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?$")


def parse_money(value: str) -> Decimal:
    """
    Parse a monetary string (e.g., 1,234.56 or 1234.5) to Decimal.

    Rules:
    - Thousands separator: comma (,), optional
    - Decimal separator: dot (.)
    - At most 2 decimal digits
    - No negatives
    - Proper thousand grouping (1,234.56 is valid; 1,2.00 is not)

    Raises:
        ValueError: if the value is invalid or empty.
    """
    if value is None:
        raise ValueError('Invalid amount. Use 1,234.56')

    cleaned = str(value).strip()
    if not cleaned:
        raise ValueError('Invalid amount. Use 1,234.56')

    if cleaned.startswith('-'):
        raise ValueError('Amount cannot be negative')

    if not MONEY_PATTERN.match(cleaned):
        raise ValueError('Invalid amount. Use 1,234.56')

    try:
        decimal_value = Decimal(cleaned.replace(',', ''))
    except (InvalidOperation, ValueError):
        raise ValueError('Invalid amount. Use 1,234.56')

    return decimal_value.quantize(Decimal('0.01'))
