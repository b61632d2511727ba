"""
Formatting helpers for rendered quote documents.
Currency uses two decimals with comma thousands separators (20,500.00)
and dates use the Mauritian DD/MM/YYYY layout.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

from markupsafe import Markup, escape


def format_currency(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount with exactly 2 decimals and thousands separators.

    Args:
        value: Amount to format (None and blanks count as zero)

    Returns:
        Formatted string. Invalid input renders as "0.00".

    Examples:
        format_currency(20500) -> "20,500.00"
        format_currency(Decimal('1234.5')) -> "1,234.50"
        format_currency(None) -> "0.00"
    """
    if value is None or value == "":
        value = 0

    try:
        num = Decimal(str(value).replace(",", "")).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        num = Decimal('0.00')

    return f"{num:,.2f}"


def format_date(value: Union[date, datetime, str, None]) -> str:
    """
    Format a date as DD/MM/YYYY.

    Args:
        value: date, datetime or ISO-8601 string

    Returns:
        Formatted string or "" if missing/invalid

    Examples:
        format_date(date(2026, 1, 12)) -> "12/01/2026"
        format_date("2026-01-12") -> "12/01/2026"
    """
    if value is None or value == "":
        return ""

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return ""

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return ""

    return value.strftime("%d/%m/%Y")


def format_bandwidth(value: Union[int, float, Decimal, str, None], unit: Optional[str]) -> str:
    """
    Format a bandwidth tier, dropping insignificant decimals.

    Examples:
        format_bandwidth(Decimal('100.00'), 'Mbps') -> "100 Mbps"
        format_bandwidth(Decimal('2.5'), 'Gbps') -> "2.5 Gbps"
    """
    if value is None or value == "":
        return ""
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ""
    num_str = str(int(num)) if num == num.to_integral_value() else f"{num.normalize()}"
    return f"{num_str} {unit or ''}".strip()


def nl2br(value: Optional[str]) -> Markup:
    """Escape text and turn embedded newlines into <br> markup."""
    if not value:
        return Markup("")
    lines = str(value).replace("\r\n", "\n").split("\n")
    return Markup("<br>").join(escape(line) for line in lines)
