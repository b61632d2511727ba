"""Pricing aggregation for quotes (fixed-point, cent precision)."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from quotegen.exceptions import ValidationError
from quotegen.utils.number_format import parse_money

CENT = Decimal('0.01')
ZERO = Decimal('0.00')

Money = Union[Decimal, int, float, str, None]


@dataclass(frozen=True)
class PriceTotals:
    """Monthly recurring and one-time totals of a quote."""
    total_monthly: Decimal
    total_one_time: Decimal

    def to_dict(self):
        return {
            'total_monthly': str(self.total_monthly),
            'total_one_time': str(self.total_one_time),
        }


def to_money(value: Money) -> Decimal:
    """
    Coerce an amount to a Decimal quantized to cents.

    None and blank strings count as zero. Floats go through their string
    form so 0.1 stays 0.10 instead of its binary expansion.

    Raises:
        ValidationError: if the amount is malformed or negative.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO

    if isinstance(value, str):
        try:
            return parse_money(value)
        except ValueError as e:
            raise ValidationError(f'{e}: {value!r}')

    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError):
        raise ValidationError(f'Invalid amount: {value!r}')

    if amount < 0:
        raise ValidationError(f'Amount cannot be negative: {value!r}')
    return amount


def _price_of(item: Any, field: str) -> Decimal:
    """Read a price from a model instance or a mapping."""
    if isinstance(item, Mapping):
        return to_money(item.get(field))
    return to_money(getattr(item, field, None))


def aggregate_totals(
    bandwidth_monthly_price: Money = None,
    setup_fee: Money = None,
    features: Optional[Iterable[Any]] = None
) -> PriceTotals:
    """
    Compute quote totals.

    total_monthly  = bandwidth monthly price + sum(feature.monthly_price)
    total_one_time = service setup fee       + sum(feature.one_time_fee)

    Args:
        bandwidth_monthly_price: Monthly price of the selected bandwidth tier
        setup_fee: One-time setup fee of the selected service
        features: Selected features (models or dicts with monthly_price/one_time_fee)

    Returns:
        PriceTotals with cent-exact Decimals
    """
    total_monthly = to_money(bandwidth_monthly_price)
    total_one_time = to_money(setup_fee)

    for feature in features or ():
        total_monthly += _price_of(feature, 'monthly_price')
        total_one_time += _price_of(feature, 'one_time_fee')

    return PriceTotals(total_monthly=total_monthly, total_one_time=total_one_time)
