"""
Unit tests for quote price aggregation.
"""

import pytest
from decimal import Decimal

from quotegen.exceptions import ValidationError
from quotegen.services.pricing_service import PriceTotals, aggregate_totals, to_money


class TestToMoney:

    @pytest.mark.parametrize('value,expected', [
        (None, Decimal('0.00')),
        ('', Decimal('0.00')),
        ('  ', Decimal('0.00')),
        (0, Decimal('0.00')),
        (20000, Decimal('20000.00')),
        ('1,234.5', Decimal('1234.50')),
        (0.1, Decimal('0.10')),
        (Decimal('99.999'), Decimal('100.00')),
    ])
    def test_coerces_to_cents(self, value, expected):
        assert to_money(value) == expected

    @pytest.mark.parametrize('value', ['abc', '-5', '1,2.00', -1, Decimal('-0.50')])
    def test_rejects_malformed_or_negative(self, value):
        with pytest.raises(ValidationError):
            to_money(value)


class TestAggregateTotals:
    """Totals follow monthly = bandwidth + features, one-time = setup + features."""

    def test_acme_scenario(self):
        """DIA setup 5000, 20 Mbps at 20000/month, Static IP 500/month."""
        totals = aggregate_totals(
            bandwidth_monthly_price=Decimal('20000'),
            setup_fee=Decimal('5000'),
            features=[{'monthly_price': '500', 'one_time_fee': '0'}]
        )

        assert totals == PriceTotals(Decimal('20500.00'), Decimal('5000.00'))
        assert totals.to_dict() == {'total_monthly': '20500.00', 'total_one_time': '5000.00'}

    def test_no_selection_is_zero(self):
        totals = aggregate_totals()

        assert totals.total_monthly == Decimal('0.00')
        assert totals.total_one_time == Decimal('0.00')

    def test_features_without_service(self):
        totals = aggregate_totals(features=[
            {'monthly_price': Decimal('1500'), 'one_time_fee': Decimal('3000')},
            {'monthly_price': Decimal('500')},
        ])

        assert totals.total_monthly == Decimal('2000.00')
        assert totals.total_one_time == Decimal('3000.00')

    def test_accepts_model_like_objects(self):
        class Line:
            monthly_price = Decimal('1200.00')
            one_time_fee = Decimal('1500.00')

        totals = aggregate_totals(Decimal('4500'), Decimal('2500'), [Line(), Line()])

        assert totals.total_monthly == Decimal('6900.00')
        assert totals.total_one_time == Decimal('5500.00')

    def test_cent_exact_sum(self):
        """Many small amounts add up without float drift."""
        features = [{'monthly_price': '0.10', 'one_time_fee': '0.20'} for _ in range(10)]
        totals = aggregate_totals('0.00', '0.00', features)

        assert totals.total_monthly == Decimal('1.00')
        assert totals.total_one_time == Decimal('2.00')

    def test_totals_are_frozen(self):
        totals = aggregate_totals('1', '2')
        with pytest.raises(AttributeError):
            totals.total_monthly = Decimal('5')
