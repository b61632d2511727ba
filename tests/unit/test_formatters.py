"""
Unit tests for document formatting helpers and money parsing.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from quotegen.utils.formatters import format_bandwidth, format_currency, format_date, nl2br
from quotegen.utils.number_format import parse_money


class TestFormatCurrency:

    @pytest.mark.parametrize('value,expected', [
        (20500, '20,500.00'),
        (Decimal('1234.5'), '1,234.50'),
        ('1000000', '1,000,000.00'),
        (0, '0.00'),
        (None, '0.00'),
        ('', '0.00'),
        ('abc', '0.00'),
    ])
    def test_format(self, value, expected):
        assert format_currency(value) == expected


class TestFormatDate:

    def test_date(self):
        assert format_date(date(2026, 1, 12)) == '12/01/2026'

    def test_datetime_and_iso_string(self):
        assert format_date(datetime(2026, 3, 4, 15, 30)) == '04/03/2026'
        assert format_date('2026-03-04') == '04/03/2026'

    def test_missing_or_invalid(self):
        assert format_date(None) == ''
        assert format_date('next tuesday') == ''


class TestFormatBandwidth:

    def test_drops_insignificant_decimals(self):
        assert format_bandwidth(Decimal('100.00'), 'Mbps') == '100 Mbps'
        assert format_bandwidth(Decimal('2.50'), 'Gbps') == '2.5 Gbps'

    def test_missing(self):
        assert format_bandwidth(None, 'Mbps') == ''


class TestNl2br:

    def test_escapes_and_breaks(self):
        assert str(nl2br('a < b\r\nc')) == 'a &lt; b<br>c'

    def test_empty(self):
        assert str(nl2br(None)) == ''


class TestParseMoney:

    @pytest.mark.parametrize('value,expected', [
        ('1,234.56', Decimal('1234.56')),
        ('1234.5', Decimal('1234.50')),
        ('0', Decimal('0.00')),
    ])
    def test_valid(self, value, expected):
        assert parse_money(value) == expected

    @pytest.mark.parametrize('value', ['', '-1', '1,2.00', '1.234', 'abc', None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_money(value)
