"""
Unit tests for the notes-embedded quote metadata codec.
"""

from datetime import date
from decimal import Decimal

from quotegen.models import Quote, LEGACY_SCHEMA_VERSION, CURRENT_SCHEMA_VERSION
from quotegen.services.legacy_notes import (
    META_END, META_START, QuoteMetadata, embed_metadata, migrate_legacy_quote, parse_notes
)


class TestParseNotes:

    def test_plain_notes(self):
        assert parse_notes('Customer wants fibre') == (None, 'Customer wants fibre')

    def test_empty_notes(self):
        assert parse_notes(None) == (None, '')

    def test_embedded_block(self):
        metadata = QuoteMetadata(
            service_id=3, service_name='DIA', bandwidth_id=7, bandwidth_value='100', bandwidth_unit='Mbps',
            features=[{'id': 1, 'name': 'Static IP'}]
        )
        notes = embed_metadata(metadata, 'Free text\nsecond line')

        assert notes.startswith(META_START)
        parsed, free_text = parse_notes(notes)
        assert parsed == metadata
        assert free_text == 'Free text\nsecond line'

    def test_malformed_json_is_free_text(self):
        notes = f'{META_START}{{not json{META_END}hello'
        assert parse_notes(notes) == (None, notes)

    def test_unterminated_block_is_free_text(self):
        notes = f'{META_START}{{"service": {{}}}}'
        assert parse_notes(notes) == (None, notes)

    def test_block_must_be_an_object(self):
        notes = f'{META_START}[1, 2]{META_END}'
        assert parse_notes(notes) == (None, notes)

    def test_tolerates_bad_ids(self):
        notes = f'{META_START}{{"service": {{"id": "x"}}, "features": [{{"id": "5"}}, "junk"]}}{META_END}'
        metadata, free_text = parse_notes(notes)

        assert metadata.service_id is None
        assert metadata.feature_ids == [5]
        assert free_text == ''


class TestMigrateLegacyQuote:

    def test_moves_metadata_into_columns(self, session, customer, dia_service, bandwidth_20, static_ip):
        metadata = QuoteMetadata(
            service_id=dia_service.id,
            service_name=dia_service.name,
            bandwidth_id=bandwidth_20.id,
            bandwidth_value='20',
            bandwidth_unit='Mbps',
            features=[{'id': static_ip.id, 'name': 'Static IP'}],
        )
        quote = Quote(
            quote_number='Q2401-0001',
            customer_id=customer.id,
            quote_date=date(2024, 1, 10),
            total_monthly_cost=Decimal('20500.00'),
            total_one_time_cost=Decimal('5000.00'),
            notes=embed_metadata(metadata, 'Legacy text'),
            schema_version=LEGACY_SCHEMA_VERSION,
        )
        session.add(quote)
        session.commit()

        assert migrate_legacy_quote(session, quote) is True
        session.commit()

        assert quote.schema_version == CURRENT_SCHEMA_VERSION
        assert quote.service_id == dia_service.id
        assert quote.bandwidth_option_id == bandwidth_20.id
        assert quote.bandwidth_label_snapshot == '20 Mbps'
        assert quote.service_setup_fee_snapshot == Decimal('5000.00')
        assert [(f.name_snapshot, f.monthly_price) for f in quote.features] == [('Static IP', Decimal('500.00'))]
        assert quote.notes == 'Legacy text'
        # Totals are never recomputed
        assert quote.total_monthly_cost == Decimal('20500.00')

    def test_current_quotes_are_left_alone(self, session, customer):
        quote = Quote(quote_number='Q2401-0002', customer_id=customer.id, notes='hello')
        session.add(quote)
        session.commit()

        assert migrate_legacy_quote(session, quote) is False
        assert quote.notes == 'hello'

    def test_legacy_quote_without_block(self, session, customer):
        quote = Quote(
            quote_number='Q2401-0003', customer_id=customer.id, notes='plain', schema_version=LEGACY_SCHEMA_VERSION
        )
        session.add(quote)
        session.commit()

        assert migrate_legacy_quote(session, quote) is True
        assert quote.schema_version == CURRENT_SCHEMA_VERSION
        assert quote.service_id is None
        assert quote.notes == 'plain'
