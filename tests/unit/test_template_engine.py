"""
Unit tests for placeholder substitution in quote documents.
"""

import pytest
from datetime import date
from decimal import Decimal

from quotegen.exceptions import TemplateRenderError
from quotegen.services.document_templates import BUILTIN_TEMPLATES
from quotegen.services.template_engine import (
    PLACEHOLDERS, CompanyBranding, FeatureLine, TemplateContext,
    find_unknown_placeholders, render_document, render_feature_rows
)


@pytest.fixture
def acme_context():
    return TemplateContext(
        quote_number='Q2601-0042',
        quote_date=date(2026, 1, 12),
        quote_status='draft',
        expiration_date=date(2026, 2, 11),
        total_monthly=Decimal('20500.00'),
        total_one_time=Decimal('5000.00'),
        contract_term=24,
        customer_name='Acme Ltd',
        contact_name='Jane Doe',
        customer_address='12 Royal Road\nCurepipe',
        service_name='Dedicated Internet Access',
        service_setup_fee=Decimal('5000.00'),
        bandwidth='20 Mbps',
        bandwidth_price=Decimal('20000.00'),
        features=[FeatureLine('Static IP', Decimal('500.00'), Decimal('0.00'))],
        branding=CompanyBranding(company_name='Rogers Capital', primary_color='#112233'),
    )


class TestRenderDocument:

    def test_substitutes_known_tokens(self, acme_context):
        html = '<h1>{{quoteNumber}}</h1><p>{{customerName}} {{totalMonthly}} {{quoteDate}} {{contractTerm}}</p>'

        assert render_document(html, acme_context) == \
            '<h1>Q2601-0042</h1><p>Acme Ltd 20,500.00 12/01/2026 24</p>'

    def test_no_known_token_survives(self, acme_context):
        html = ' '.join('{{%s}}' % name for name in PLACEHOLDERS)

        rendered = render_document(html, acme_context)
        assert '{{' not in rendered

    def test_missing_values_use_fallbacks(self):
        html = '[{{serviceName}}][{{totalOneTime}}][{{primaryColor}}][{{featuresRows}}]'

        context = TemplateContext(branding=CompanyBranding(primary_color=''))
        assert render_document(html, context) == '[][0.00][#3b82f6][]'

    def test_unknown_tokens_pass_through(self, acme_context):
        assert render_document('Dear {{salutation}}', acme_context) == 'Dear {{salutation}}'

    def test_strict_mode_rejects_unknown_tokens(self, acme_context):
        with pytest.raises(TemplateRenderError) as exc:
            render_document('{{quoteNumber}} {{salutation}} {{vatNumber}}', acme_context, strict=True)

        assert exc.value.unknown_tokens == {'salutation', 'vatNumber'}
        assert exc.value.status_code == 422

    def test_single_pass(self, acme_context):
        """Values that look like tokens are not expanded again."""
        acme_context.notes = '{{quoteNumber}}'

        assert render_document('{{notes}}', acme_context) == '{{quoteNumber}}'

    @pytest.mark.parametrize('name', sorted(BUILTIN_TEMPLATES))
    def test_rendering_twice_changes_nothing(self, acme_context, name):
        html = BUILTIN_TEMPLATES[name].html + '<p>{{doesNotExist}}</p>'

        once = render_document(html, acme_context)

        assert render_document(once, acme_context) == once
        assert '{{doesNotExist}}' in once

    def test_values_are_escaped(self, acme_context):
        acme_context.customer_name = '<script>alert(1)</script> & Co'

        rendered = render_document('{{customerName}}', acme_context)
        assert rendered == '&lt;script&gt;alert(1)&lt;/script&gt; &amp; Co'

    def test_address_newlines(self, acme_context):
        assert render_document('{{customerAddress}}', acme_context) == '12 Royal Road<br>Curepipe'

    def test_builtin_templates_resolve_fully(self, acme_context):
        for template in BUILTIN_TEMPLATES.values():
            assert find_unknown_placeholders(template.html) == set()
            rendered = render_document(template.html, acme_context, strict=True)
            assert '{{' not in rendered
            assert 'Q2601-0042' in rendered


class TestFeatureRows:

    def test_one_row_per_feature(self):
        rows = render_feature_rows([
            FeatureLine('Static IP', Decimal('500'), Decimal('0')),
            FeatureLine('Managed Router', Decimal('1500'), Decimal('3000')),
        ])

        assert rows.count('<tr class="feature-row">') == 2
        assert '<td class="text-right">MUR 3,000.00</td>' in rows
        assert '<td class="text-right">MUR 1,500.00</td>' in rows

    def test_empty(self):
        assert render_feature_rows([]) == ''

    def test_feature_names_escaped(self):
        rows = render_feature_rows([FeatureLine('<b>VIP</b>')])
        assert '&lt;b&gt;VIP&lt;/b&gt;' in rows


class TestFindUnknownPlaceholders:

    def test_reports_only_unknown(self):
        assert find_unknown_placeholders('{{quoteNumber}} {{foo}} {{ bar }}') == {'foo'}


class TestCompanyBranding:

    def test_from_dict_keeps_defaults_for_blank_fields(self):
        defaults = CompanyBranding(company_name='Default Co', primary_color='#3b82f6')
        branding = CompanyBranding.from_dict({'company_name': '', 'primary_color': '#ff0000', 'junk': 'x'}, defaults)

        assert branding.company_name == 'Default Co'
        assert branding.primary_color == '#ff0000'

    def test_default_color_matches_config(self):
        from config import Config
        from quotegen.services.settings_store import branding_defaults_from_config

        assert CompanyBranding().primary_color == PLACEHOLDERS['primaryColor'].fallback == Config.PRIMARY_COLOR
        assert branding_defaults_from_config({}).primary_color == CompanyBranding().primary_color
